"""New-file leak detection.

Reports files added since the last release that would ship with the package
because neither the manifest `files` allow-list nor the `.npmignore`
deny-list covers them.
"""

from __future__ import annotations

import fnmatch
import os
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from .errors import TypeMismatchError
from .git_util import GitClient
from .glob import GlobMatcher, normalize_repo_relative_path
from .ignore_walk import IgnoreWalker, Walker
from .project import NPMIGNORE, find_project_root, ignore_file_exists

# VCS metadata and files npm leaves out of every tarball.
NEVER_PUBLISHED_DIRS = frozenset({".git", ".svn", ".hg", "CVS"})
NEVER_PUBLISHED_NAMES = (
    ".DS_Store",
    "._*",
    ".*.swp",
    ".lock-wscript",
    ".wafpickle-*",
    ".npmrc",
    "npm-debug.log",
    "config.gypi",
    "*.orig",
)


class Matcher(Protocol):
    def compile(
        self, pattern: str, *, match_base: bool = False
    ) -> Callable[[str], bool]: ...


@dataclass(frozen=True)
class LeakCheckDeps:
    """Filesystem collaborators used by `check_new_files`."""

    locate_root: Callable[[], Path] = find_project_root
    walker: Walker = field(default_factory=IgnoreWalker)
    matcher: Matcher = field(default_factory=GlobMatcher)
    ignore_file: str = NPMIGNORE


def _require_list(files: object) -> None:
    if not isinstance(files, list):
        raise TypeMismatchError(f"expected list, but got {type(files).__name__}")


def allowlist_negation_pattern(patterns: Sequence[str]) -> str:
    """Return one pattern matching paths covered by none of `patterns`."""

    if len(patterns) == 1:
        return "!" + patterns[0]
    return "!{" + ",".join(patterns) + "}"


def files_outside_allowlist(
    patterns: Sequence[str],
    files: list[str],
    *,
    matcher: Matcher | None = None,
) -> list[str]:
    """Return the files matched by none of the allow-list `patterns`.

    Patterns without a slash also match the base name, so `*.test.js`
    covers `source/foo.test.js`.
    """

    _require_list(files)
    if not patterns:
        raise ValueError("patterns must be a non-empty sequence")

    m = matcher or GlobMatcher()
    outside = m.compile(allowlist_negation_pattern(patterns), match_base=True)
    return [f for f in files if outside(f)]


async def files_not_kept_by_ignore_file(
    files: list[str],
    *,
    root: str | os.PathLike[str],
    walker: Walker | None = None,
    ignore_file: str = NPMIGNORE,
) -> list[str]:
    """Return the files missing from the walk's kept set, in input order."""

    _require_list(files)

    w = walker or IgnoreWalker()
    kept = set(await w.walk(root, ignore_files=[ignore_file]))
    return [f for f in files if f not in kept]


async def check_new_files(
    new_files: list[str],
    files_field: Sequence[str] | None,
    *,
    deps: LeakCheckDeps | None = None,
) -> list[str] | None:
    """Combine the allow-list and deny-list findings for `new_files`.

    Returns None when neither mechanism is configured, so "nothing leaked"
    (an empty list) stays distinct from "nothing checked". Findings are
    concatenated; a file flagged by both mechanisms appears twice.
    """

    d = deps or LeakCheckDeps()
    root = d.locate_root()
    has_ignore_file = ignore_file_exists(root, d.ignore_file)

    if files_field is None and not has_ignore_file:
        return None

    result: list[str] = []
    if files_field is not None:
        if files_field:
            result = files_outside_allowlist(files_field, new_files, matcher=d.matcher)
        else:
            # An empty `files` field allows nothing.
            _require_list(new_files)
            result = list(new_files)

    if has_ignore_file:
        result = result + await files_not_kept_by_ignore_file(
            new_files, root=root, walker=d.walker, ignore_file=d.ignore_file
        )

    return result


def ignore_strategy_warning(
    manifest: Mapping[str, Any], *, root: str | os.PathLike[str]
) -> str | None:
    """Warn when neither a `files` field nor a `.npmignore` guards the publish."""

    if manifest.get("files") is not None or ignore_file_exists(root, NPMIGNORE):
        return None
    return (
        "No `files` field specified in package.json nor is a .npmignore file"
        " present. Having one of those will prevent you from accidentally"
        " publishing development-specific files along with your package's"
        " source code to npm."
    )


def drop_never_published(files: list[str]) -> list[str]:
    """Remove entries npm never packs, whatever `files` or `.npmignore` say."""

    _require_list(files)
    out: list[str] = []
    for f in files:
        segs = normalize_repo_relative_path(f).split("/")
        if any(s in NEVER_PUBLISHED_DIRS for s in segs):
            continue
        if any(fnmatch.fnmatchcase(segs[-1], p) for p in NEVER_PUBLISHED_NAMES):
            continue
        out.append(f)
    return out


async def new_and_unpublished_files(
    manifest: Mapping[str, Any],
    *,
    deps: LeakCheckDeps | None = None,
    git: GitClient | None = None,
) -> list[str] | None:
    """Leak report for files added since the latest release tag."""

    d = deps or LeakCheckDeps()
    client = git or GitClient.from_env()
    new_files = await client.new_files_since_last_release(
        cwd=d.locate_root(), walker=d.walker
    )
    return await check_new_files(
        drop_never_published(new_files), manifest.get("files"), deps=d
    )
