"""Ignore-aware directory walk.

Lists the files under a root that survive the rules of per-directory ignore
files (e.g. `.npmignore`, `.gitignore`). Rules use gitignore semantics via
pathspec and apply to paths relative to the directory holding the ignore
file. Deeper rules override shallower ones; an ignored directory is pruned.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Protocol, cast

from pathspec import GitIgnoreSpec

from .errors import WalkFailureError


# (directory relative to the root, compiled rules); "" is the root itself.
_Rules = tuple[tuple[str, GitIgnoreSpec], ...]


def _read_lines(path: Path) -> list[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as exc:
        raise WalkFailureError(f"Failed to read ignore file: {path}: {exc}") from exc


def _compile_dir_rules(dir_path: Path, ignore_files: Sequence[str]) -> GitIgnoreSpec | None:
    lines: list[str] = []
    for name in ignore_files:
        candidate = dir_path / name
        if candidate.is_file():
            lines.extend(_read_lines(candidate))
    if not lines:
        return None
    from_lines = cast("Callable[[Iterable[str]], GitIgnoreSpec]", GitIgnoreSpec.from_lines)
    return from_lines(lines)


def _is_ignored(rules: _Rules, rel_path: str, *, is_dir: bool) -> bool:
    ignored = False
    for base, spec in rules:
        sub = rel_path[len(base) + 1 :] if base else rel_path
        if is_dir:
            sub += "/"
        result = spec.check_file(sub)
        if result.include is not None:
            ignored = bool(result.include)
    return ignored


def walk_kept_files(
    root: str | os.PathLike[str],
    *,
    ignore_files: Sequence[str],
    exclude_dirs: Sequence[str] = (),
) -> list[str]:
    """Return sorted repo-relative POSIX paths of files not excluded by ignore rules."""

    root_path = Path(root)
    if not root_path.is_dir():
        raise WalkFailureError(f"Cannot walk project root: not a directory: {root_path}")

    def on_error(exc: OSError) -> None:
        raise WalkFailureError(f"Failed to walk {exc.filename}: {exc.strerror}") from exc

    kept: list[str] = []
    rules_by_dir: dict[str, _Rules] = {}

    for current, dirs, files in os.walk(root_path, onerror=on_error):
        rel_dir = Path(current).relative_to(root_path).as_posix()
        rel_dir = "" if rel_dir == "." else rel_dir

        parent = rel_dir.rsplit("/", 1)[0] if "/" in rel_dir else ""
        rules = rules_by_dir.get(parent, ()) if rel_dir else ()
        own = _compile_dir_rules(Path(current), ignore_files)
        if own is not None:
            rules = rules + ((rel_dir, own),)
        rules_by_dir[rel_dir] = rules

        def rel(name: str) -> str:
            return f"{rel_dir}/{name}" if rel_dir else name

        dirs[:] = sorted(
            d
            for d in dirs
            if d not in exclude_dirs
            and not os.path.islink(os.path.join(current, d))
            and not _is_ignored(rules, rel(d), is_dir=True)
        )
        for name in files:
            path = rel(name)
            if not _is_ignored(rules, path, is_dir=False):
                kept.append(path)

    return sorted(kept)


class Walker(Protocol):
    async def walk(
        self,
        root: str | os.PathLike[str],
        *,
        ignore_files: Sequence[str],
        exclude_dirs: Sequence[str] = (),
    ) -> list[str]: ...


class IgnoreWalker:
    """Async facade over `walk_kept_files`; the walk runs in a worker thread."""

    async def walk(
        self,
        root: str | os.PathLike[str],
        *,
        ignore_files: Sequence[str],
        exclude_dirs: Sequence[str] = (),
    ) -> list[str]:
        return await asyncio.to_thread(
            walk_kept_files,
            root,
            ignore_files=list(ignore_files),
            exclude_dirs=list(exclude_dirs),
        )
