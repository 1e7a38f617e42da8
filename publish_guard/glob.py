"""Repo-relative glob helpers.

Use POSIX-style paths (forward slashes) regardless of host OS.

Patterns support `!` negation, `{a,b}` brace groups, per-segment `*` / `?` /
`[...]`, and `**` spanning directories. With `match_base`, a pattern without
slashes is also tried against the base name of the path. Wildcards do not
match names starting with `.` unless the pattern segment starts with `.`.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Callable
from functools import lru_cache


def normalize_repo_relative_path(path: str) -> str:
    """Normalize a repo-relative path.

    - Strips leading './' and '/'
    - Converts backslashes to slashes
    - Collapses repeated slashes

    Surrounding whitespace is kept; it is part of the file name.
    """

    p = path or ""
    if not p.strip():
        return ""

    p = p.replace("\\", "/")

    while p.startswith("./"):
        p = p[2:]
    while p.startswith("/"):
        p = p[1:]

    while "//" in p:
        p = p.replace("//", "/")

    segs = [s for s in p.split("/") if s != ""]
    # Disallow dot-segments so `a/../b` cannot satisfy a pattern for `b`.
    if any(s in (".", "..") for s in segs):
        return ""

    return "/".join(segs)


def _split_top_level(body: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(body):
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(body[start:i])
            start = i + 1
    parts.append(body[start:])
    return parts


def expand_braces(pattern: str) -> list[str]:
    """Expand `{a,b}` groups into alternative patterns.

    Groups nest. A group without a comma (e.g. `{a}`) and an unbalanced `{`
    stay literal. The result keeps first-seen order without duplicates.
    """

    depth = 0
    start = -1
    for i, ch in enumerate(pattern):
        if ch == "{":
            if depth == 0:
                start = i
            depth += 1
            continue
        if ch != "}" or depth == 0:
            continue

        depth -= 1
        if depth != 0:
            continue

        alts = _split_top_level(pattern[start + 1 : i])
        if len(alts) < 2:
            head = pattern[: i + 1]
            return [head + tail for tail in expand_braces(pattern[i + 1 :])]

        prefix = pattern[:start]
        suffix = pattern[i + 1 :]
        out: list[str] = []
        seen: set[str] = set()
        for alt in alts:
            for expanded in expand_braces(prefix + alt + suffix):
                if expanded not in seen:
                    seen.add(expanded)
                    out.append(expanded)
        return out

    return [pattern]


def _split_negation(pattern: str) -> tuple[bool, str]:
    negated = False
    p = pattern or ""
    while p.startswith("!"):
        negated = not negated
        p = p[1:]
    return negated, p


def _match_segment(name: str, seg: str) -> bool:
    # Wildcards never match a leading dot; the pattern has to spell it out.
    if name.startswith(".") and not seg.startswith("."):
        return False
    return fnmatch.fnmatchcase(name, seg)


@lru_cache(maxsize=4096)
def _match_path_glob(path: str, pattern: str) -> bool:
    """Match a repo-relative path against a glob pattern.

    Semantics:
    - Split on '/'
    - `*` / `?` do not cross directory boundaries
    - `**` (as a full segment) matches zero or more path segments
    """

    path_norm = normalize_repo_relative_path(path)
    pat_norm = normalize_repo_relative_path(pattern)
    if not path_norm or not pat_norm:
        return False

    path_segs = tuple([s for s in path_norm.split("/") if s != ""])
    pat_segs = tuple([s for s in pat_norm.split("/") if s != ""])

    @lru_cache(maxsize=None)
    def dp(i: int, j: int) -> bool:
        if j >= len(pat_segs):
            return i >= len(path_segs)

        seg = pat_segs[j]
        if seg == "**":
            # Match zero segments.
            if dp(i, j + 1):
                return True
            # Match one non-dot segment (if any) and keep "**".
            return (
                i < len(path_segs)
                and not path_segs[i].startswith(".")
                and dp(i + 1, j)
            )

        if i >= len(path_segs):
            return False

        if not _match_segment(path_segs[i], seg):
            return False

        return dp(i + 1, j + 1)

    return dp(0, 0)


def _match_one(path: str, pattern: str, *, match_base: bool) -> bool:
    if _match_path_glob(path, pattern):
        return True
    if not match_base or "/" in pattern:
        return False
    base = normalize_repo_relative_path(path).rsplit("/", 1)[-1]
    return bool(base) and _match_segment(base, pattern)


class GlobMatcher:
    """Compile glob patterns into path predicates."""

    def compile(
        self, pattern: str, *, match_base: bool = False
    ) -> Callable[[str], bool]:
        negated, body = _split_negation((pattern or "").strip())
        alternatives = [a.strip() for a in expand_braces(body) if a.strip()]

        def predicate(path: str) -> bool:
            hit = any(_match_one(path, a, match_base=match_base) for a in alternatives)
            return not hit if negated else hit

        return predicate

    def matches(self, path: str, pattern: str, *, match_base: bool = False) -> bool:
        return self.compile(pattern, match_base=match_base)(path)
