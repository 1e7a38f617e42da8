"""Git CLI wrapper.

Answers "which files were added since the last release tag".
"""

from __future__ import annotations

import asyncio
import os
import subprocess
from dataclasses import dataclass

from .errors import BlockedError, ExecFailureError
from .ignore_walk import IgnoreWalker, Walker
from .project import GITIGNORE
from .version import verify_requirement_satisfied


def _git_bin() -> str:
    return os.environ.get("PUBLISH_GUARD_GIT_BIN", "git")


def _truncate(s: str, max_chars: int = 2000) -> str:
    if len(s) <= max_chars:
        return s
    return s[: max_chars - 20] + "... [truncated]"


# `git describe` stderr when the history holds no usable tag.
_NO_TAG_MARKERS = ("No names found", "No tags can describe", "cannot describe anything")


def _is_no_tag_error(exc: ExecFailureError) -> bool:
    msg = str(exc)
    return any(m in msg for m in _NO_TAG_MARKERS)


@dataclass(frozen=True)
class GitClient:
    """Minimal `git` client."""

    bin_path: str = "git"
    timeout_s: int = 60

    @classmethod
    def from_env(cls) -> "GitClient":
        return cls(bin_path=_git_bin())

    def _run(self, args: list[str], *, cwd: str | os.PathLike[str]) -> str:
        try:
            p = subprocess.run(  # noqa: S603
                [self.bin_path, *args],
                cwd=cwd,
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
                timeout=self.timeout_s,
            )
        except FileNotFoundError as exc:
            raise BlockedError(
                "`git` is required. Install git and ensure it is on PATH."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ExecFailureError(f"`git` timed out after {self.timeout_s}s") from exc

        if p.returncode != 0:
            stderr = (p.stderr or "").strip()
            msg = stderr or f"`git` failed (exit={p.returncode})"
            raise ExecFailureError(_truncate(msg))

        return p.stdout

    def version(self) -> str:
        return self._run(["--version"], cwd=os.getcwd()).strip()

    def verify_recent_git_version(self) -> None:
        verify_requirement_satisfied("git", self.version())

    def latest_tag(self, *, cwd: str | os.PathLike[str]) -> str:
        tag = self._run(["describe", "--abbrev=0", "--tags"], cwd=cwd).strip()
        if not tag:
            raise ExecFailureError("`git describe` returned no tag")
        return tag

    def added_files_since(self, ref: str, *, cwd: str | os.PathLike[str]) -> list[str]:
        """Files added between `ref` and HEAD, relative to `cwd`."""

        raw = self._run(
            ["diff", "--name-only", "--relative", "-z", "--diff-filter=A", ref, "HEAD"],
            cwd=cwd,
        )
        return [p for p in raw.split("\0") if p]

    async def new_files_since_last_release(
        self,
        *,
        cwd: str | os.PathLike[str],
        walker: Walker | None = None,
    ) -> list[str]:
        """Files added since the latest tag.

        Without any tag (first release), every file not excluded by
        `.gitignore` counts as new. Any other git failure propagates.
        """

        try:
            tag = await asyncio.to_thread(self.latest_tag, cwd=cwd)
        except ExecFailureError as exc:
            if not _is_no_tag_error(exc):
                raise
            tag = ""

        if tag:
            return await asyncio.to_thread(self.added_files_since, tag, cwd=cwd)

        w = walker or IgnoreWalker()
        return await w.walk(cwd, ignore_files=[GITIGNORE], exclude_dirs=[".git"])
