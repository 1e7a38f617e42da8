"""npm CLI (`npm`) wrapper.

Registry checks run before publishing: connectivity, authentication,
collaborators, dist-tags and package name availability.
"""

from __future__ import annotations

import json
import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..errors import BlockedError, ExecFailureError
from ..version import verify_requirement_satisfied

CONNECTION_TIMEOUT_S = 15


def _npm_bin() -> str:
    return os.environ.get("PUBLISH_GUARD_NPM_BIN", "npm")


def _truncate(s: str, max_chars: int = 2000) -> str:
    if len(s) <= max_chars:
        return s
    return s[: max_chars - 20] + "... [truncated]"


def is_external_registry(manifest: Mapping[str, Any]) -> bool:
    publish_config = manifest.get("publishConfig")
    return isinstance(publish_config, dict) and isinstance(
        publish_config.get("registry"), str
    )


@dataclass(frozen=True)
class NpmResult:
    returncode: int
    stdout: str
    stderr: str


@dataclass(frozen=True)
class NpmClient:
    """Minimal `npm` client."""

    bin_path: str = "npm"
    timeout_s: int = 60

    @classmethod
    def from_env(cls) -> "NpmClient":
        return cls(bin_path=_npm_bin())

    def _exec(self, args: list[str], *, timeout_s: int | None = None) -> NpmResult:
        timeout = self.timeout_s if timeout_s is None else timeout_s
        try:
            p = subprocess.run(  # noqa: S603
                [self.bin_path, *args],
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
                timeout=timeout,
            )
        except FileNotFoundError as exc:
            raise BlockedError(
                "`npm` is required. Install Node.js and ensure npm is on PATH."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ExecFailureError(f"`npm` timed out after {timeout}s") from exc
        return NpmResult(p.returncode, p.stdout or "", p.stderr or "")

    def _run(self, args: list[str]) -> str:
        r = self._exec(args)
        if r.returncode != 0:
            msg = r.stderr.strip() or f"`npm` failed (exit={r.returncode})"
            raise ExecFailureError(_truncate(msg))
        return r.stdout

    def check_connection(self) -> bool:
        try:
            r = self._exec(["ping"], timeout_s=CONNECTION_TIMEOUT_S)
        except ExecFailureError as exc:
            raise ExecFailureError("Connection to npm registry timed out") from exc
        if r.returncode != 0:
            raise ExecFailureError("Connection to npm registry failed")
        return True

    def username(self, *, external_registry: str | None = None) -> str:
        args = ["whoami"]
        if external_registry:
            args.extend(["--registry", external_registry])

        r = self._exec(args)
        if r.returncode != 0:
            if "ENEEDAUTH" in r.stderr:
                raise BlockedError("You must be logged in. Use `npm login` and try again.")
            raise BlockedError("Authentication error. Use `npm whoami` to troubleshoot.")
        return r.stdout.strip()

    def collaborators(self, package_name: str) -> str | None:
        """Raw collaborator listing, or None when the package is not published."""

        if not isinstance(package_name, str) or not package_name:
            raise ExecFailureError("package name must be a non-empty string")

        r = self._exec(["access", "ls-collaborators", package_name])
        if r.returncode != 0:
            if "code E404" in r.stderr:
                return None
            raise ExecFailureError(_truncate(r.stderr.strip() or "`npm access` failed"))
        return r.stdout.strip()

    def prerelease_tags(self, package_name: str) -> list[str]:
        if not isinstance(package_name, str) or not package_name:
            raise ExecFailureError("package name must be a non-empty string")

        tags: list[str] = []
        r = self._exec(["view", "--json", package_name, "dist-tags"])
        if r.returncode == 0:
            try:
                data = json.loads(r.stdout or "{}")
            except json.JSONDecodeError as exc:
                raise ExecFailureError("`npm view` returned invalid JSON") from exc
            if not isinstance(data, dict):
                raise ExecFailureError("Unexpected JSON shape from `npm view`")
            tags = [t for t in data if t != "latest"]
        elif _error_code(r.stdout) != "E404":
            raise ExecFailureError(_truncate(r.stderr.strip() or "`npm view` failed"))

        if not tags:
            tags.append("next")
        return tags

    def is_package_name_available(self, manifest: Mapping[str, Any]) -> bool:
        if is_external_registry(manifest):
            return True

        name = manifest.get("name")
        if not isinstance(name, str) or not name:
            raise ExecFailureError("package.json must declare a `name`")

        r = self._exec(["view", name, "name"])
        if r.returncode == 0:
            return False
        if "E404" in r.stderr or _error_code(r.stdout) == "E404":
            return True
        raise ExecFailureError(_truncate(r.stderr.strip() or "`npm view` failed"))

    def version(self) -> str:
        return self._run(["--version"]).strip()

    def verify_recent_npm_version(self) -> None:
        verify_requirement_satisfied("npm", self.version())


def _error_code(stdout: str) -> str:
    try:
        data = json.loads(stdout or "null")
    except json.JSONDecodeError:
        return ""
    if not isinstance(data, dict):
        return ""
    error = data.get("error")
    if not isinstance(error, dict):
        return ""
    code = error.get("code")
    return code if isinstance(code, str) else ""
