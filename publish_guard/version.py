"""Tool version requirements."""

from __future__ import annotations

import re

from .errors import BlockedError, ExecFailureError

MIN_VERSIONS: dict[str, str] = {
    "npm": "6.8.0",
    "git": "2.11.0",
}

_VERSION_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)")


def parse_version(value: str) -> tuple[int, int, int]:
    m = _VERSION_RE.search(value or "")
    if m is None:
        raise ExecFailureError(f"Invalid version string: {value!r}")
    return int(m.group(1)), int(m.group(2)), int(m.group(3))


def verify_requirement_satisfied(dependency: str, version: str) -> None:
    """Raise BlockedError when `version` is older than the supported minimum."""

    required = MIN_VERSIONS.get(dependency)
    if required is None:
        raise ExecFailureError(f"No version requirement for {dependency!r}")
    if parse_version(version) < parse_version(required):
        raise BlockedError(
            f"Please upgrade to {dependency}>={required} (found {version.strip()})"
        )
