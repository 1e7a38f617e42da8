"""Project root lookup and package manifest access."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from .errors import BlockedError, ExecFailureError

MANIFEST = "package.json"
NPMIGNORE = ".npmignore"
GITIGNORE = ".gitignore"


def find_project_root(cwd: str | os.PathLike[str] | None = None) -> Path:
    """Return the nearest directory (starting at `cwd`) holding `package.json`."""

    start = Path(cwd if cwd is not None else os.getcwd()).resolve()
    for candidate in (start, *start.parents):
        if (candidate / MANIFEST).is_file():
            return candidate
    raise BlockedError(f"No {MANIFEST} found in {start} or any parent directory")


def read_manifest(root: str | os.PathLike[str]) -> dict[str, Any]:
    path = Path(root) / MANIFEST
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError as exc:
        raise BlockedError(f"Missing {MANIFEST}: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise ExecFailureError(f"Failed to read {MANIFEST}: {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ExecFailureError(f"Invalid {MANIFEST}: root must be an object")
    return data


def ignore_file_exists(root: str | os.PathLike[str], name: str = NPMIGNORE) -> bool:
    return (Path(root) / name).is_file()
