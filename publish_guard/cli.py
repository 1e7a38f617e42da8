"""CLI entrypoint for publish-guard."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
import time
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, NoReturn

from .errors import BlockedError, ExecFailureError, ExitCode
from .git_util import GitClient
from .leaks import LeakCheckDeps, ignore_strategy_warning, new_and_unpublished_files
from .npm.client import NpmClient, is_external_registry
from .project import find_project_root, read_manifest

PROG = "publish-guard"


@dataclass(frozen=True)
class ParserExit(Exception):
    code: int
    message: str = ""


class ThrowingArgumentParser(argparse.ArgumentParser):
    def exit(self, status: int = 0, message: str | None = None) -> NoReturn:  # type: ignore[override]
        if message:
            self._print_message(message, sys.stderr if status else sys.stdout)
        raise ParserExit(status, message or "")

    def error(self, message: str) -> NoReturn:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self._print_message(f"{self.prog}: error: {message}\n", sys.stderr)
        raise ParserExit(2, f"{self.prog}: error: {message}\n")


def parse_cwd(value: str) -> str:
    v = value.strip()
    if not v:
        raise argparse.ArgumentTypeError("--cwd must not be empty")
    if not os.path.isdir(v):
        raise argparse.ArgumentTypeError(f"--cwd is not a directory: {v}")
    return v


def build_parser() -> ThrowingArgumentParser:
    parser = ThrowingArgumentParser(prog=PROG)
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser(
        "check", help="Report new files that would be published unintentionally"
    )
    check.add_argument("--cwd", default=None, type=parse_cwd)
    check.set_defaults(_handler=handle_check)

    preflight = sub.add_parser("preflight", help="Run npm registry checks")
    preflight.add_argument("--cwd", default=None, type=parse_cwd)
    preflight.set_defaults(_handler=handle_preflight)

    return parser


def warn(message: str) -> None:
    print(f"[{PROG}] WARNING: {message}", file=sys.stderr)


def handle_check(args: argparse.Namespace) -> dict[str, Any]:
    root = find_project_root(args.cwd)
    manifest = read_manifest(root)

    warning = ignore_strategy_warning(manifest, root=root)
    if warning:
        warn(warning)

    deps = LeakCheckDeps(locate_root=lambda: root)
    leaks = asyncio.run(
        new_and_unpublished_files(manifest, deps=deps, git=GitClient.from_env())
    )

    for path in leaks or []:
        warn(f"new file not covered by `files` or .npmignore: {path}")

    return {
        "action": "check",
        "root": str(root),
        "strategy": leaks is not None,
        "files": list(leaks or []),
    }


def handle_preflight(args: argparse.Namespace) -> dict[str, Any]:
    root = find_project_root(args.cwd)
    manifest = read_manifest(root)
    npm = NpmClient.from_env()

    external = is_external_registry(manifest)
    registry = manifest["publishConfig"]["registry"] if external else None

    if not external:
        npm.check_connection()
    npm.verify_recent_npm_version()
    GitClient.from_env().verify_recent_git_version()
    username = npm.username(external_registry=registry)
    name_available = npm.is_package_name_available(manifest)

    return {
        "action": "preflight",
        "root": str(root),
        "external_registry": registry or "",
        "username": username,
        "name_available": name_available,
    }


def main(argv: Iterable[str] | None = None) -> int:
    argv_list = list(argv) if argv is not None else sys.argv[1:]
    t0 = time.monotonic()

    exit_code: int = int(ExitCode.EXEC_FAILURE)
    status = "unknown"
    result: dict[str, Any] = {}
    error: dict[str, Any] | None = None

    try:
        parser = build_parser()
        args = parser.parse_args(argv_list)
        handler = getattr(args, "_handler", None)
        if handler is None:
            raise BlockedError("No handler configured for this command")
        result = handler(args)
        status = "ok"
        exit_code = int(ExitCode.SUCCESS)
    except ParserExit as exc:
        # argparse already printed usage/help.
        if exc.code == 0:
            return int(ExitCode.SUCCESS)
        return int(ExitCode.EXEC_FAILURE)
    except BlockedError as exc:
        status = "blocked"
        exit_code = int(ExitCode.BLOCKED)
        error = {"message": str(exc)}
        print(f"[{PROG}] BLOCKED: {exc}", file=sys.stderr)
    except ExecFailureError as exc:
        status = "exec_failure"
        exit_code = int(ExitCode.EXEC_FAILURE)
        error = {"message": str(exc)}
        print(f"[{PROG}] ERROR: {exc}", file=sys.stderr)
    except Exception as exc:  # noqa: BLE001
        status = "exec_failure"
        exit_code = int(ExitCode.EXEC_FAILURE)
        error = {"type": type(exc).__name__, "message": str(exc)}
        print(f"[{PROG}] ERROR: {type(exc).__name__}: {exc}", file=sys.stderr)

    payload: dict[str, Any] = {
        "schema_version": 1,
        "duration_ms": int((time.monotonic() - t0) * 1000),
        "status": status,
        "exit_code": exit_code,
        "result": result,
    }
    if error is not None:
        payload["error"] = error

    print(json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True))
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
