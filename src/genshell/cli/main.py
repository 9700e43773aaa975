#!/usr/bin/env python3
"""Entry point for the genshell CLI."""

from __future__ import annotations

import argparse
import json
import logging
import os
import shlex
import sys
from collections import deque
from pathlib import Path
from typing import Any, Callable, List, Optional

from genshell import __version__
from genshell.adapters.project_file import ProjectFileModel
from genshell.app.command_service import CommandNotFoundError
from genshell.app.shell import ShellOutcome, ShellSession
from genshell.domain.diagnostics import AuthoringError
from genshell.ports.project_model import ProjectModelError
from genshell.settings import SETTINGS, RuntimeSettings
from genshell.utils.telemetry import clear as telemetry_clear
from genshell.utils.telemetry import iter_events as telemetry_iter
from genshell.utils.telemetry import summarize as telemetry_summarize

DEFAULT_PROJECT_FILE = "genshell.project.yaml"
PROMPT = "genshell> "
EXIT_OPERATOR_ERROR = 2
EXIT_AUTHORING_ERROR = 3


def _project_path(path_arg: str | None, settings: RuntimeSettings) -> Path:
    if path_arg:
        return Path(path_arg).expanduser()
    if settings.project_file is not None:
        return settings.project_file
    return Path.cwd() / DEFAULT_PROJECT_FILE


def _open_session(args: argparse.Namespace) -> ShellSession | None:
    path = _project_path(getattr(args, "project", None), SETTINGS)
    try:
        project = ProjectFileModel.load(path)
    except ProjectModelError as exc:
        print(f"genshell: {exc}", file=sys.stderr)
        return None
    try:
        return ShellSession.create(SETTINGS, project, entry_points=not getattr(args, "no_addons", False))
    except (AuthoringError, ValueError) as exc:
        print(f"genshell: add-on registration failed: {exc}", file=sys.stderr)
        return None


def _with_session(handler: Callable[[argparse.Namespace, ShellSession], int]) -> Callable[[argparse.Namespace], int]:
    def _run(args: argparse.Namespace) -> int:
        session = _open_session(args)
        if session is None:
            return EXIT_OPERATOR_ERROR
        return handler(args, session)

    return _run


def _line_from(parts: List[str]) -> str:
    if len(parts) == 1:
        return parts[0]
    return shlex.join(parts)


def _format_value(value: Any) -> str:
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    return str(value)


def _report(outcome: ShellOutcome, *, as_json: bool) -> int:
    if as_json:
        print(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False, default=str))
        return outcome.exit_code
    if outcome.diagnostic is not None:
        print(f"genshell: {outcome.diagnostic.render()}", file=sys.stderr)
    elif outcome.dispatch is not None:
        if outcome.dispatch.ok:
            if outcome.dispatch.value is not None:
                print(_format_value(outcome.dispatch.value))
        else:
            print(f"genshell: {outcome.dispatch.command} failed: {outcome.dispatch.error}", file=sys.stderr)
    return outcome.exit_code


def _run_cmd(args: argparse.Namespace, session: ShellSession) -> int:
    if not args.line:
        print("genshell: run requires a command line", file=sys.stderr)
        return EXIT_OPERATOR_ERROR
    return _report(session.run(_line_from(args.line)), as_json=args.json)


def _complete_cmd(args: argparse.Namespace, session: ShellSession) -> int:
    candidates = session.complete(args.line, args.cursor)
    if args.json:
        print(json.dumps(candidates, ensure_ascii=False))
        return 0
    for candidate in candidates:
        print(candidate)
    return 0


def _commands_cmd(args: argparse.Namespace, session: ShellSession) -> int:
    if args.name:
        try:
            selected = [session.commands.get(" ".join(args.name))]
        except CommandNotFoundError as exc:
            print(f"genshell: {exc}", file=sys.stderr)
            return EXIT_OPERATOR_ERROR
    else:
        selected = list(session.commands)
    rows = []
    for command in selected:
        rows.append(
            {
                "name": command.name,
                "available": session.commands.is_available(command),
                "help": command.help,
                "options": [
                    {
                        "key": option.key,
                        "type": getattr(option.value_type, "__name__", str(option.value_type)),
                        "help": option.help,
                    }
                    for option in command.options
                ],
            }
        )
    if args.json:
        print(json.dumps(rows, indent=2, ensure_ascii=False))
        return 0
    for row in rows:
        marker = " " if row["available"] else "-"
        print(f"{marker} {row['name']:<20} {row['help']}")
        for option in row["options"]:
            print(f"    --{option['key']:<16} {option['type']:<12} {option['help']}")
    return 0


def _check_cmd(args: argparse.Namespace, session: ShellSession) -> int:
    missing = session.commands.unresolved_options(session.converters)
    if not missing:
        print(f"{len(session.commands)} commands, {len(session.converters)} converters: ok")
        return 0
    for command, key in missing:
        print(f"genshell: ConverterNotFound [--{key}]: no converter for option of '{command}'", file=sys.stderr)
    return EXIT_AUTHORING_ERROR


class Completer:
    """readline completer backed by the session resolver."""

    def __init__(
        self,
        session: ShellSession,
        buffer: Callable[[], str],
        begin: Callable[[], int],
        end: Callable[[], int],
    ) -> None:
        self._session = session
        self._buffer = buffer
        self._begin = begin
        self._end = end
        self._matches: List[str] = []

    def complete(self, text: str, state: int) -> Optional[str]:
        if state == 0:
            line = self._buffer()
            typed = " ".join(line[: self._begin()].split())
            self._matches = []
            for candidate in self._session.complete(line, self._end()):
                if typed and candidate.startswith(typed + " "):
                    candidate = candidate[len(typed) + 1:]
                self._matches.append(candidate)
        if state < len(self._matches):
            return self._matches[state]
        return None


def _shell_cmd(args: argparse.Namespace, session: ShellSession) -> int:
    import readline  # not available on every platform

    completer = Completer(session, readline.get_line_buffer, readline.get_begidx, readline.get_endidx)
    readline.set_completer(completer.complete)
    readline.set_completer_delims(" \t\n")
    readline.parse_and_bind("tab: complete")
    history_path = session.settings.history_file
    try:
        readline.read_history_file(history_path)
    except FileNotFoundError:
        pass
    last = 0
    try:
        while True:
            try:
                line = input(PROMPT)
            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                print()
                continue
            line = line.strip()
            if not line:
                continue
            if line in {"exit", "quit"}:
                break
            last = _report(session.run(line), as_json=False)
    finally:
        history_path.parent.mkdir(parents=True, exist_ok=True)
        readline.write_history_file(history_path)
    return last


def _telemetry_cmd(args: argparse.Namespace) -> int:
    if args.telemetry_command == "summary":
        print(json.dumps(telemetry_summarize(telemetry_iter(SETTINGS)), indent=2, ensure_ascii=False))
        return 0
    if args.telemetry_command == "clear":
        telemetry_clear(SETTINGS)
        print("Telemetry log cleared")
        return 0
    if args.telemetry_command == "tail":
        window: deque = deque(maxlen=args.limit)
        for evt in telemetry_iter(SETTINGS):
            window.append(evt)
        for evt in window:
            print(json.dumps(evt, ensure_ascii=False))
        return 0
    print("Unsupported telemetry command", file=sys.stderr)
    return EXIT_OPERATOR_ERROR


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="genshell",
        description="Resolve, complete and dispatch code-generation shell commands.",
    )
    parser.add_argument("--version", action="version", version=f"genshell {__version__}")
    parser.add_argument(
        "--project",
        help=f"Project descriptor (default: $GENSHELL_PROJECT or ./{DEFAULT_PROJECT_FILE})",
    )
    parser.add_argument("--no-addons", action="store_true", help="Skip add-ons installed through entry points")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show informational add-on messages")

    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Resolve and execute one command line")
    run_cmd.add_argument("--json", action="store_true", help="Emit the outcome as JSON")
    run_cmd.add_argument(
        "line",
        nargs=argparse.REMAINDER,
        help="Command line; a single argument is used verbatim, several are shell-joined",
    )
    run_cmd.set_defaults(func=_with_session(_run_cmd))

    complete_cmd = sub.add_parser("complete", help="List completion candidates for a partial line")
    complete_cmd.add_argument("line", help="Partial command line")
    complete_cmd.add_argument("--cursor", type=int, default=None, help="Cursor offset (default: end of line)")
    complete_cmd.add_argument("--json", action="store_true", help="Emit candidates as a JSON list")
    complete_cmd.set_defaults(func=_with_session(_complete_cmd))

    commands_cmd = sub.add_parser("commands", help="List registered commands and their options")
    commands_cmd.add_argument("name", nargs="*", help="Show only this command (e.g. security setup)")
    commands_cmd.add_argument("--json", action="store_true")
    commands_cmd.set_defaults(func=_with_session(_commands_cmd))

    check_cmd = sub.add_parser("check", help="Verify every option has a converter")
    check_cmd.set_defaults(func=_with_session(_check_cmd))

    shell_cmd = sub.add_parser("shell", help="Interactive shell with tab completion")
    shell_cmd.set_defaults(func=_with_session(_shell_cmd))

    telemetry_cmd = sub.add_parser("telemetry", help="Inspect the local telemetry log")
    telemetry_sub = telemetry_cmd.add_subparsers(dest="telemetry_command", required=True)
    telemetry_sub.add_parser("summary", help="Aggregate events by name and status")
    tail_cmd = telemetry_sub.add_parser("tail", help="Print the most recent events")
    tail_cmd.add_argument("--limit", type=int, default=20)
    telemetry_sub.add_parser("clear", help="Delete the telemetry log")
    telemetry_cmd.set_defaults(func=_telemetry_cmd)

    return parser


def _configure_logging(verbose: bool) -> None:
    level = logging.INFO if verbose or os.getenv("GENSHELL_VERBOSE") else logging.WARNING
    logging.basicConfig(level=level, format="[%(asctime)s] %(levelname)s: %(message)s")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    _configure_logging(args.verbose or args.command == "shell")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
