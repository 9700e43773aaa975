"""Handler invocation for fully resolved command lines."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from genshell.app.resolver import ResolvedArguments
from genshell.domain.command import Command
from genshell.settings import RuntimeSettings
from genshell.utils.telemetry import CommandEvent, record_command_event

STATUS_OK = 0
STATUS_FAILED = 1


@dataclass(frozen=True)
class DispatchResult:
    command: str
    status: int
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"command": self.command, "status": self.status}
        if self.ok:
            payload["result"] = self.value
        else:
            payload["error"] = self.error
        return payload


class Dispatcher:
    """Runs the handler of a command once its arguments resolved completely.

    Sticky values committed while the arguments were parsed stay as they are
    when the handler fails.
    """

    def __init__(self, settings: RuntimeSettings | None = None) -> None:
        self._settings = settings

    def execute(self, command: Command, arguments: ResolvedArguments) -> DispatchResult:
        if not isinstance(arguments, ResolvedArguments):
            raise TypeError(f"Command '{command.name}' can only be dispatched with resolved arguments")
        if arguments.command.name != command.name:
            raise ValueError(
                f"Arguments resolved for '{arguments.command.name}' cannot be dispatched to '{command.name}'"
            )
        started = time.perf_counter()
        try:
            value = command.handler(arguments)
        except Exception as exc:
            result = DispatchResult(
                command=command.name,
                status=STATUS_FAILED,
                error=f"{type(exc).__name__}: {exc}",
            )
        else:
            result = DispatchResult(command=command.name, status=STATUS_OK, value=value)
        self._record(result, (time.perf_counter() - started) * 1000)
        return result

    def _record(self, result: DispatchResult, duration_ms: float) -> None:
        if self._settings is None:
            return
        record_command_event(self._settings, CommandEvent.dispatched(result.command, result.error, duration_ms))


__all__ = ["DispatchResult", "Dispatcher", "STATUS_FAILED", "STATUS_OK"]
