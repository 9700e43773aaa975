"""One resolution cycle end to end: resolve a line, then dispatch it."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from genshell.app.command_service import CommandRegistry
from genshell.app.converters import ConverterRegistry
from genshell.app.dispatcher import DispatchResult, Dispatcher
from genshell.app.resolver import ResolvedArguments, Resolver
from genshell.domain.context import StickyState
from genshell.domain.diagnostics import Diagnostic
from genshell.plugins import AddonContext
from genshell.plugins.loader import load_addons
from genshell.ports.project_model import ProjectModel
from genshell.settings import RuntimeSettings
from genshell.utils.telemetry import CommandEvent, record_command_event


@dataclass(frozen=True)
class ShellOutcome:
    line: str
    diagnostic: Optional[Diagnostic] = None
    dispatch: Optional[DispatchResult] = None

    @property
    def exit_code(self) -> int:
        if self.diagnostic is not None:
            return self.diagnostic.exit_code
        if self.dispatch is not None:
            return self.dispatch.status
        return 0

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"line": self.line, "exit_code": self.exit_code}
        if self.diagnostic is not None:
            payload["diagnostic"] = self.diagnostic.to_dict()
        if self.dispatch is not None:
            payload["dispatch"] = self.dispatch.to_dict()
        return payload


class ShellSession:
    """Owns the sticky state and registries shared by every line of a session."""

    def __init__(
        self,
        settings: RuntimeSettings,
        project: ProjectModel,
        commands: CommandRegistry,
        converters: ConverterRegistry,
        sticky: StickyState,
    ) -> None:
        self._settings = settings
        self._project = project
        self._commands = commands
        self._converters = converters
        self._sticky = sticky
        self._resolver = Resolver(
            commands,
            converters,
            project,
            sticky,
            strict_visibility=settings.strict_visibility,
        )
        self._dispatcher = Dispatcher(settings)

    @classmethod
    def create(cls, settings: RuntimeSettings, project: ProjectModel, *, entry_points: bool = True) -> "ShellSession":
        sticky = StickyState()
        registry = load_addons(AddonContext(settings=settings, project=project, sticky=sticky), entry_points=entry_points)
        return cls(settings, project, registry.commands, registry.converters, sticky)

    @property
    def settings(self) -> RuntimeSettings:
        return self._settings

    @property
    def project(self) -> ProjectModel:
        return self._project

    @property
    def commands(self) -> CommandRegistry:
        return self._commands

    @property
    def converters(self) -> ConverterRegistry:
        return self._converters

    @property
    def sticky(self) -> StickyState:
        return self._sticky

    @property
    def resolver(self) -> Resolver:
        return self._resolver

    def run(self, line: str) -> ShellOutcome:
        started = time.perf_counter()
        resolution = self._resolver.resolve(line)
        duration_ms = (time.perf_counter() - started) * 1000
        if isinstance(resolution, Diagnostic):
            self._record_resolution(resolution.command, resolution, duration_ms)
            return ShellOutcome(line=line, diagnostic=resolution)
        self._record_resolution(resolution.command.name, None, duration_ms)
        result = self.dispatch(resolution)
        return ShellOutcome(line=line, dispatch=result)

    def dispatch(self, arguments: ResolvedArguments) -> DispatchResult:
        return self._dispatcher.execute(arguments.command, arguments)

    def complete(self, line: str, cursor: Optional[int] = None) -> List[str]:
        return self._resolver.complete(line, cursor)

    def _record_resolution(self, command: Optional[str], diagnostic: Optional[Diagnostic], duration_ms: float) -> None:
        record_command_event(self._settings, CommandEvent.resolved(command, diagnostic, duration_ms))


__all__ = ["ShellOutcome", "ShellSession"]
