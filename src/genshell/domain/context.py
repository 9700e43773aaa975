"""Sticky shell state and the per-evaluation shell context."""

from __future__ import annotations

from contextlib import contextmanager
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterator, Mapping

if TYPE_CHECKING:  # pragma: no cover
    from genshell.ports.project_model import ProjectModel


_UNSET = object()


class StickyStage:
    """Buffered sticky writes made while one line is being resolved."""

    def __init__(self, state: "StickyState") -> None:
        self._state = state
        self.focused_module: Any = _UNSET
        self.last_used: Dict[type, Any] = {}
        self.committed = False

    @property
    def dirty(self) -> bool:
        return self.focused_module is not _UNSET or bool(self.last_used)

    def commit(self) -> None:
        self._state._apply(self)
        self.focused_module = _UNSET
        self.last_used = {}
        self.committed = True


class StickyState:
    """Process-wide values that persist between resolution cycles.

    Created empty when the shell starts and written only by converters whose
    option context carries an update effect.
    """

    def __init__(self) -> None:
        self._focused_module: str | None = None
        self._last_used: Dict[type, Any] = {}
        self._stage: StickyStage | None = None

    @property
    def focused_module(self) -> str | None:
        if self._stage is not None and self._stage.focused_module is not _UNSET:
            return self._stage.focused_module
        return self._focused_module

    def last_used(self, kind: type) -> Any:
        if self._stage is not None and kind in self._stage.last_used:
            return self._stage.last_used[kind]
        return self._last_used.get(kind)

    def focus_module(self, name: str) -> None:
        if self._stage is not None:
            self._stage.focused_module = name
            return
        self._focused_module = name

    def record_last_used(self, kind: type, value: Any) -> None:
        if self._stage is not None:
            self._stage.last_used[kind] = value
            return
        self._last_used[kind] = value

    @contextmanager
    def staged(self) -> Iterator[StickyStage]:
        """Buffer writes until ``commit`` is called on the yielded stage."""
        if self._stage is not None:
            raise RuntimeError("Sticky state is already staged")
        stage = StickyStage(self)
        self._stage = stage
        try:
            yield stage
        finally:
            self._stage = None

    def snapshot(self) -> Dict[str, Any]:
        return {
            "focused_module": self._focused_module,
            "last_used": {kind.__name__: value for kind, value in self._last_used.items()},
        }

    def _apply(self, stage: StickyStage) -> None:
        if stage.focused_module is not _UNSET:
            self._focused_module = stage.focused_module
        self._last_used.update(stage.last_used)


def effective_focused_module(project: "ProjectModel", sticky: StickyState) -> str:
    focused = sticky.focused_module
    if focused is not None:
        return focused
    return project.focused_module()


class ShellContext:
    """Read-only view of what has been typed so far, handed to indicators."""

    def __init__(
        self,
        parameters: Mapping[str, str],
        project: "ProjectModel",
        sticky: StickyState,
        *,
        command: str = "",
    ) -> None:
        self._parameters = MappingProxyType(dict(parameters))
        self._project = project
        self._sticky = sticky
        self._command = command

    @property
    def command(self) -> str:
        return self._command

    @property
    def parameters(self) -> Mapping[str, str]:
        return self._parameters

    @property
    def project(self) -> "ProjectModel":
        return self._project

    def has_parameter(self, key: str) -> bool:
        return key in self._parameters

    def has_value(self, key: str) -> bool:
        return bool(self._parameters.get(key, "").strip())

    def get_parameter(self, key: str, default: str | None = None) -> str | None:
        return self._parameters.get(key, default)

    @property
    def focused_module(self) -> str:
        return effective_focused_module(self._project, self._sticky)

    def last_used(self, kind: type) -> Any:
        return self._sticky.last_used(kind)

    def with_parameters(self, extra: Mapping[str, str]) -> "ShellContext":
        merged = dict(self._parameters)
        merged.update(extra)
        return ShellContext(merged, self._project, self._sticky, command=self._command)


__all__ = ["ShellContext", "StickyStage", "StickyState", "effective_focused_module"]
