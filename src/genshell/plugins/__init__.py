"""Add-on loading utilities for genshell."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import metadata
from typing import Iterable, Optional, Protocol

from genshell.app.converters import Converter
from genshell.domain.command import Command
from genshell.domain.context import StickyState
from genshell.ports.project_model import ProjectModel
from genshell.settings import RuntimeSettings

ENTRY_POINT_GROUP = "genshell.addons"


@dataclass(frozen=True)
class AddonContext:
    settings: RuntimeSettings
    project: ProjectModel
    sticky: StickyState


class AddonRegistrar(Protocol):  # pragma: no cover
    def add_command(self, command: Command) -> None:
        ...

    def add_converter(
        self,
        target_type: type,
        contexts: Optional[Iterable[str]],
        converter: Converter,
        *,
        include_subclasses: bool = False,
    ) -> None:
        ...


class GenshellAddon(Protocol):  # pragma: no cover
    name: str

    def register(self, registrar: AddonRegistrar, context: AddonContext) -> None:
        ...


def iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=ENTRY_POINT_GROUP)


__all__ = ["AddonContext", "AddonRegistrar", "ENTRY_POINT_GROUP", "GenshellAddon", "iter_entry_points"]
