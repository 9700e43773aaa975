"""Runtime add-on loading for genshell."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from genshell.addons import BUILTIN_ADDONS
from genshell.app.command_service import CommandRegistry
from genshell.app.converters import Converter, ConverterRegistry, register_builtin_converters
from genshell.domain.command import Command
from genshell.plugins import AddonContext, AddonRegistrar, GenshellAddon, iter_entry_points


class Registry(AddonRegistrar):
    """Receives the commands and converters contributed by add-ons."""

    def __init__(self, context: AddonContext) -> None:
        self._context = context
        self._commands = CommandRegistry()
        self._converters = ConverterRegistry()
        self._addons: List[str] = []
        register_builtin_converters(self._converters, context.project, context.sticky)

    def add_command(self, command: Command) -> None:
        self._commands.register(command)

    def add_converter(
        self,
        target_type: type,
        contexts: Optional[Iterable[str]],
        converter: Converter,
        *,
        include_subclasses: bool = False,
    ) -> None:
        self._converters.register(target_type, contexts, converter, include_subclasses=include_subclasses)

    @property
    def context(self) -> AddonContext:
        return self._context

    @property
    def commands(self) -> CommandRegistry:
        return self._commands

    @property
    def converters(self) -> ConverterRegistry:
        return self._converters

    @property
    def addons(self) -> List[str]:
        return list(self._addons)

    def install(self, addon: GenshellAddon) -> None:
        name = getattr(addon, "name", type(addon).__name__)
        if name in self._addons:
            raise ValueError(f"Add-on {name} already registered")
        addon.register(self, self._context)
        self._addons.append(name)


def load_addons(
    context: AddonContext,
    *,
    builtins: Sequence[GenshellAddon] = BUILTIN_ADDONS,
    entry_points: bool = True,
) -> Registry:
    """Register the built-in converters and add-ons, then the installed ones."""
    registry = Registry(context)
    for addon in builtins:
        registry.install(addon)
    if entry_points:
        for entry_point in iter_entry_points():
            addon = entry_point.load()
            if isinstance(addon, type):
                addon = addon()
            register = getattr(addon, "register", None)
            if callable(register):
                registry.install(addon)
    return registry


__all__ = ["Registry", "load_addons"]
