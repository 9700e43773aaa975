"""Command registration for the shell."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from genshell.app.converters import ConverterRegistry
from genshell.domain.command import Command, IndicatorKind
from genshell.domain.diagnostics import DuplicateCommandError

logger = logging.getLogger(__name__)

IndicatorKey = Tuple[str, str, IndicatorKind]

_OPTION_INDICATORS = (IndicatorKind.VISIBILITY, IndicatorKind.MANDATORY, IndicatorKind.AUTOCOMPLETE)


class CommandNotFoundError(LookupError):
    pass


class CommandRegistry:
    """Holds every registered command and the indicator table built from them.

    Indicators are stored under ``(command, option, kind)``; availability
    indicators use an empty option key.
    """

    def __init__(self) -> None:
        self._commands: Dict[str, Command] = {}
        self._indicators: Dict[IndicatorKey, Callable[..., object]] = {}

    def register(self, command: Command) -> None:
        if command.name in self._commands:
            raise DuplicateCommandError(f"Command '{command.name}' already registered")
        self._commands[command.name] = command
        if command.available is not None:
            self._indicators[(command.name, "", IndicatorKind.AVAILABILITY)] = command.available
        for option in command.options:
            for kind in _OPTION_INDICATORS:
                indicator = option.indicator(kind)
                if indicator is not None:
                    self._indicators[(command.name, option.key, kind)] = indicator

    def get(self, name: str) -> Command:
        normalised = " ".join(name.split())
        if normalised not in self._commands:
            raise CommandNotFoundError(f"Command {normalised} not registered")
        return self._commands[normalised]

    def indicator(self, command: str, option: str, kind: IndicatorKind) -> Optional[Callable[..., object]]:
        return self._indicators.get((command, option, kind))

    def is_available(self, command: Command) -> bool:
        """Evaluate availability; an indicator that raises counts as unavailable."""
        indicator = self.indicator(command.name, "", IndicatorKind.AVAILABILITY)
        if indicator is None:
            return True
        try:
            return bool(indicator())
        except Exception as exc:
            logger.warning("Availability of '%s' could not be evaluated: %s: %s", command.name, type(exc).__name__, exc)
            return False

    def match(self, words: Sequence[str]) -> Optional[Tuple[Command, int]]:
        """Return the command with the longest name that prefixes ``words``."""
        best: Optional[Command] = None
        for command in self._commands.values():
            size = len(command.words)
            if size > len(words) or tuple(words[:size]) != command.words:
                continue
            if best is None or size > len(best.words):
                best = command
        if best is None:
            return None
        return best, len(best.words)

    def list_commands(self) -> List[str]:
        return sorted(self._commands)

    def __iter__(self) -> Iterator[Command]:
        for name in self.list_commands():
            yield self._commands[name]

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and " ".join(name.split()) in self._commands

    def unresolved_options(self, converters: ConverterRegistry) -> List[Tuple[str, str]]:
        """List ``(command, option)`` pairs whose value type has no converter."""
        missing: List[Tuple[str, str]] = []
        for command in self:
            for option in command.options:
                if converters.find(option.value_type, option.option_context) is None:
                    missing.append((command.name, option.key))
        return missing


__all__ = ["CommandNotFoundError", "CommandRegistry"]
