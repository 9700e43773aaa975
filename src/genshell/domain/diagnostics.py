"""Diagnostics returned by command resolution and the authoring errors behind them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class DiagnosticKind(str, Enum):
    UNKNOWN_COMMAND = "UnknownCommand"
    UNKNOWN_OPTION = "UnknownOption"
    MALFORMED_LINE = "MalformedLine"
    MISSING_MANDATORY_OPTION = "MissingMandatoryOption"
    INVALID_VALUE = "InvalidValue"
    VISIBILITY_VIOLATION = "VisibilityViolation"
    CONVERTER_NOT_FOUND = "ConverterNotFound"
    INDICATOR_CYCLE = "IndicatorCycle"
    INDICATOR_FAILURE = "IndicatorFailure"
    CONVERTER_FAILURE = "ConverterFailure"

    @property
    def is_authoring_defect(self) -> bool:
        return self in _AUTHORING_DEFECTS


_AUTHORING_DEFECTS = frozenset(
    {
        DiagnosticKind.CONVERTER_NOT_FOUND,
        DiagnosticKind.INDICATOR_CYCLE,
        DiagnosticKind.INDICATOR_FAILURE,
        DiagnosticKind.CONVERTER_FAILURE,
    }
)


@dataclass(frozen=True)
class Diagnostic:
    """Structured reason a line could not be resolved."""

    kind: DiagnosticKind
    message: str
    option: str | None = None
    command: str | None = None

    @property
    def exit_code(self) -> int:
        return 3 if self.kind.is_authoring_defect else 2

    def render(self) -> str:
        where = ""
        if self.option is not None:
            where = f" [--{self.option}]" if self.option else " [<default>]"
        return f"{self.kind.value}{where}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.option is not None:
            payload["option"] = self.option
        if self.command is not None:
            payload["command"] = self.command
        return payload


class AuthoringError(RuntimeError):
    """Raised while registering commands that are declared inconsistently."""


class DuplicateCommandError(AuthoringError):
    pass


class ConverterNotFoundError(AuthoringError):
    pass


class ConversionError(ValueError):
    """Raised by converters for text that cannot be turned into a value."""


__all__ = [
    "AuthoringError",
    "ConversionError",
    "ConverterNotFoundError",
    "Diagnostic",
    "DiagnosticKind",
    "DuplicateCommandError",
]
