"""Domain primitives of the command resolution engine."""

from .command import Command, CommandBuilder, IndicatorKind, OptionSpec
from .context import ShellContext, StickyState
from .diagnostics import (
    AuthoringError,
    ConversionError,
    ConverterNotFoundError,
    Diagnostic,
    DiagnosticKind,
    DuplicateCommandError,
)
from .model import ModuleDetails, ModuleRef, PackageRef, TypeDetails, TypeRef

__all__ = [
    "AuthoringError",
    "Command",
    "CommandBuilder",
    "ConversionError",
    "ConverterNotFoundError",
    "Diagnostic",
    "DiagnosticKind",
    "DuplicateCommandError",
    "IndicatorKind",
    "ModuleDetails",
    "ModuleRef",
    "OptionSpec",
    "PackageRef",
    "ShellContext",
    "StickyState",
    "TypeDetails",
    "TypeRef",
]
