"""Converters shipped with the engine."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Tuple

from genshell.domain import option_contexts
from genshell.domain.context import StickyState, effective_focused_module
from genshell.domain.diagnostics import ConversionError
from genshell.domain.model import (
    TOP_LEVEL_PACKAGE_SYMBOL,
    ModuleRef,
    PackageRef,
    TypeDetails,
    TypeRef,
    qualify,
    split_module,
)
from genshell.ports.project_model import ProjectModel, ProjectModelError

from .base import Converter
from .registry import ConverterRegistry

_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}


class StringConverter(Converter):
    def supports(self, target_type: type, option_context: str) -> bool:
        return target_type is str

    def convert_from_text(self, text: str, target_type: type, option_context: str) -> Any:
        return text

    def get_all_possible_values(self, text: str, target_type: type, option_context: str) -> List[str]:
        return []


class BooleanConverter(Converter):
    def supports(self, target_type: type, option_context: str) -> bool:
        return target_type is bool

    def convert_from_text(self, text: str, target_type: type, option_context: str) -> Any:
        lowered = text.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ConversionError(f"'{text}' is not a boolean (expected true or false)")

    def get_all_possible_values(self, text: str, target_type: type, option_context: str) -> List[str]:
        return ["true", "false"]

    def to_text(self, value: Any) -> str:
        return "true" if value else "false"


class IntegerConverter(Converter):
    def supports(self, target_type: type, option_context: str) -> bool:
        return target_type is int

    def convert_from_text(self, text: str, target_type: type, option_context: str) -> Any:
        try:
            return int(text.strip())
        except ValueError as exc:
            raise ConversionError(f"'{text}' is not an integer") from exc

    def get_all_possible_values(self, text: str, target_type: type, option_context: str) -> List[str]:
        return []


class EnumConverter(Converter):
    def supports(self, target_type: type, option_context: str) -> bool:
        return isinstance(target_type, type) and issubclass(target_type, Enum)

    def convert_from_text(self, text: str, target_type: type, option_context: str) -> Any:
        wanted = text.strip().lower()
        for member in target_type:  # type: ignore[attr-defined]
            if member.name.lower() == wanted:
                return member
        raise ConversionError(f"'{text}' is not one of {', '.join(self._names(target_type))}")

    def get_all_possible_values(self, text: str, target_type: type, option_context: str) -> List[str]:
        return self._names(target_type)

    def to_text(self, value: Any) -> str:
        return value.name

    @staticmethod
    def _names(target_type: type) -> List[str]:
        return [member.name for member in target_type]  # type: ignore[attr-defined]


def _under(name: str, package: str) -> bool:
    return name == package or name.startswith(package + ".")


def abbreviate_type(ref: TypeRef, current_text: str, project: ProjectModel, focused: str) -> str:
    """Render ``ref`` the way an operator would type it.

    Types outside the focused module get a ``module:`` prefix, and the
    top-level package collapses to ``~`` unless the typed text already spells
    the full name.
    """
    current_text = current_text or ""
    prefix = ""
    if ref.module and ref.module != focused:
        prefix = qualify(ref.module, "")
        top = project.top_level_package(ref.module)
    elif ref.module and current_text and (current_text.startswith(ref.module) or ref.module.startswith(current_text)):
        prefix = qualify(ref.module, "")
        top = project.top_level_package(ref.module)
    else:
        top = project.top_level_package(focused)
    if _under(ref.name, top):
        abbreviated = prefix + TOP_LEVEL_PACKAGE_SYMBOL + ref.name[len(top):]
        if not current_text or abbreviated.startswith(current_text):
            return abbreviated
    return prefix + ref.name


def _expand_top_level(rest: str, module: str, project: ProjectModel, focused: str) -> Tuple[str, str]:
    """Expand a leading ``~`` in ``rest`` and return ``(dotted_name, module)``."""
    if not rest.startswith(TOP_LEVEL_PACKAGE_SYMBOL):
        return rest, module
    owner = module or focused
    try:
        top = project.top_level_package(owner)
    except ProjectModelError as exc:
        raise ConversionError(str(exc)) from exc
    tail = rest[len(TOP_LEVEL_PACKAGE_SYMBOL):]
    if tail and not tail.startswith("."):
        raise ConversionError(f"'{rest}' must continue with '.' after '{TOP_LEVEL_PACKAGE_SYMBOL}'")
    return top + tail, owner


class _ProjectAwareConverter(Converter):
    def __init__(self, project: ProjectModel, sticky: StickyState) -> None:
        self._project = project
        self._sticky = sticky

    def _focused(self) -> str:
        return effective_focused_module(self._project, self._sticky)

    def _split(self, text: str) -> Tuple[str, str]:
        module, rest = split_module(text.strip())
        if module and module not in self._project.module_names():
            raise ConversionError(f"Module '{module}' does not exist in this project")
        return module, rest


class TypeRefConverter(_ProjectAwareConverter):
    """``[module:]dotted.Type``; ``~`` is the top-level package, ``*`` the last used type."""

    LAST_USED_SYMBOL = "*"

    def supports(self, target_type: type, option_context: str) -> bool:
        return target_type is TypeRef

    def convert_from_text(self, text: str, target_type: type, option_context: str) -> Any:
        stripped = text.strip()
        if not stripped:
            raise ConversionError("A type name is required")
        if stripped == self.LAST_USED_SYMBOL:
            value = self._sticky.last_used(TypeRef)
            if value is None:
                raise ConversionError("No type has been used yet; '*' cannot be resolved")
        else:
            module, rest = self._split(stripped)
            name, owner = _expand_top_level(rest, module, self._project, self._focused())
            try:
                value = TypeRef(name, owner)
            except ValueError as exc:
                raise ConversionError(str(exc)) from exc
        self._apply_effects(value, option_context)
        return value

    def get_all_possible_values(self, text: str, target_type: type, option_context: str) -> List[str]:
        focused = self._focused()
        return [
            abbreviate_type(details.ref, text, self._project, focused)
            for details in self._candidates(option_context)
        ]

    def _candidates(self, option_context: str) -> List[TypeDetails]:
        selectors = option_contexts.selectors(option_context)
        types = self._project.find_types()
        if option_contexts.INTERFACE in selectors:
            return [details for details in types if details.is_interface]
        if option_contexts.SUPERCLASS in selectors:
            return [details for details in types if details.is_extendable]
        return types

    def _apply_effects(self, value: TypeRef, option_context: str) -> None:
        if option_contexts.updates_last_used(option_context):
            self._sticky.record_last_used(TypeRef, value)
        if option_contexts.updates_focus(option_context) and value.module:
            self._sticky.focus_module(value.module)


class PackageRefConverter(_ProjectAwareConverter):
    def supports(self, target_type: type, option_context: str) -> bool:
        return target_type is PackageRef

    def convert_from_text(self, text: str, target_type: type, option_context: str) -> Any:
        stripped = text.strip()
        if not stripped:
            raise ConversionError("A package name is required")
        module, rest = self._split(stripped)
        name, owner = _expand_top_level(rest, module, self._project, self._focused())
        try:
            return PackageRef(name, owner)
        except ValueError as exc:
            raise ConversionError(str(exc)) from exc

    def get_all_possible_values(self, text: str, target_type: type, option_context: str) -> List[str]:
        focused = self._focused()
        packages: Dict[Tuple[str, str], None] = {}
        for module in self._project.module_names():
            packages[(module, self._project.top_level_package(module))] = None
        for details in self._project.find_types():
            package = details.ref.package
            if package:
                packages[(details.module, package)] = None
        candidates: List[str] = []
        for module, package in packages:
            prefix = qualify(module, "") if module and module != focused else ""
            top = self._project.top_level_package(module if prefix else focused)
            if _under(package, top):
                abbreviated = prefix + TOP_LEVEL_PACKAGE_SYMBOL + package[len(top):]
                if not text or abbreviated.startswith(text):
                    candidates.append(abbreviated)
                    continue
            candidates.append(prefix + package)
        return candidates


class ModuleRefConverter(_ProjectAwareConverter):
    def supports(self, target_type: type, option_context: str) -> bool:
        return target_type is ModuleRef

    def convert_from_text(self, text: str, target_type: type, option_context: str) -> Any:
        stripped = text.strip()
        name = "" if stripped == TOP_LEVEL_PACKAGE_SYMBOL else stripped
        if not stripped or name not in self._project.module_names():
            raise ConversionError(f"Module '{stripped}' does not exist in this project")
        value = ModuleRef(name)
        if option_contexts.updates_focus(option_context):
            self._sticky.focus_module(name)
        return value

    def get_all_possible_values(self, text: str, target_type: type, option_context: str) -> List[str]:
        return [ModuleRef(name).to_text() for name in self._project.module_names()]

    def to_text(self, value: Any) -> str:
        return value.to_text()


def register_builtin_converters(registry: ConverterRegistry, project: ProjectModel, sticky: StickyState) -> None:
    registry.register(str, None, StringConverter())
    registry.register(bool, None, BooleanConverter())
    registry.register(int, None, IntegerConverter())
    registry.register(Enum, None, EnumConverter(), include_subclasses=True)
    registry.register(
        TypeRef,
        {option_contexts.PROJECT, option_contexts.INTERFACE, option_contexts.SUPERCLASS},
        TypeRefConverter(project, sticky),
    )
    registry.register(PackageRef, None, PackageRefConverter(project, sticky))
    registry.register(ModuleRef, None, ModuleRefConverter(project, sticky))


__all__ = [
    "BooleanConverter",
    "EnumConverter",
    "IntegerConverter",
    "ModuleRefConverter",
    "PackageRefConverter",
    "StringConverter",
    "TypeRefConverter",
    "abbreviate_type",
    "register_builtin_converters",
]
