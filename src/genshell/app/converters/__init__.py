"""Converter registry and the converters shipped with genshell."""

from .base import Converter
from .builtin import (
    BooleanConverter,
    EnumConverter,
    IntegerConverter,
    ModuleRefConverter,
    PackageRefConverter,
    StringConverter,
    TypeRefConverter,
    abbreviate_type,
    register_builtin_converters,
)
from .registry import ConverterEntry, ConverterRegistry, filter_candidates

__all__ = [
    "BooleanConverter",
    "Converter",
    "ConverterEntry",
    "ConverterRegistry",
    "EnumConverter",
    "IntegerConverter",
    "ModuleRefConverter",
    "PackageRefConverter",
    "StringConverter",
    "TypeRefConverter",
    "abbreviate_type",
    "filter_candidates",
    "register_builtin_converters",
]
