"""Registration-ordered converter lookup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, List, Optional, Tuple

from genshell.domain import option_contexts
from genshell.domain.diagnostics import ConverterNotFoundError

from .base import Converter


@dataclass(frozen=True)
class ConverterEntry:
    target_type: type
    contexts: Optional[FrozenSet[str]]
    converter: Converter
    include_subclasses: bool = False

    def matches(self, target_type: type, option_context: str) -> bool:
        if self.target_type is not target_type:
            if not self.include_subclasses:
                return False
            if not (isinstance(target_type, type) and issubclass(target_type, self.target_type)):
                return False
        if self.contexts is not None and not option_contexts.selectors(option_context) <= self.contexts:
            return False
        return self.converter.supports(target_type, option_context)


class ConverterRegistry:
    """Ordered list of converters; the first matching entry wins.

    Two entries serving the same type and context are tolerated: the one
    registered first shadows the other.
    """

    def __init__(self) -> None:
        self._entries: List[ConverterEntry] = []

    def register(
        self,
        target_type: type,
        contexts: Optional[Iterable[str]],
        converter: Converter,
        *,
        include_subclasses: bool = False,
    ) -> None:
        frozen = None if contexts is None else frozenset(contexts)
        self._entries.append(
            ConverterEntry(
                target_type=target_type,
                contexts=frozen,
                converter=converter,
                include_subclasses=include_subclasses,
            )
        )

    def entries(self) -> Tuple[ConverterEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def find(self, target_type: type, option_context: str = "") -> Optional[Converter]:
        for entry in self._entries:
            if entry.matches(target_type, option_context):
                return entry.converter
        return None

    def require(self, target_type: type, option_context: str = "") -> Converter:
        converter = self.find(target_type, option_context)
        if converter is None:
            raise ConverterNotFoundError(
                f"No converter registered for {_type_name(target_type)} (context '{option_context}')"
            )
        return converter

    def convert(self, text: str, target_type: type, option_context: str = "") -> Any:
        return self.require(target_type, option_context).convert_from_text(text, target_type, option_context)

    def to_text(self, value: Any, target_type: type, option_context: str = "") -> str:
        return self.require(target_type, option_context).to_text(value)

    def complete(self, target_type: type, option_context: str, partial: str) -> List[str]:
        converter = self.find(target_type, option_context)
        if converter is None:
            return []
        values = converter.get_all_possible_values(partial, target_type, option_context)
        return filter_candidates(values, partial)


def filter_candidates(values: Iterable[str], partial: str) -> List[str]:
    seen: set[str] = set()
    result: List[str] = []
    for value in values:
        if not value or value in seen or not value.startswith(partial):
            continue
        seen.add(value)
        result.append(value)
    return result


def _type_name(target_type: type) -> str:
    return getattr(target_type, "__name__", repr(target_type))


__all__ = ["ConverterEntry", "ConverterRegistry", "filter_candidates"]
