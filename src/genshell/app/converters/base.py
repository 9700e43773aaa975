"""Converter plug-in contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List


class Converter(ABC):
    """Turns option text into typed values and offers completions for it."""

    @abstractmethod
    def supports(self, target_type: type, option_context: str) -> bool:
        """Return whether this converter handles ``target_type`` in ``option_context``."""

    @abstractmethod
    def convert_from_text(self, text: str, target_type: type, option_context: str) -> Any:
        """Parse ``text``; raise ``ConversionError`` when it is not a valid value."""

    @abstractmethod
    def get_all_possible_values(self, text: str, target_type: type, option_context: str) -> List[str]:
        """Return completion candidates for the partial ``text``, in display order.

        Must not write sticky shell state.
        """

    def to_text(self, value: Any) -> str:
        return str(value)


__all__ = ["Converter"]
