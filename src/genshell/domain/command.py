"""Command and option declarations plus the builder add-ons use to author them."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from genshell.domain.context import ShellContext
from genshell.domain.diagnostics import AuthoringError

if TYPE_CHECKING:  # pragma: no cover
    from genshell.app.resolver import ResolvedArguments


AvailabilityIndicator = Callable[[], bool]
VisibilityIndicator = Callable[[ShellContext], bool]
MandatoryIndicator = Callable[[ShellContext], bool]
AutocompleteIndicator = Callable[[ShellContext], Sequence[str]]
Handler = Callable[["ResolvedArguments"], Any]

_KEY_PATTERN = re.compile(r"^(?:[A-Za-z][A-Za-z0-9_.-]*)?$")


class IndicatorKind(str, Enum):
    AVAILABILITY = "availability"
    VISIBILITY = "visibility"
    MANDATORY = "mandatory"
    AUTOCOMPLETE = "autocomplete"


@dataclass(frozen=True)
class OptionSpec:
    """Declaration of one ``--key`` of a command.

    ``specified_default`` is used when the key is typed without a value,
    ``unspecified_default`` when the key is absent from the line. The static
    ``mandatory`` flag applies only while no ``mandatory_when`` indicator is
    bound.
    """

    key: str
    value_type: type = str
    help: str = ""
    mandatory: bool = False
    specified_default: Optional[str] = None
    unspecified_default: Optional[str] = None
    option_context: str = ""
    visible: Optional[VisibilityIndicator] = None
    mandatory_when: Optional[MandatoryIndicator] = None
    autocomplete: Optional[AutocompleteIndicator] = None
    validate: bool = True
    visibility_help: str = ""
    autocomplete_help: str = ""

    @property
    def is_flag(self) -> bool:
        return self.specified_default is not None

    @property
    def flag(self) -> str:
        return f"--{self.key}"

    def indicator(self, kind: IndicatorKind) -> Optional[Callable[..., Any]]:
        if kind is IndicatorKind.VISIBILITY:
            return self.visible
        if kind is IndicatorKind.MANDATORY:
            return self.mandatory_when
        if kind is IndicatorKind.AUTOCOMPLETE:
            return self.autocomplete
        return None


@dataclass(frozen=True)
class Command:
    name: str
    options: Tuple[OptionSpec, ...]
    handler: Handler
    help: str = ""
    available: Optional[AvailabilityIndicator] = None

    @property
    def words(self) -> Tuple[str, ...]:
        return tuple(self.name.split())

    def option(self, key: str) -> Optional[OptionSpec]:
        for spec in self.options:
            if spec.key == key:
                return spec
        return None

    @property
    def keys(self) -> List[str]:
        return [spec.key for spec in self.options]


class CommandBuilder:
    """Collects option declarations and indicator bindings for one command."""

    def __init__(self, name: str, *, help: str = "") -> None:
        normalised = " ".join(name.split())
        if not normalised:
            raise AuthoringError("Command name must not be blank")
        if any(word.startswith("-") for word in normalised.split()):
            raise AuthoringError(f"Command name '{normalised}' must not contain option-like words")
        self._name = normalised
        self._help = help
        self._options: Dict[str, OptionSpec] = {}
        self._bound: set[tuple[str, IndicatorKind]] = set()
        self._handler: Optional[Handler] = None
        self._available: Optional[AvailabilityIndicator] = None

    @property
    def name(self) -> str:
        return self._name

    def option(
        self,
        key: str,
        value_type: type = str,
        *,
        help: str = "",
        mandatory: bool = False,
        specified_default: Optional[str] = None,
        unspecified_default: Optional[str] = None,
        option_context: str = "",
    ) -> "CommandBuilder":
        if not _KEY_PATTERN.match(key):
            raise AuthoringError(f"Option key '{key}' of command '{self._name}' is not valid")
        if key in self._options:
            raise AuthoringError(f"Option --{key} declared twice on command '{self._name}'")
        self._options[key] = OptionSpec(
            key=key,
            value_type=value_type,
            help=help,
            mandatory=mandatory,
            specified_default=specified_default,
            unspecified_default=unspecified_default,
            option_context=option_context,
        )
        return self

    def visible_when(self, keys: Iterable[str], indicator: VisibilityIndicator, *, help: str = "") -> "CommandBuilder":
        for key in self._bind(keys, IndicatorKind.VISIBILITY):
            self._options[key] = replace(self._options[key], visible=indicator, visibility_help=help)
        return self

    def mandatory_when(self, keys: Iterable[str], indicator: MandatoryIndicator) -> "CommandBuilder":
        for key in self._bind(keys, IndicatorKind.MANDATORY):
            self._options[key] = replace(self._options[key], mandatory_when=indicator)
        return self

    def autocomplete(
        self,
        key: str,
        indicator: AutocompleteIndicator,
        *,
        help: str = "",
        validate: bool = True,
    ) -> "CommandBuilder":
        for bound in self._bind([key], IndicatorKind.AUTOCOMPLETE):
            self._options[bound] = replace(
                self._options[bound],
                autocomplete=indicator,
                autocomplete_help=help,
                validate=validate,
            )
        return self

    def available_when(self, indicator: AvailabilityIndicator) -> "CommandBuilder":
        if self._available is not None:
            raise AuthoringError(f"Availability indicator bound twice on command '{self._name}'")
        self._available = indicator
        return self

    def handler(self, handler: Handler) -> "CommandBuilder":
        self._handler = handler
        return self

    def build(self) -> Command:
        if self._handler is None:
            raise AuthoringError(f"Command '{self._name}' has no handler")
        return Command(
            name=self._name,
            options=tuple(self._options.values()),
            handler=self._handler,
            help=self._help,
            available=self._available,
        )

    def _bind(self, keys: Iterable[str], kind: IndicatorKind) -> List[str]:
        if isinstance(keys, str):
            keys = [keys]
        bound: List[str] = []
        for key in keys:
            if key not in self._options:
                raise AuthoringError(
                    f"{kind.value} indicator of command '{self._name}' names unknown option --{key}"
                )
            if (key, kind) in self._bound:
                raise AuthoringError(
                    f"{kind.value} indicator bound twice for --{key} of command '{self._name}'"
                )
            self._bound.add((key, kind))
            bound.append(key)
        return bound


__all__ = [
    "AutocompleteIndicator",
    "AvailabilityIndicator",
    "Command",
    "CommandBuilder",
    "Handler",
    "IndicatorKind",
    "MandatoryIndicator",
    "OptionSpec",
    "VisibilityIndicator",
]
