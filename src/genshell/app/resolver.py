"""Resolves typed shell lines against registered commands.

A line is resolved in one pass: command match, availability, option tokens,
indicator fixed point, visibility policy, absence of mandatory options,
converter lookup, candidate validation and finally conversion. The first
problem found is returned as a ``Diagnostic``; nothing here raises past
``resolve`` or ``complete``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from genshell.app.command_service import CommandRegistry
from genshell.app.converters import ConverterRegistry, filter_candidates
from genshell.app.tokens import Token, TokenizeError, tokenize
from genshell.domain.command import Command, IndicatorKind, OptionSpec
from genshell.domain.context import ShellContext, StickyState
from genshell.domain.diagnostics import Diagnostic, DiagnosticKind
from genshell.ports.project_model import ProjectModel

logger = logging.getLogger(__name__)


class ResolvedArguments(Mapping):
    """Typed values of the visible options of a fully resolved line."""

    def __init__(self, command: Command, values: Mapping[str, Any], supplied: Iterable[str] = ()) -> None:
        self._command = command
        self._values = dict(values)
        self._supplied: FrozenSet[str] = frozenset(supplied)

    @property
    def command(self) -> Command:
        return self._command

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def was_supplied(self, key: str) -> bool:
        return key in self._supplied

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def __repr__(self) -> str:
        return f"ResolvedArguments({self._command.name!r}, {self._values!r})"


Resolution = Union[ResolvedArguments, Diagnostic]


@dataclass(frozen=True)
class IndicatorOutcome:
    context: ShellContext
    visible: Tuple[str, ...]
    mandatory: Tuple[str, ...]
    passes: int


@dataclass
class _ParsedLine:
    command: Command
    raw: Dict[str, Optional[str]]


class _Failure(Exception):
    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(diagnostic.message)
        self.diagnostic = diagnostic


class Resolver:
    def __init__(
        self,
        commands: CommandRegistry,
        converters: ConverterRegistry,
        project: ProjectModel,
        sticky: StickyState,
        *,
        strict_visibility: bool = False,
    ) -> None:
        self._commands = commands
        self._converters = converters
        self._project = project
        self._sticky = sticky
        self._strict_visibility = strict_visibility

    @property
    def strict_visibility(self) -> bool:
        return self._strict_visibility

    def resolve(self, line: str) -> Resolution:
        try:
            return self._resolve(line)
        except _Failure as failure:
            return failure.diagnostic

    def complete(self, line: str, cursor: Optional[int] = None) -> List[str]:
        """Return completion candidates for the token under ``cursor``.

        Completion runs inside a sticky stage that is never committed, so
        nothing an indicator or converter writes survives it.
        """
        position = len(line) if cursor is None else max(0, min(cursor, len(line)))
        head = line[:position]
        tokens = tokenize(head, partial=True)
        at_boundary = not tokens or tokens[-1].end < len(head)
        current = None if at_boundary else tokens[-1]
        done = tokens if at_boundary else tokens[:-1]
        with self._sticky.staged():
            return self._complete(done, current)

    def evaluate_indicators(self, command: Command, context: ShellContext) -> IndicatorOutcome:
        """Evaluate visibility and mandatory indicators until they settle.

        Absent mandatory options with an unspecified default feed that default
        back into the snapshot, which may change other indicators. The loop is
        bounded by the option count; an unsettled result is an authoring
        defect.
        """
        limit = len(command.options) + 1
        filled: Dict[str, str] = {}
        for passes in range(1, limit + 1):
            snapshot = context.with_parameters(filled) if filled else context
            visible = tuple(option.key for option in command.options if self._is_visible(command, option, snapshot))
            mandatory = tuple(
                option.key
                for option in command.options
                if option.key in visible and self._is_mandatory(command, option, snapshot)
            )
            settled = {
                option.key: option.unspecified_default
                for option in command.options
                if option.key in mandatory
                and not context.has_parameter(option.key)
                and option.unspecified_default is not None
            }
            if settled == filled:
                return IndicatorOutcome(snapshot, visible, mandatory, passes)
            filled = settled
        raise _Failure(
            Diagnostic(
                DiagnosticKind.INDICATOR_CYCLE,
                f"Visibility and mandatory indicators of '{command.name}' did not settle after {limit} passes",
                command=command.name,
            )
        )

    # -- resolution -----------------------------------------------------

    def _resolve(self, line: str) -> ResolvedArguments:
        try:
            tokens = tokenize(line)
        except TokenizeError as exc:
            raise _Failure(Diagnostic(DiagnosticKind.MALFORMED_LINE, str(exc))) from exc
        parsed = self._parse(tokens)
        command = parsed.command
        context = self._context(command, parsed.raw)
        with self._sticky.staged():
            outcome = self.evaluate_indicators(command, context)
            texts = self._texts(command, parsed, outcome)
            self._check_converters(command, texts)
            self._validate_candidates(command, parsed, outcome, texts)
        with self._sticky.staged() as stage:
            values = self._convert(command, texts)
            stage.commit()
        supplied = [key for key in parsed.raw if key in outcome.visible]
        return ResolvedArguments(command, values, supplied)

    def _parse(self, tokens: Sequence[Token]) -> _ParsedLine:
        words = _leading_words(tokens)
        match = self._commands.match(words)
        if match is None:
            typed = " ".join(words)
            message = f"Command '{typed}' not found" if typed else "No command given"
            raise _Failure(Diagnostic(DiagnosticKind.UNKNOWN_COMMAND, message))
        command, consumed = match
        if not self._available(command):
            raise _Failure(
                Diagnostic(
                    DiagnosticKind.UNKNOWN_COMMAND,
                    f"Command '{command.name}' is not available in the current project",
                    command=command.name,
                )
            )
        raw: Dict[str, Optional[str]] = {}
        positional: List[str] = []
        index = consumed
        while index < len(tokens):
            token = tokens[index]
            if not token.is_option:
                positional.append(token.text)
                index += 1
                continue
            key = token.key
            if not key:
                raise self._malformed(command, "Option name missing after '--'")
            if key in raw:
                raise self._malformed(command, f"Option --{key} specified more than once", option=key)
            if command.option(key) is None:
                raise _Failure(
                    Diagnostic(
                        DiagnosticKind.UNKNOWN_OPTION,
                        f"Option --{key} is not available for command '{command.name}'",
                        option=key,
                        command=command.name,
                    )
                )
            following = tokens[index + 1] if index + 1 < len(tokens) else None
            if following is not None and not following.is_option:
                raw[key] = following.text
                index += 2
            else:
                raw[key] = None
                index += 1
        if positional:
            if command.option("") is None:
                raise self._malformed(command, f"Unexpected text '{' '.join(positional)}'")
            raw[""] = " ".join(positional)
        return _ParsedLine(command=command, raw=raw)

    def _texts(self, command: Command, parsed: _ParsedLine, outcome: IndicatorOutcome) -> Dict[str, str]:
        visible = set(outcome.visible)
        if self._strict_visibility:
            for option in command.options:
                if option.key in parsed.raw and option.key not in visible:
                    message = option.visibility_help or f"Option --{option.key} is not available in the current context"
                    raise _Failure(
                        Diagnostic(
                            DiagnosticKind.VISIBILITY_VIOLATION,
                            message,
                            option=option.key,
                            command=command.name,
                        )
                    )
        texts: Dict[str, Optional[str]] = {}
        for option in command.options:
            if option.key not in visible:
                continue
            if option.key in parsed.raw:
                typed = parsed.raw[option.key]
                texts[option.key] = typed if typed is not None else option.specified_default
            else:
                texts[option.key] = option.unspecified_default
        for key in outcome.mandatory:
            text = texts.get(key)
            if text is None or not text.strip():
                raise _Failure(
                    Diagnostic(
                        DiagnosticKind.MISSING_MANDATORY_OPTION,
                        f"You must specify option --{key} for this command",
                        option=key,
                        command=command.name,
                    )
                )
        for option in command.options:
            if option.key in parsed.raw and option.key in texts and texts[option.key] is None:
                raise _Failure(
                    Diagnostic(
                        DiagnosticKind.INVALID_VALUE,
                        f"Option --{option.key} requires a value",
                        option=option.key,
                        command=command.name,
                    )
                )
        return {key: text for key, text in texts.items() if text is not None}

    def _check_converters(self, command: Command, texts: Mapping[str, str]) -> None:
        for key in texts:
            option = _option(command, key)
            try:
                converter = self._converters.find(option.value_type, option.option_context)
            except Exception as exc:
                raise _Failure(
                    Diagnostic(
                        DiagnosticKind.CONVERTER_FAILURE,
                        f"Converter lookup for --{key} raised {type(exc).__name__}: {exc}",
                        option=key,
                        command=command.name,
                    )
                ) from exc
            if converter is None:
                type_name = getattr(option.value_type, "__name__", repr(option.value_type))
                raise _Failure(
                    Diagnostic(
                        DiagnosticKind.CONVERTER_NOT_FOUND,
                        f"No converter registered for {type_name} (context '{option.option_context}')",
                        option=key,
                        command=command.name,
                    )
                )

    def _validate_candidates(
        self,
        command: Command,
        parsed: _ParsedLine,
        outcome: IndicatorOutcome,
        texts: Mapping[str, str],
    ) -> None:
        for option in command.options:
            if option.key not in texts or parsed.raw.get(option.key) is None or not option.validate:
                continue
            indicator = self._commands.indicator(command.name, option.key, IndicatorKind.AUTOCOMPLETE)
            if indicator is None:
                continue
            candidates = list(self._call(command, option, IndicatorKind.AUTOCOMPLETE, indicator, outcome.context))
            text = texts[option.key]
            if text in candidates:
                continue
            message = option.autocomplete_help or f"'{text}' is not a valid value for --{option.key}"
            offered = [candidate for candidate in candidates if candidate]
            if offered:
                message = f"{message} (expected one of: {', '.join(offered)})"
            raise _Failure(
                Diagnostic(DiagnosticKind.INVALID_VALUE, message, option=option.key, command=command.name)
            )

    def _convert(self, command: Command, texts: Mapping[str, str]) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for option in command.options:
            if option.key not in texts:
                continue
            text = texts[option.key]
            converter = self._converters.require(option.value_type, option.option_context)
            try:
                values[option.key] = converter.convert_from_text(text, option.value_type, option.option_context)
            except ValueError as exc:
                raise _Failure(
                    Diagnostic(
                        DiagnosticKind.INVALID_VALUE,
                        f"Failed to convert '{text}' for --{option.key}: {exc}",
                        option=option.key,
                        command=command.name,
                    )
                ) from exc
            except Exception as exc:
                raise _Failure(
                    Diagnostic(
                        DiagnosticKind.CONVERTER_FAILURE,
                        f"{type(converter).__name__} raised {type(exc).__name__} converting --{option.key}: {exc}",
                        option=option.key,
                        command=command.name,
                    )
                ) from exc
        return values

    # -- completion -----------------------------------------------------

    def _complete(self, done: Sequence[Token], current: Optional[Token]) -> List[str]:
        partial = current.text if current is not None else ""
        words = _leading_words(done)
        candidates: List[str] = []
        if len(words) == len(done) and (current is None or not current.is_option):
            typed = " ".join(words) + (" " if words else "") + partial
            candidates.extend(
                command.name
                for command in self._commands
                if command.name.startswith(typed) and self._available_quietly(command)
            )
        match = self._commands.match(words)
        if match is not None and self._available_quietly(match[0]):
            command, consumed = match
            try:
                candidates.extend(self._complete_options(command, done[consumed:], current, partial))
            except _Failure:
                pass
        return filter_candidates(candidates, "")

    def _complete_options(
        self,
        command: Command,
        rest: Sequence[Token],
        current: Optional[Token],
        partial: str,
    ) -> List[str]:
        raw: Dict[str, str] = {}
        positional: List[str] = []
        pending: Optional[str] = None
        index = 0
        while index < len(rest):
            token = rest[index]
            pending = None
            if not token.is_option:
                positional.append(token.text)
                index += 1
                continue
            if index + 1 < len(rest) and not rest[index + 1].is_option:
                raw.setdefault(token.key, rest[index + 1].text)
                index += 2
            else:
                raw.setdefault(token.key, "")
                pending = token.key
                index += 1
        default_option = command.option("")
        if positional and default_option is not None:
            raw.setdefault("", " ".join(positional))

        if current is not None and current.is_option:
            return self._complete_keys(command, raw, partial)
        if pending is not None:
            option = command.option(pending)
            if option is None:
                return []
            if current is None and option.is_flag:
                return self._complete_keys(command, raw, "")
            raw[pending] = partial
            return self._complete_value(command, option, raw, partial)
        if current is None:
            return self._complete_keys(command, raw, "")
        if default_option is not None:
            raw[""] = " ".join(positional + [partial])
            return self._complete_value(command, default_option, raw, partial)
        return []

    def _complete_keys(self, command: Command, raw: Mapping[str, str], partial: str) -> List[str]:
        outcome = self.evaluate_indicators(command, self._context(command, raw))
        flags = [
            option.flag
            for option in command.options
            if option.key and option.key in outcome.visible and option.key not in raw
        ]
        return filter_candidates(flags, partial)

    def _complete_value(self, command: Command, option: OptionSpec, raw: Mapping[str, str], partial: str) -> List[str]:
        outcome = self.evaluate_indicators(command, self._context(command, raw))
        if option.key not in outcome.visible:
            return []
        indicator = self._commands.indicator(command.name, option.key, IndicatorKind.AUTOCOMPLETE)
        if indicator is not None:
            values = self._call(command, option, IndicatorKind.AUTOCOMPLETE, indicator, outcome.context)
            return filter_candidates(values, partial)
        try:
            return self._converters.complete(option.value_type, option.option_context, partial)
        except Exception as exc:
            logger.warning("Completion of --%s for '%s' failed: %s: %s", option.key, command.name, type(exc).__name__, exc)
            return []

    # -- indicators -----------------------------------------------------

    def _available(self, command: Command) -> bool:
        indicator = self._commands.indicator(command.name, "", IndicatorKind.AVAILABILITY)
        if indicator is None:
            return True
        try:
            return bool(indicator())
        except Exception as exc:
            raise _Failure(
                Diagnostic(
                    DiagnosticKind.INDICATOR_FAILURE,
                    f"availability indicator raised {type(exc).__name__}: {exc}",
                    command=command.name,
                )
            ) from exc

    def _available_quietly(self, command: Command) -> bool:
        try:
            return self._available(command)
        except _Failure:
            return False

    def _is_visible(self, command: Command, option: OptionSpec, context: ShellContext) -> bool:
        indicator = self._commands.indicator(command.name, option.key, IndicatorKind.VISIBILITY)
        if indicator is None:
            return True
        return bool(self._call(command, option, IndicatorKind.VISIBILITY, indicator, context))

    def _is_mandatory(self, command: Command, option: OptionSpec, context: ShellContext) -> bool:
        indicator = self._commands.indicator(command.name, option.key, IndicatorKind.MANDATORY)
        if indicator is None:
            return option.mandatory
        return bool(self._call(command, option, IndicatorKind.MANDATORY, indicator, context))

    def _call(
        self,
        command: Command,
        option: OptionSpec,
        kind: IndicatorKind,
        indicator: Callable[..., Any],
        context: ShellContext,
    ) -> Any:
        try:
            return indicator(context)
        except Exception as exc:
            raise _Failure(
                Diagnostic(
                    DiagnosticKind.INDICATOR_FAILURE,
                    f"{kind.value} indicator for --{option.key} raised {type(exc).__name__}: {exc}",
                    option=option.key,
                    command=command.name,
                )
            ) from exc

    def _context(self, command: Command, raw: Mapping[str, Optional[str]]) -> ShellContext:
        parameters = {key: "" if value is None else value for key, value in raw.items()}
        return ShellContext(parameters, self._project, self._sticky, command=command.name)

    @staticmethod
    def _malformed(command: Command, message: str, *, option: Optional[str] = None) -> _Failure:
        return _Failure(
            Diagnostic(DiagnosticKind.MALFORMED_LINE, message, option=option, command=command.name)
        )


def _leading_words(tokens: Sequence[Token]) -> List[str]:
    words: List[str] = []
    for token in tokens:
        if token.is_option:
            break
        words.append(token.text)
    return words


def _option(command: Command, key: str) -> OptionSpec:
    option = command.option(key)
    if option is None:  # pragma: no cover - keys come from the command itself
        raise KeyError(key)
    return option


__all__ = ["IndicatorOutcome", "ResolvedArguments", "Resolution", "Resolver"]
