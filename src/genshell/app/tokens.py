"""Splits a raw shell line into tokens that remember where they came from."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

OPTION_PREFIX = "--"
_QUOTES = ("'", '"')


class TokenizeError(ValueError):
    pass


@dataclass(frozen=True)
class Token:
    text: str
    start: int
    end: int
    quoted: bool = False

    @property
    def is_option(self) -> bool:
        return not self.quoted and self.text.startswith(OPTION_PREFIX)

    @property
    def key(self) -> str:
        return self.text[len(OPTION_PREFIX):] if self.is_option else ""


def tokenize(line: str, *, partial: bool = False) -> List[Token]:
    """Split ``line`` on whitespace honouring quotes and backslash escapes.

    With ``partial`` an unterminated quote closes at the end of the line, which
    is what the operator sees while still typing.
    """
    tokens: List[Token] = []
    index = 0
    length = len(line)
    while index < length:
        if line[index].isspace():
            index += 1
            continue
        start = index
        chars: List[str] = []
        quote: str | None = None
        quoted = False
        while index < length:
            char = line[index]
            if quote is not None:
                if char == quote:
                    quote = None
                elif char == "\\" and quote == '"' and index + 1 < length:
                    index += 1
                    chars.append(line[index])
                else:
                    chars.append(char)
                index += 1
                continue
            if char.isspace():
                break
            if char in _QUOTES:
                quote = char
                quoted = True
            elif char == "\\" and index + 1 < length:
                index += 1
                chars.append(line[index])
            else:
                chars.append(char)
            index += 1
        if quote is not None and not partial:
            raise TokenizeError(f"Unterminated {quote} quote starting at column {start + 1}")
        tokens.append(Token("".join(chars), start, index, quoted))
    return tokens


__all__ = ["OPTION_PREFIX", "Token", "TokenizeError", "tokenize"]
