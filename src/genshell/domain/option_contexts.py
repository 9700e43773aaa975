"""Option context tokens understood by converters.

An option context is a comma separated string attached to an option. Selector
tokens narrow the values a converter offers; effect tokens ask the converter to
update sticky shell state once a value has been parsed successfully.
"""

from __future__ import annotations

from typing import FrozenSet

# Only interface types of the project.
INTERFACE = "interface"

# Any type of the project.
PROJECT = "project"

# Non-final classes of the project.
SUPERCLASS = "superclass"

# Record the last used type and focus its module.
UPDATE = "update"

# Record the last used type only.
UPDATELAST = "lastused"

UPDATE_PROJECT = "update,project"

UPDATELAST_INTERFACE = "lastused,interface"

EFFECT_TOKENS: FrozenSet[str] = frozenset({UPDATE, UPDATELAST})


def tokens(option_context: str | None) -> FrozenSet[str]:
    if not option_context:
        return frozenset()
    return frozenset(part.strip() for part in option_context.split(",") if part.strip())


def selectors(option_context: str | None) -> FrozenSet[str]:
    return tokens(option_context) - EFFECT_TOKENS


def has_token(option_context: str | None, token: str) -> bool:
    return token in tokens(option_context)


def updates_focus(option_context: str | None) -> bool:
    return has_token(option_context, UPDATE)


def updates_last_used(option_context: str | None) -> bool:
    found = tokens(option_context)
    return UPDATE in found or UPDATELAST in found


__all__ = [
    "EFFECT_TOKENS",
    "INTERFACE",
    "PROJECT",
    "SUPERCLASS",
    "UPDATE",
    "UPDATELAST",
    "UPDATELAST_INTERFACE",
    "UPDATE_PROJECT",
    "has_token",
    "selectors",
    "tokens",
    "updates_focus",
    "updates_last_used",
]
