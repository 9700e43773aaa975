"""Value objects exchanged between converters, the project model and add-ons."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Tuple

MODULE_PATH_SEPARATOR = ":"
TOP_LEVEL_PACKAGE_SYMBOL = "~"

_IDENTIFIER = r"[A-Za-z_$][A-Za-z0-9_$]*"
_DOTTED_PATTERN = re.compile(rf"^{_IDENTIFIER}(?:\.{_IDENTIFIER})*$")
_MODULE_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

TYPE_CATEGORIES = frozenset({"class", "interface", "enum", "annotation"})


def is_dotted_name(value: str) -> bool:
    return bool(_DOTTED_PATTERN.match(value))


def is_module_name(value: str) -> bool:
    return value == "" or bool(_MODULE_PATTERN.match(value))


def split_module(text: str) -> Tuple[str, str]:
    """Split ``module:rest`` into its parts; text without a separator has no module."""
    if MODULE_PATH_SEPARATOR in text:
        module, _, rest = text.partition(MODULE_PATH_SEPARATOR)
        return module, rest
    return "", text


def qualify(module: str, text: str) -> str:
    if module:
        return f"{module}{MODULE_PATH_SEPARATOR}{text}"
    return text


@dataclass(frozen=True)
class TypeRef:
    """A fully qualified type, optionally pinned to the module declaring it."""

    name: str
    module: str = ""

    def __post_init__(self) -> None:
        if not is_dotted_name(self.name):
            raise ValueError(f"'{self.name}' is not a valid fully qualified type name")
        if not is_module_name(self.module):
            raise ValueError(f"'{self.module}' is not a valid module name")

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    @property
    def package(self) -> str:
        return self.name.rsplit(".", 1)[0] if "." in self.name else ""

    def to_text(self) -> str:
        return qualify(self.module, self.name)

    def __str__(self) -> str:
        return self.to_text()


@dataclass(frozen=True)
class PackageRef:
    """A package inside a module of the project."""

    name: str
    module: str = ""

    def __post_init__(self) -> None:
        if not is_dotted_name(self.name):
            raise ValueError(f"'{self.name}' is not a valid package name")
        if not is_module_name(self.module):
            raise ValueError(f"'{self.module}' is not a valid module name")

    def child(self, suffix: str) -> "PackageRef":
        return PackageRef(f"{self.name}.{suffix}", self.module)

    def to_text(self) -> str:
        return qualify(self.module, self.name)

    def __str__(self) -> str:
        return self.to_text()


@dataclass(frozen=True)
class ModuleRef:
    """A project module; the root module has an empty name."""

    name: str

    def __post_init__(self) -> None:
        if not is_module_name(self.name):
            raise ValueError(f"'{self.name}' is not a valid module name")

    @property
    def is_root(self) -> bool:
        return self.name == ""

    def to_text(self) -> str:
        return self.name or TOP_LEVEL_PACKAGE_SYMBOL

    def __str__(self) -> str:
        return self.to_text()


@dataclass(frozen=True)
class TypeDetails:
    """Project model entry for a type declared in one of the modules."""

    name: str
    module: str = ""
    category: str = "class"
    final: bool = False
    tags: FrozenSet[str] = frozenset()
    attributes: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if self.category not in TYPE_CATEGORIES:
            raise ValueError(f"Unsupported type category '{self.category}' for {self.name}")
        object.__setattr__(self, "tags", frozenset(self.tags))
        object.__setattr__(self, "attributes", {str(k): str(v) for k, v in self.attributes.items()})

    @property
    def ref(self) -> TypeRef:
        return TypeRef(self.name, self.module)

    @property
    def is_interface(self) -> bool:
        return self.category == "interface"

    @property
    def is_extendable(self) -> bool:
        return self.category == "class" and not self.final

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TypeDetails":
        return cls(
            name=str(data["name"]),
            module=str(data.get("module", "")),
            category=str(data.get("category", "class")),
            final=bool(data.get("final", False)),
            tags=frozenset(str(tag) for tag in data.get("tags", []) or []),
            attributes={str(k): str(v) for k, v in (data.get("attributes") or {}).items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name, "category": self.category}
        if self.module:
            payload["module"] = self.module
        if self.final:
            payload["final"] = True
        if self.tags:
            payload["tags"] = sorted(self.tags)
        if self.attributes:
            payload["attributes"] = dict(self.attributes)
        return payload


@dataclass(frozen=True)
class ModuleDetails:
    name: str
    top_level_package: str
    dependencies: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not is_module_name(self.name):
            raise ValueError(f"'{self.name}' is not a valid module name")
        if not is_dotted_name(self.top_level_package):
            raise ValueError(f"'{self.top_level_package}' is not a valid top-level package")
        object.__setattr__(self, "dependencies", tuple(self.dependencies))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModuleDetails":
        return cls(
            name=str(data.get("name", "")),
            top_level_package=str(data["top_level_package"]),
            dependencies=tuple(str(item) for item in data.get("dependencies", []) or []),
        )


__all__ = [
    "MODULE_PATH_SEPARATOR",
    "ModuleDetails",
    "ModuleRef",
    "PackageRef",
    "TOP_LEVEL_PACKAGE_SYMBOL",
    "TYPE_CATEGORIES",
    "TypeDetails",
    "TypeRef",
    "is_dotted_name",
    "is_module_name",
    "qualify",
    "split_module",
]
