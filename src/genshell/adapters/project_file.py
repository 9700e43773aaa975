"""Project model backed by a YAML descriptor."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import yaml
from jsonschema import Draft202012Validator

from genshell.domain.model import ModuleDetails, TypeDetails
from genshell.ports.project_model import ProjectModel, ProjectModelError
from genshell.resources import load_schema

_SCHEMA_RESOURCE = "project_model.schema.json"


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    return Draft202012Validator(load_schema(_SCHEMA_RESOURCE))


def iter_descriptor_errors(data: Dict[str, Any]) -> Iterable[str]:
    for error in _validator().iter_errors(data):
        path = ".".join(str(item) for item in error.absolute_path)
        yield f"{path or '<root>'}: {error.message}"


class ProjectFileModel(ProjectModel):
    """In-memory project index, usually loaded from ``genshell.project.yaml``."""

    def __init__(
        self,
        modules: Sequence[ModuleDetails],
        types: Sequence[TypeDetails] = (),
        *,
        features: Iterable[str] = (),
        focused_module: Optional[str] = None,
    ) -> None:
        if not modules:
            raise ProjectModelError("Project model requires at least one module")
        self._modules: Dict[str, ModuleDetails] = {}
        for module in modules:
            if module.name in self._modules:
                raise ProjectModelError(f"Module '{module.name}' declared twice")
            self._modules[module.name] = module
        for details in types:
            if details.module not in self._modules:
                raise ProjectModelError(f"Type {details.name} references unknown module '{details.module}'")
        focused = modules[0].name if focused_module is None else focused_module
        if focused not in self._modules:
            raise ProjectModelError(f"Focused module '{focused}' is not declared")
        self._focused = focused
        self._types = tuple(types)
        self._features = frozenset(features)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectFileModel":
        errors = list(iter_descriptor_errors(data))
        if errors:
            raise ProjectModelError("Invalid project descriptor: " + "; ".join(errors))
        try:
            modules = [ModuleDetails.from_dict(item) for item in data["modules"]]
            types = [TypeDetails.from_dict(item) for item in data.get("types", []) or []]
        except ValueError as exc:
            raise ProjectModelError(f"Invalid project descriptor: {exc}") from exc
        return cls(
            modules,
            types,
            features=data.get("features", []) or [],
            focused_module=data.get("focused_module"),
        )

    @classmethod
    def load(cls, path: Path) -> "ProjectFileModel":
        if not path.exists():
            raise ProjectModelError(f"Project descriptor missing: {path}")
        try:
            data = yaml.safe_load(path.read_text("utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ProjectModelError(f"Project descriptor {path} is not valid YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise ProjectModelError(f"Project descriptor {path} must be a mapping")
        return cls.from_dict(data)

    def module_names(self) -> List[str]:
        return list(self._modules)

    def focused_module(self) -> str:
        return self._focused

    def top_level_package(self, module: Optional[str] = None) -> str:
        name = self._focused if module is None else module
        details = self._modules.get(name)
        if details is None:
            raise ProjectModelError(f"Unknown module '{name}'")
        return details.top_level_package

    def find_types(self, tag: Optional[str] = None) -> List[TypeDetails]:
        if tag is None:
            return list(self._types)
        return [details for details in self._types if details.has_tag(tag)]

    def is_feature_installed(self, feature: str) -> bool:
        return feature in self._features

    def module_dependencies(self, module: str) -> Sequence[str]:
        details = self._modules.get(module)
        if details is None:
            raise ProjectModelError(f"Unknown module '{module}'")
        return details.dependencies


__all__ = ["ProjectFileModel", "iter_descriptor_errors"]
