"""Port describing the project index consulted while resolving commands."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from genshell.domain.model import TypeDetails


class ProjectModelError(RuntimeError):
    pass


class ProjectModel(ABC):
    """Read-only queries over the target project.

    Implementations may scan the filesystem and cache; the engine only reads.
    """

    @abstractmethod
    def module_names(self) -> List[str]:
        """Return module names in declaration order; the root module is ``""``."""

    @abstractmethod
    def focused_module(self) -> str:
        """Return the module the project itself considers focused."""

    @abstractmethod
    def top_level_package(self, module: Optional[str] = None) -> str:
        """Return the top-level package of ``module`` (focused module when omitted)."""

    @abstractmethod
    def find_types(self, tag: Optional[str] = None) -> List[TypeDetails]:
        """Return project types, optionally only those carrying ``tag``."""

    @abstractmethod
    def is_feature_installed(self, feature: str) -> bool:
        """Return whether a named feature is installed in the project."""

    @abstractmethod
    def module_dependencies(self, module: str) -> Sequence[str]:
        """Return the dependency coordinates declared by ``module``."""

    def is_multimodule(self) -> bool:
        return len(self.module_names()) > 1

    def is_focused_project_available(self) -> bool:
        return bool(self.module_names())

    def find_type(self, name: str) -> Optional[TypeDetails]:
        for details in self.find_types():
            if details.name == name:
                return details
        return None


__all__ = ["ProjectModel", "ProjectModelError"]
