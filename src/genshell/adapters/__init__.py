"""Concrete implementations of genshell ports."""

from .project_file import ProjectFileModel, iter_descriptor_errors

__all__ = ["ProjectFileModel", "iter_descriptor_errors"]
