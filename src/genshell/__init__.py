"""genshell: command resolution engine for code-generation shell add-ons."""

__version__ = "0.3.0"

__all__ = ["__version__"]
