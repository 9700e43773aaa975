"""Add-ons shipped with genshell."""

from .security import SecurityAddon
from .service import ServiceAddon

BUILTIN_ADDONS = (ServiceAddon(), SecurityAddon())

__all__ = ["BUILTIN_ADDONS", "SecurityAddon", "ServiceAddon"]
