"""Configuration loading for the deploy bot."""

from __future__ import annotations

from .catalog import Catalog, EnvironmentDescriptor, ServiceDescriptor, load_catalog
from .settings import ConfigValidation, Settings, load_settings, validate_settings

__all__ = [
    "Catalog",
    "ConfigValidation",
    "EnvironmentDescriptor",
    "ServiceDescriptor",
    "Settings",
    "load_catalog",
    "load_settings",
    "validate_settings",
]
