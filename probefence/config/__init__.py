"""Harness configuration"""

from probefence.config.settings import (
    HarnessSettings,
    HarnessPaths,
    load_settings,
    BOUNDARY_PATH_ENV,
    CATALOG_PATH_ENV,
    WORKSPACE_ROOT_ENV,
)

__all__ = [
    "HarnessSettings",
    "HarnessPaths",
    "load_settings",
    "BOUNDARY_PATH_ENV",
    "CATALOG_PATH_ENV",
    "WORKSPACE_ROOT_ENV",
]
