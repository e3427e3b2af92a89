"""Capability catalog: models, validated index and multi-catalog repository"""

from probefence.core.catalog.models import (
    Capability,
    CapabilityCatalog,
    CapabilityCategory,
    CapabilityLayer,
    CapabilitySnapshot,
)
from probefence.core.catalog.index import CATALOG_SCHEMA_VERSION, CapabilityIndex
from probefence.core.catalog.repository import CatalogRepository

__all__ = [
    "Capability",
    "CapabilityCatalog",
    "CapabilityCategory",
    "CapabilityLayer",
    "CapabilitySnapshot",
    "CapabilityIndex",
    "CatalogRepository",
    "CATALOG_SCHEMA_VERSION",
]
