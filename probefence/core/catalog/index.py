"""
Capability Index

Validated, id-ordered view of one capability catalog. Loading is strict:
unexpected schema versions, duplicate or empty ids, and references to
undeclared categories, layers or docs are rejected so helpers never emit
records against a mismatched catalog.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterator, Optional

from probefence.core.catalog.models import Capability, CapabilityCatalog, CapabilitySnapshot
from probefence.core.errors import (
    CatalogLoadError,
    DuplicateCapabilityError,
    SchemaLoadError,
    SchemaVersionMismatchError,
)
from probefence.core.schema.loader import SchemaLoadOptions, is_identifier, load_json_schema

logger = logging.getLogger(__name__)

CATALOG_SCHEMA_VERSION = "sandbox_catalog_v1"
ALLOWED_SCHEMA_VERSIONS = frozenset({CATALOG_SCHEMA_VERSION})
CATALOG_SCHEMA_FILENAME = "capability_catalog.schema.json"


def _validate_schema_version(path: Path, schema_version) -> None:
    if not isinstance(schema_version, str) or not schema_version:
        raise SchemaVersionMismatchError(f"catalog {path}: schema_version must not be empty")
    if not is_identifier(schema_version):
        raise SchemaVersionMismatchError(
            f"catalog {path}: schema_version must match ^[A-Za-z0-9_.-]+$, got {schema_version}"
        )
    if schema_version not in ALLOWED_SCHEMA_VERSIONS:
        raise SchemaVersionMismatchError(
            f"catalog {path}: schema_version '{schema_version}' not in allowed set "
            f"{sorted(ALLOWED_SCHEMA_VERSIONS)}"
        )


def _validate_against_schema(path: Path, document: dict, schema_path: Path) -> None:
    loaded = load_json_schema(
        schema_path,
        SchemaLoadOptions(
            expected_version=document.get("schema_version"),
            allowed_versions=set(ALLOWED_SCHEMA_VERSIONS),
            patch_schema_version_const=True,
        ),
    )
    errors = loaded.iter_error_messages(document)
    if errors:
        raise CatalogLoadError(path, "failed schema validation: " + "; ".join(errors))


def _build_index(path: Path, catalog: CapabilityCatalog) -> Dict[str, Capability]:
    if not is_identifier(catalog.key):
        raise CatalogLoadError(path, f"catalog.key must match ^[A-Za-z0-9_.-]+$, got {catalog.key!r}")
    if not catalog.catalog.title.strip():
        raise CatalogLoadError(path, "catalog.title must not be empty")
    if any(not label.strip() for label in catalog.catalog.labels):
        raise CatalogLoadError(path, "catalog.labels must not contain empty entries")
    if not catalog.capabilities:
        raise CatalogLoadError(path, "catalog contains no capabilities")

    layer_ids = set()
    for layer in catalog.scope.policy_layers:
        if not layer.id.strip():
            raise CatalogLoadError(path, "policy_layers must not contain empty ids")
        layer_ids.add(layer.id)

    category_ids = set(catalog.scope.categories)
    if not category_ids:
        raise CatalogLoadError(path, "catalog scope must define at least one category")

    by_id: Dict[str, Capability] = {}
    for capability in catalog.capabilities:
        if not capability.id.strip():
            raise CatalogLoadError(path, "encountered capability with no id")
        if capability.id in by_id:
            raise DuplicateCapabilityError(f"catalog {path}: duplicate capability id {capability.id}")
        if capability.category.value not in category_ids:
            raise CatalogLoadError(
                path, f"capability {capability.id} references unknown category {capability.category.value}"
            )
        if capability.layer.value not in layer_ids:
            raise CatalogLoadError(
                path, f"capability {capability.id} references unknown layer {capability.layer.value}"
            )
        for source in capability.sources:
            if source.doc not in catalog.docs:
                raise CatalogLoadError(
                    path, f"capability {capability.id} references unknown doc '{source.doc}'"
                )
        by_id[capability.id] = capability

    return {capability_id: by_id[capability_id] for capability_id in sorted(by_id)}


class CapabilityIndex:
    """
    Loaded catalog with lookup by capability id

    Example:
        >>> index = CapabilityIndex.load(Path("schema/capabilities.json"))
        >>> index.snapshot("cap_fs_read_workspace_tree").layer
        <CapabilityLayer.OS_SANDBOX: 'os_sandbox'>
    """

    def __init__(self, catalog: CapabilityCatalog, by_id: Dict[str, Capability], path: Optional[Path] = None):
        self.catalog = catalog
        self.path = path
        self._by_id = by_id

    @classmethod
    def load(cls, path: Path, catalog_schema_path: Optional[Path] = None) -> "CapabilityIndex":
        """
        Load and validate a catalog file.

        Args:
            path: Catalog JSON file
            catalog_schema_path: Structural schema for the catalog; defaults to
                ``capability_catalog.schema.json`` beside the catalog, and is
                skipped when that file does not exist

        Raises:
            CatalogLoadError: File unreadable or structurally invalid
            SchemaVersionMismatchError: Unsupported catalog schema_version
            DuplicateCapabilityError: Two capabilities share an id
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except OSError as e:
            raise CatalogLoadError(path, str(e)) from e
        except json.JSONDecodeError as e:
            raise CatalogLoadError(path, f"invalid JSON: {e}") from e

        if not isinstance(document, dict):
            raise CatalogLoadError(path, "expected a JSON object")

        _validate_schema_version(path, document.get("schema_version"))

        schema_path = catalog_schema_path or path.parent / CATALOG_SCHEMA_FILENAME
        if schema_path.exists():
            try:
                _validate_against_schema(path, document, schema_path)
            except SchemaLoadError as e:
                raise CatalogLoadError(path, str(e)) from e
        else:
            logger.debug(f"No catalog schema at {schema_path}; skipping structural validation")

        try:
            catalog = CapabilityCatalog.from_dict(document)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CatalogLoadError(path, f"malformed catalog: {e}") from e

        by_id = _build_index(path, catalog)
        logger.debug(f"Loaded catalog {catalog.key} with {len(by_id)} capabilities from {path}")
        return cls(catalog, by_id, path)

    @property
    def key(self) -> str:
        return self.catalog.key

    def get(self, capability_id: str) -> Optional[Capability]:
        return self._by_id.get(capability_id)

    def ids(self) -> Iterator[str]:
        """Capability ids in sorted order"""
        return iter(self._by_id)

    def snapshot(self, capability_id: str) -> Optional[CapabilitySnapshot]:
        capability = self._by_id.get(capability_id)
        return capability.snapshot() if capability else None

    def __contains__(self, capability_id: object) -> bool:
        return capability_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)
