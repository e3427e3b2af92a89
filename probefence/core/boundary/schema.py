"""
Boundary Schema

Loads the boundary-object JSON schema, either directly or through the
descriptor at ``schema/boundary_object.json``:

    {
      "schema_version": "boundary_schema_v1",
      "key": "probefence_boundary_v1",
      "pattern_version": "boundary_event_v1",
      "schema_path": "boundary_object_schema.json"
    }

The descriptor's ``pattern_version`` must agree with the schema's own
``schema_version`` const. When a descriptor declares a ``key``, records must
carry the same value as ``schema_key``.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from probefence.core.errors import SchemaLoadError, SchemaValidationError, SchemaVersionMismatchError
from probefence.core.schema.loader import (
    LoadedSchema,
    SchemaLoadOptions,
    is_descriptor,
    is_identifier,
    load_json_schema,
    read_json,
)

logger = logging.getLogger(__name__)

BOUNDARY_DESCRIPTOR_VERSION = "boundary_schema_v1"
BOUNDARY_PATTERN_VERSION = "boundary_event_v1"
ALLOWED_PATTERN_VERSIONS = frozenset({BOUNDARY_PATTERN_VERSION})


def _parse_descriptor(path: Path, document: Any) -> Optional[Dict[str, str]]:
    if not isinstance(document, dict):
        return None
    key = document.get("key")
    if key is None and not is_descriptor(document):
        return None

    version = document.get("schema_version")
    if not isinstance(version, str):
        raise SchemaLoadError(f"boundary descriptor {path} missing schema_version")
    if version != BOUNDARY_DESCRIPTOR_VERSION:
        raise SchemaVersionMismatchError(
            f"boundary descriptor {path} expected schema_version "
            f"{BOUNDARY_DESCRIPTOR_VERSION} but found {version}"
        )
    if not isinstance(key, str):
        raise SchemaLoadError(f"boundary descriptor {path} missing key")
    if not is_identifier(key):
        raise SchemaLoadError(f"boundary descriptor key must match ^[A-Za-z0-9_.-]+$, got {key}")
    if not is_descriptor(document):
        raise SchemaLoadError(f"boundary descriptor {path} missing schema or schema_path field")

    pattern_version = document.get("pattern_version")
    if not isinstance(pattern_version, str):
        raise SchemaLoadError(f"boundary descriptor {path} missing pattern_version")
    return {"key": key, "pattern_version": pattern_version}


class BoundarySchema:
    """Compiled boundary-object schema"""

    def __init__(self, loaded: LoadedSchema, schema_key: Optional[str] = None):
        self._loaded = loaded
        self._schema_key = schema_key

    @classmethod
    def load(cls, path: Path, canonical_schema_path: Optional[Path] = None) -> "BoundarySchema":
        """
        Load and compile a boundary schema or descriptor.

        Args:
            path: Descriptor or plain schema file
            canonical_schema_path: When given and present on disk, the
                resolved schema must equal this file

        Raises:
            SchemaLoadError: Missing/malformed file or descriptor fields
            SchemaVersionMismatchError: Unsupported descriptor or pattern version
        """
        path = Path(path)
        descriptor = _parse_descriptor(path, read_json(path))
        loaded = load_json_schema(
            path,
            SchemaLoadOptions(
                canonical_schema_path=canonical_schema_path,
                allowed_versions=set(ALLOWED_PATTERN_VERSIONS),
            ),
        )
        if descriptor and descriptor["pattern_version"] != loaded.schema_version:
            raise SchemaVersionMismatchError(
                f"boundary descriptor {path} declares pattern_version "
                f"{descriptor['pattern_version']} but schema reports {loaded.schema_version}"
            )
        logger.debug(f"Loaded boundary schema {loaded.schema_version} from {path}")
        return cls(loaded, descriptor["key"] if descriptor else None)

    def schema_version(self) -> str:
        return self._loaded.schema_version

    @property
    def schema_key(self) -> Optional[str]:
        return self._schema_key

    def errors(self, value: Any) -> List[str]:
        """All validation errors for value (empty when valid)"""
        messages: List[str] = []
        if self._schema_key is not None:
            actual = value.get("schema_key") if isinstance(value, dict) else None
            if actual is None:
                messages.append(f"boundary object missing schema_key (expected {self._schema_key})")
            elif actual != self._schema_key:
                messages.append(
                    f"boundary object schema_key '{actual}' does not match expected '{self._schema_key}'"
                )
        messages.extend(self._loaded.iter_error_messages(value))
        return messages

    def validate(self, value: Any) -> None:
        """
        Raises:
            SchemaValidationError: With every collected error message
        """
        messages = self.errors(value)
        if messages:
            raise SchemaValidationError(messages)
