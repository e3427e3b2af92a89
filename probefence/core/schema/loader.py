"""Shared JSON schema loader for the catalog and boundary-object schemas.

A schema file is either a plain JSON schema or a thin descriptor that inlines
the schema under ``schema`` or points at it through ``schema_path`` (relative
to the descriptor). The schema's own version is read from its
``properties.schema_version.const`` field.
"""

import copy
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from probefence.core.errors import SchemaLoadError, SchemaVersionMismatchError

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")
SCHEMA_VERSION_POINTER = "/properties/schema_version/const"


def is_identifier(value: str) -> bool:
    return bool(value) and IDENTIFIER_PATTERN.match(value) is not None


def read_json(path: Path, label: str = "schema") -> Any:
    """Read a JSON file, mapping I/O and parse failures to SchemaLoadError."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise SchemaLoadError(f"opening {label} {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"parsing {label} {path}: {e}") from e


def _pointer_tokens(pointer: str) -> List[str]:
    if not pointer:
        return []
    return [
        token.replace("~1", "/").replace("~0", "~")
        for token in pointer.lstrip("/").split("/")
    ]


def json_pointer(document: Any, pointer: str) -> Any:
    """Resolve an RFC 6901 pointer, returning None when any segment is missing."""
    current = document
    for token in _pointer_tokens(pointer):
        if isinstance(current, dict):
            if token not in current:
                return None
            current = current[token]
        elif isinstance(current, list):
            try:
                current = current[int(token)]
            except (ValueError, IndexError):
                return None
        else:
            return None
    return current


def _set_pointer(document: Any, pointer: str, value: Any) -> bool:
    tokens = _pointer_tokens(pointer)
    if not tokens:
        return False
    parent = json_pointer(document, "/" + "/".join(tokens[:-1])) if len(tokens) > 1 else document
    if not isinstance(parent, dict) or tokens[-1] not in parent:
        return False
    parent[tokens[-1]] = value
    return True


@dataclass
class SchemaLoadOptions:
    """Optional checks applied while loading a schema"""

    canonical_schema_path: Optional[Path] = None  # must match this file when it exists
    expected_version: Optional[str] = None  # overrides the version read from the const
    allowed_versions: Optional[Set[str]] = None
    patch_schema_version_const: bool = False  # rewrite the const to the resolved version
    schema_version_pointer: str = SCHEMA_VERSION_POINTER


@dataclass
class LoadedSchema:
    """Resolved schema plus its Draft 7 validator"""

    path: Path
    schema_version: str
    schema: Dict[str, Any]
    descriptor: Optional[Dict[str, Any]] = None
    validator: Draft7Validator = field(init=False, repr=False)

    def __post_init__(self):
        self.validator = Draft7Validator(self.schema)

    def iter_error_messages(self, value: Any) -> List[str]:
        errors = sorted(self.validator.iter_errors(value), key=lambda e: list(e.absolute_path))
        return [format_error(error) for error in errors]

    def check(self, value: Any) -> Tuple[bool, List[str]]:
        messages = self.iter_error_messages(value)
        return (not messages, messages)


def format_error(error) -> str:
    path = "/".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
    return f"{path}: {error.message}"


def is_descriptor(document: Any) -> bool:
    return isinstance(document, dict) and ("schema" in document or "schema_path" in document)


def load_json_schema(path: Path, options: Optional[SchemaLoadOptions] = None) -> LoadedSchema:
    """
    Load a schema (plain or via descriptor) and compile a validator.

    Args:
        path: Schema or descriptor file
        options: Version, canonical-copy and const-patching checks

    Returns:
        LoadedSchema with the extracted schema version

    Raises:
        SchemaLoadError: File unreadable, malformed, or not a valid JSON schema
        SchemaVersionMismatchError: Version outside the allowed set, or the
            schema differs from the canonical copy
    """
    options = options or SchemaLoadOptions()
    path = Path(path)
    document = read_json(path)

    descriptor = None
    schema = document
    if is_descriptor(document):
        descriptor = document
        schema_ref = document.get("schema_path")
        if isinstance(schema_ref, str):
            nested = Path(schema_ref)
            if not nested.is_absolute():
                nested = path.parent / nested
            logger.debug(f"Descriptor {path} references schema {nested}")
            schema = read_json(nested, label=f"schema referenced by {path}:")
        else:
            schema = document.get("schema")

    if not isinstance(schema, dict):
        raise SchemaLoadError(f"schema {path} is not a JSON object")

    if options.expected_version is not None:
        schema_version = options.expected_version
    else:
        raw_version = json_pointer(schema, options.schema_version_pointer)
        if not isinstance(raw_version, str) or not is_identifier(raw_version):
            raise SchemaLoadError(f"schema {path} missing schema_version const")
        schema_version = raw_version

    if options.allowed_versions is not None and schema_version not in options.allowed_versions:
        raise SchemaVersionMismatchError(
            f"schema_version '{schema_version}' not in allowed set "
            f"{sorted(options.allowed_versions)}"
        )

    canonical = options.canonical_schema_path
    if canonical is not None and canonical.exists():
        canonical_schema = read_json(canonical, label="canonical schema")
        if canonical_schema != schema:
            raise SchemaVersionMismatchError(
                f"schema {path} does not match canonical schema {canonical}"
            )

    if options.patch_schema_version_const:
        schema = copy.deepcopy(schema)
        if not _set_pointer(schema, options.schema_version_pointer, schema_version):
            raise SchemaLoadError(
                f"schema {path} missing pointer {options.schema_version_pointer} "
                f"for schema_version const"
            )

    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        raise SchemaLoadError(f"compiling schema {path}: {e.message}") from e

    return LoadedSchema(
        path=path,
        schema_version=schema_version,
        schema=schema,
        descriptor=descriptor,
    )
