"""JSON schema loading shared by the catalog and boundary schema"""

from probefence.core.schema.loader import (
    LoadedSchema,
    SchemaLoadOptions,
    is_identifier,
    json_pointer,
    load_json_schema,
    read_json,
)

__all__ = [
    "LoadedSchema",
    "SchemaLoadOptions",
    "is_identifier",
    "json_pointer",
    "load_json_schema",
    "read_json",
]
