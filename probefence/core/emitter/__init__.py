"""Record emitter: payload builders, stack detection and record assembly"""

from probefence.core.emitter.payload import (
    SNIPPET_MAX_CHARS,
    JsonObjectBuilder,
    PayloadArgs,
    TextSource,
    clean_text,
    normalize_secondary_ids,
    truncate_snippet,
    validate_capability_id,
    validate_status,
)
from probefence.core.emitter.stack import detect_stack, run_detect_stack
from probefence.core.emitter.record import (
    EmitRequest,
    RecordEmitter,
    parse_raw_exit_code,
    resolve_workspace_root,
)

__all__ = [
    "SNIPPET_MAX_CHARS",
    "JsonObjectBuilder",
    "PayloadArgs",
    "TextSource",
    "clean_text",
    "normalize_secondary_ids",
    "truncate_snippet",
    "validate_capability_id",
    "validate_status",
    "detect_stack",
    "run_detect_stack",
    "EmitRequest",
    "RecordEmitter",
    "parse_raw_exit_code",
    "resolve_workspace_root",
]
