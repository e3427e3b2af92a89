"""
Payload and Operation-Args Builders

``emit-record`` accepts a payload either as one JSON file or as inline pieces
(stdout/stderr snippets plus a ``raw`` object), never both. Operation args
and ``payload.raw`` are assembled from whole-object merges followed by single
field assignments.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from probefence.core.boundary.models import OBSERVED_RESULTS
from probefence.core.catalog.index import CapabilityIndex
from probefence.core.errors import (
    ContractError,
    JsonParseError,
    PayloadConflictError,
    StatusError,
    UnknownCapabilityError,
)
from probefence.core.paths import split_list

SNIPPET_MAX_CHARS = 400
SNIPPET_ELLIPSIS = "…"


def clean_text(raw: str) -> str:
    return raw.replace("\0", "")


def truncate_snippet(text: str) -> str:
    """Cap text at SNIPPET_MAX_CHARS codepoints, ellipsis included."""
    if len(text) <= SNIPPET_MAX_CHARS:
        return text
    return text[:SNIPPET_MAX_CHARS - 1] + SNIPPET_ELLIPSIS


def _load_json(raw: str, label: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise JsonParseError(f"Invalid JSON for {label}: {e}") from e


def _read_json_file(path: Path, label: str) -> Any:
    if not path.is_file():
        raise ContractError(f"{label} file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ContractError(f"Unable to read {label} file {path}: {e}") from e
    return _load_json(text, f"{label} file {path}")


class JsonObjectBuilder:
    """Accumulates a JSON object from merges and single-field assignments"""

    def __init__(self, label: str):
        self.label = label
        self._merges: List[Dict[str, Any]] = []
        self._fields: List[Tuple[str, Any]] = []

    def _push_object(self, value: Any) -> None:
        if not isinstance(value, dict):
            raise ContractError(f"{self.label} must be a JSON object")
        self._merges.append(value)

    def merge_json_string(self, raw: str) -> None:
        self._push_object(_load_json(raw, self.label))

    def merge_json_file(self, path: Path) -> None:
        self._push_object(_read_json_file(Path(path), self.label))

    def insert_string(self, key: str, value: str) -> None:
        self._fields.append((key, value))

    def insert_json_value(self, key: str, raw: str) -> None:
        self._fields.append((key, _load_json(raw, f"{self.label} value {key}")))

    def insert_null(self, key: str) -> None:
        self._fields.append((key, None))

    def insert_list(self, key: str, raw: str) -> None:
        self._fields.append((key, split_list(raw)))

    def is_empty(self) -> bool:
        return not self._merges and not self._fields

    def build(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for merge in self._merges:
            result.update(merge)
        for key, value in self._fields:
            result[key] = value
        return result


@dataclass(frozen=True)
class TextSource:
    """Snippet text given inline or read from a file"""

    inline: Optional[str] = None
    path: Optional[Path] = None

    def read(self) -> str:
        if self.path is None:
            return clean_text(self.inline or "")
        if not self.path.is_file():
            raise ContractError(f"Snippet file not found: {self.path}")
        try:
            data = self.path.read_bytes()
        except OSError as e:
            raise ContractError(f"Unable to read snippet file {self.path}: {e}") from e
        return clean_text(data.decode("utf-8", errors="replace"))


@dataclass
class PayloadArgs:
    payload_file: Optional[Path] = None
    stdout: Optional[TextSource] = None
    stderr: Optional[TextSource] = None
    raw: JsonObjectBuilder = field(default_factory=lambda: JsonObjectBuilder("payload raw"))

    def set_payload_file(self, path: Path) -> None:
        if self.payload_file is not None:
            raise PayloadConflictError("--payload-file provided multiple times")
        self.payload_file = Path(path)

    def set_stdout(self, source: TextSource) -> None:
        if self.stdout is not None:
            raise PayloadConflictError("stdout snippet provided multiple times")
        self.stdout = source

    def set_stderr(self, source: TextSource) -> None:
        if self.stderr is not None:
            raise PayloadConflictError("stderr snippet provided multiple times")
        self.stderr = source

    def has_inline_fields(self) -> bool:
        return self.stdout is not None or self.stderr is not None or not self.raw.is_empty()

    def build(self) -> Dict[str, Any]:
        """
        Raises:
            PayloadConflictError: Payload file combined with inline flags
            ContractError: Payload file missing or not a JSON object
        """
        if self.payload_file is not None:
            if self.has_inline_fields():
                raise PayloadConflictError("--payload-file cannot be combined with inline payload flags")
            if not self.payload_file.is_file():
                raise ContractError(f"Payload file not found: {self.payload_file}")
            value = _read_json_file(self.payload_file, "payload")
            if not isinstance(value, dict):
                raise ContractError("payload file must contain a JSON object")
            return value

        return {
            "stdout_snippet": truncate_snippet(self.stdout.read()) if self.stdout else None,
            "stderr_snippet": truncate_snippet(self.stderr.read()) if self.stderr else None,
            "raw": self.raw.build(),
        }


def validate_status(status: str) -> str:
    if status not in OBSERVED_RESULTS:
        raise StatusError(status)
    return status


def validate_capability_id(index: CapabilityIndex, capability_id: str, label: str) -> str:
    if capability_id not in index:
        raise UnknownCapabilityError(
            capability_id,
            f"Unknown {label}: {capability_id}. Expected one of the IDs in schema/capabilities.json.",
        )
    return capability_id


def normalize_secondary_ids(index: CapabilityIndex, raw: Iterable[str]) -> List[str]:
    """Trimmed, deduplicated and sorted; blanks skipped, unknown ids rejected."""
    ids = set()
    for value in raw:
        trimmed = value.strip()
        if not trimmed:
            continue
        ids.add(validate_capability_id(index, trimmed, "secondary capability id"))
    return sorted(ids)
