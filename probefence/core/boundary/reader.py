"""Readers for boundary-object streams (NDJSON, JSON array or single object)."""

import json
from typing import Any, Iterable, Iterator, List, Tuple

from probefence.core.boundary.models import BoundaryObject
from probefence.core.errors import JsonParseError


def _to_record(value: Any, where: str) -> BoundaryObject:
    try:
        return BoundaryObject.from_dict(value)
    except (KeyError, TypeError, ValueError) as e:
        raise JsonParseError(f"{where}: unable to parse boundary object ({e!r})") from e


def iter_ndjson(lines: Iterable[str]) -> Iterator[Tuple[int, Any]]:
    """
    Yield (line number, JSON value) for each non-blank NDJSON line.

    Raises:
        JsonParseError: On the first unparsable line, with its 1-based number
    """
    for lineno, line in enumerate(lines, start=1):
        text = line.strip()
        if not text:
            continue
        try:
            yield lineno, json.loads(text)
        except json.JSONDecodeError as e:
            raise JsonParseError(f"line {lineno}: unable to parse boundary object ({e})") from e


def read_boundary_objects(lines: Iterable[str]) -> List[BoundaryObject]:
    """Parse NDJSON into typed records, skipping whitespace-only lines."""
    return [_to_record(value, f"line {lineno}") for lineno, value in iter_ndjson(lines)]


def parse_json_stream(text: str) -> List[BoundaryObject]:
    """
    Parse a JSON array, a single JSON object, or NDJSON.

    Raises:
        JsonParseError: Empty input, unsupported JSON, or unparsable records
    """
    trimmed = text.strip()
    if not trimmed:
        raise JsonParseError("No input provided on stdin")

    try:
        value = json.loads(trimmed)
    except json.JSONDecodeError:
        records = read_boundary_objects(trimmed.splitlines())
        if not records:
            raise JsonParseError("No boundary objects found in input stream")
        return records

    if isinstance(value, list):
        return [_to_record(item, f"item {idx}") for idx, item in enumerate(value, start=1)]
    if isinstance(value, dict):
        return [_to_record(value, "input")]
    raise JsonParseError("Unsupported JSON input; expected object or array")
