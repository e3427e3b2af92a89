"""
Listener summary: plain-text view of a boundary-object NDJSON stream.

Every record is checked against the boundary schema before anything is
rendered, so the summary only ever describes valid records.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from probefence.core.boundary.models import BoundaryObject
from probefence.core.boundary.reader import iter_ndjson, read_boundary_objects
from probefence.core.boundary.schema import BoundarySchema
from probefence.core.errors import SchemaValidationError

MAX_SNIPPET_LINES = 5
MAX_SNIPPET_CHARS = 160
ELLIPSIS = "…"


@dataclass
class ListenStats:
    total_records: int = 0
    distinct_probes: int = 0
    results: Dict[str, int] = field(default_factory=dict)
    modes: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_records(cls, records: List[BoundaryObject]) -> "ListenStats":
        return cls(
            total_records=len(records),
            distinct_probes=len({record.probe.id for record in records}),
            results=dict(Counter(record.result.observed_result for record in records)),
            modes=dict(Counter(record.run.mode for record in records)),
        )


def format_counts(counts: Dict[str, int], empty_label: str = "none") -> str:
    if not counts:
        return empty_label
    return ", ".join(f"{key}={counts[key]}" for key in sorted(counts))


def truncate_line(line: str) -> str:
    clean = line.rstrip()
    if len(clean) <= MAX_SNIPPET_CHARS:
        return clean
    return clean[:MAX_SNIPPET_CHARS - 1] + ELLIPSIS


def _snippet_lines(label: str, snippet: Optional[str]) -> List[str]:
    trimmed = (snippet or "").strip()
    if not trimmed:
        return []
    lines = trimmed.splitlines()
    out = [f"  {label}:"]
    out.extend(f"    {truncate_line(line)}" for line in lines[:MAX_SNIPPET_LINES])
    if len(lines) > MAX_SNIPPET_LINES:
        out.append(f"    {ELLIPSIS}")
    return out


def render_summary(stats: ListenStats) -> List[str]:
    return [
        "probe listen summary",
        "==========================",
        f"total records  : {stats.total_records}",
        f"distinct probes: {stats.distinct_probes}",
        f"results        : {format_counts(stats.results)}",
        f"modes          : {format_counts(stats.modes)}",
    ]


def render_record(idx: int, record: BoundaryObject) -> List[str]:
    capability = record.capability_context.primary
    lines = [
        f"[#{idx}] {record.result.observed_result:<7} mode={record.run.mode} probe={record.probe.id}",
        f"  capability: {capability.id} ({capability.category.value}, {capability.layer.value})",
        f"  op:        {record.operation.verb} {record.operation.target}",
    ]
    message = (record.result.message or "").strip()
    if message:
        lines.append(f"  message:   {message}")
    lines.extend(_snippet_lines("stdout", record.payload.stdout_snippet))
    lines.extend(_snippet_lines("stderr", record.payload.stderr_snippet))
    lines.append("")
    return lines


def render_records(records: List[BoundaryObject]) -> str:
    lines = render_summary(ListenStats.from_records(records))
    lines.append("")
    for idx, record in enumerate(records, start=1):
        lines.extend(render_record(idx, record))
    return "\n".join(lines) + "\n"


def render_listen_output(lines: Iterable[str], schema: BoundarySchema) -> str:
    """
    Validate an NDJSON stream and render its summary.

    Raises:
        JsonParseError: A line is not JSON or not a boundary object
        SchemaValidationError: A record fails the boundary schema
    """
    raw_lines = list(lines)
    for lineno, value in iter_ndjson(raw_lines):
        errors = schema.errors(value)
        if errors:
            raise SchemaValidationError(errors, subject=f"line {lineno}")
    return render_records(read_boundary_objects(raw_lines))
