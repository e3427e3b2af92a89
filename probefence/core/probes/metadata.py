"""
Probe Metadata Scraper

Reads probe scripts as text (never executes them) to recover ``probe_name``,
``probe_version``, ``primary_capability_id`` and secondary capability ids.
Values that depend on shell expansion are dropped: an id is only reported
when it is spelled out literally in the script.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

SECONDARY_FLAG = "--secondary-capability-id"


def parse_assignment(contents: str, var: str) -> Optional[str]:
    """First literal value assigned to var (quoted or bare), skipping comments."""
    for line in contents.splitlines():
        stripped = line.lstrip()
        if stripped.startswith("#") or not stripped.startswith(var):
            continue
        rest = stripped[len(var):].lstrip()
        if not rest.startswith("="):
            continue
        value = rest[1:].lstrip()
        if not value:
            continue
        quote = value[0]
        if quote in ("'", '"'):
            end = value.find(quote, 1)
            if end != -1:
                return value[1:end]
            continue
        return value.split()[0]
    return None


def _parse_token(raw: str) -> Optional[str]:
    token = raw.strip().strip("\"'")
    if not token or "$" in token:
        return None
    return token


def _array_segment(text: str) -> Tuple[str, bool]:
    end = text.find(")")
    if end == -1:
        return text, False
    return text[:end], True


def _tokens(text: str) -> Iterable[str]:
    for raw in text.split():
        token = _parse_token(raw)
        if token:
            yield token


def _flag_values(text: str) -> Iterable[str]:
    parts = text.split()
    idx = 0
    while idx < len(parts):
        part = parts[idx]
        if part.startswith(SECONDARY_FLAG + "="):
            token = _parse_token(part[len(SECONDARY_FLAG) + 1:])
            if token:
                yield token
        elif part == SECONDARY_FLAG and idx + 1 < len(parts):
            idx += 1
            token = _parse_token(parts[idx])
            if token:
                yield token
        idx += 1


def parse_secondary_capabilities(contents: str) -> List[str]:
    """
    Collect secondary ids from single assignments, (multi-line) arrays and
    ``--secondary-capability-id`` flags; sorted and deduplicated.
    """
    ids: Set[str] = set()
    array_open = False
    for raw_line in contents.splitlines():
        line = raw_line.split("#", 1)[0].lstrip()

        if array_open:
            segment, closed = _array_segment(line)
            ids.update(_tokens(segment))
            array_open = not closed
            continue

        if line.startswith("secondary_capability_id="):
            token = _parse_token(line[len("secondary_capability_id="):])
            if token:
                ids.add(token)
            continue

        if line.startswith("secondary_capability_ids=("):
            segment, closed = _array_segment(line[len("secondary_capability_ids=("):])
            ids.update(_tokens(segment))
            array_open = not closed
            continue

        if SECONDARY_FLAG in line:
            ids.update(_flag_values(line))

    return sorted(ids)


@dataclass
class ProbeMetadata:
    """Best-effort metadata scraped from one probe script"""

    script: Path
    probe_name: Optional[str] = None
    probe_version: Optional[str] = None
    primary_capability: Optional[str] = None
    secondary_capabilities: List[str] = field(default_factory=list)

    @classmethod
    def from_script(cls, path: Path) -> "ProbeMetadata":
        """
        Raises:
            OSError: If the script cannot be read
        """
        contents = Path(path).read_text(encoding="utf-8", errors="replace")
        try:
            script = Path(path).resolve(strict=True)
        except (OSError, RuntimeError):
            script = Path(path)

        def literal(var: str) -> Optional[str]:
            value = parse_assignment(contents, var)
            return value if value and "$" not in value else None

        return cls(
            script=script,
            probe_name=literal("probe_name"),
            probe_version=literal("probe_version"),
            primary_capability=literal("primary_capability_id"),
            secondary_capabilities=parse_secondary_capabilities(contents),
        )


def collect_probe_scripts(roots: Iterable[Path]) -> List[Path]:
    """All ``*.sh`` files under roots, recursively, sorted."""
    scripts: List[Path] = []
    for root in roots:
        root = Path(root)
        if not root.is_dir():
            logger.debug(f"Skipping missing probe directory {root}")
            continue
        scripts.extend(path for path in root.rglob("*.sh") if path.is_file())
    return sorted(scripts)
