"""
Capability Coverage and Cross Validation

Cross-checks between the capability catalog, authored probes and stored
boundary objects:

- build_coverage_map: which capabilities have at least one probe
- validate_probe_capabilities: probes naming ids the catalog does not know
- validate_boundary_objects: stored records naming ids the catalog does not know

Validators return every problem found instead of stopping at the first one.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List

from probefence.core.catalog.index import CapabilityIndex
from probefence.core.errors import ContractError, UnknownCapabilityError
from probefence.core.probes.metadata import ProbeMetadata
from probefence.core.schema.loader import json_pointer

logger = logging.getLogger(__name__)

# Test fixtures never count toward coverage
IGNORED_PROBE_IDS = frozenset({"tests_fixture_probe", "tests_static_contract_broken"})


@dataclass
class CoverageEntry:
    has_probe: bool = False
    probe_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"has_probe": self.has_probe, "probe_ids": list(self.probe_ids)}


def filter_coverage_probes(probes: Iterable[ProbeMetadata]) -> List[ProbeMetadata]:
    """Drop fixture scripts, matched by file stem or by declared probe_name."""
    return [
        probe for probe in probes
        if Path(probe.script).stem not in IGNORED_PROBE_IDS and probe.probe_name not in IGNORED_PROBE_IDS
    ]


def build_coverage_map(index: CapabilityIndex, probes: Iterable[ProbeMetadata]) -> Dict[str, CoverageEntry]:
    """
    Map every catalog capability id to the probes that target it.

    Raises:
        ContractError: A probe is missing probe_name or primary_capability_id
        UnknownCapabilityError: A probe targets an id not in the catalog
    """
    coverage = {capability_id: CoverageEntry() for capability_id in index.ids()}
    for probe in filter_coverage_probes(probes):
        if not probe.probe_name:
            raise ContractError(f"{probe.script} is missing probe_name")
        if not probe.primary_capability:
            raise ContractError(f"{probe.script} is missing primary_capability_id")
        entry = coverage.get(probe.primary_capability)
        if entry is None:
            raise UnknownCapabilityError(
                probe.primary_capability,
                f"{probe.script} references unknown capability '{probe.primary_capability}'",
            )
        entry.has_probe = True
        if probe.probe_name not in entry.probe_ids:
            entry.probe_ids.append(probe.probe_name)
            entry.probe_ids.sort()
    return coverage


def validate_probe_capabilities(index: CapabilityIndex, probes: Iterable[ProbeMetadata]) -> List[str]:
    errors = []
    for probe in probes:
        if not probe.primary_capability:
            errors.append(f"{probe.script} is missing primary_capability_id")
            continue
        if probe.primary_capability not in index:
            errors.append(f"{probe.script} references unknown capability '{probe.primary_capability}'")
        for secondary in probe.secondary_capabilities:
            if secondary not in index:
                errors.append(f"{probe.script} references unknown secondary capability '{secondary}'")
    return errors


def extract_capability_ids(record: Any) -> List[str]:
    """Capability ids named in a record's probe and capability_context sections"""
    ids: List[str] = []
    primary = json_pointer(record, "/probe/primary_capability_id")
    if isinstance(primary, str):
        ids.append(primary)
    secondary = json_pointer(record, "/probe/secondary_capability_ids")
    if isinstance(secondary, list):
        ids.extend(value for value in secondary if isinstance(value, str))
    context_primary = json_pointer(record, "/capability_context/primary/id")
    if isinstance(context_primary, str):
        ids.append(context_primary)
    context_secondary = json_pointer(record, "/capability_context/secondary")
    if isinstance(context_secondary, list):
        ids.extend(
            entry["id"] for entry in context_secondary
            if isinstance(entry, dict) and isinstance(entry.get("id"), str)
        )
    return ids


def validate_boundary_objects(index: CapabilityIndex, dirs: Iterable[Path]) -> List[str]:
    """Check every ``*.json`` record under dirs (recursively) against the catalog."""
    files: List[Path] = []
    for directory in dirs:
        directory = Path(directory)
        if directory.is_dir():
            files.extend(path for path in directory.rglob("*.json") if path.is_file())

    errors = []
    for json_file in sorted(files):
        try:
            record = json.loads(json_file.read_text(encoding="utf-8"))
        except OSError as e:
            errors.append(f"{json_file}: unable to read: {e}")
            continue
        except json.JSONDecodeError as e:
            errors.append(f"{json_file}: invalid JSON: {e}")
            continue

        seen = set()
        for capability_id in extract_capability_ids(record):
            if capability_id in seen:
                continue
            seen.add(capability_id)
            if capability_id not in index:
                errors.append(f"{json_file} references unknown capability '{capability_id}'")
    logger.debug(f"Validated {len(files)} stored records, {len(errors)} problem(s)")
    return errors
