"""Probe discovery: resolver, metadata scraping, coverage accounting"""

from probefence.core.probes.resolver import (
    PROBES_DIR,
    Probe,
    canonical_probes_root,
    list_probes,
    resolve_probe,
)
from probefence.core.probes.metadata import (
    ProbeMetadata,
    collect_probe_scripts,
    parse_assignment,
    parse_secondary_capabilities,
)
from probefence.core.probes.coverage import (
    CoverageEntry,
    build_coverage_map,
    filter_coverage_probes,
    validate_boundary_objects,
    validate_probe_capabilities,
)

__all__ = [
    "PROBES_DIR",
    "Probe",
    "canonical_probes_root",
    "list_probes",
    "resolve_probe",
    "ProbeMetadata",
    "collect_probe_scripts",
    "parse_assignment",
    "parse_secondary_capabilities",
    "CoverageEntry",
    "build_coverage_map",
    "filter_coverage_probes",
    "validate_boundary_objects",
    "validate_probe_capabilities",
]
