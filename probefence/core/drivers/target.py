"""
Target Driver

Selects probes either by capability id or by explicit probe ids, then runs
them through the matrix driver ``repeat`` times. Selection errors surface
before anything executes.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from probefence.core.catalog.index import CapabilityIndex
from probefence.core.drivers.matrix import MatrixDriver, MatrixResult, PairFailure
from probefence.core.errors import (
    ContractError,
    ExecutionError,
    ProbeDirUnreadableError,
    ProbeNotFoundError,
    UnknownCapabilityError,
)
from probefence.core.modes.planner import RunMode
from probefence.core.probes.metadata import ProbeMetadata
from probefence.core.probes.resolver import Probe, list_probes, resolve_probe

logger = logging.getLogger(__name__)


@dataclass
class SelectionPlan:
    probes: List[Probe]
    capability_id: Optional[str] = None  # set for --cap selections
    probe_ids: List[str] = field(default_factory=list)

    def describe(self) -> str:
        if self.capability_id is not None:
            return f"capability: {self.capability_id}"
        return f"probes: {', '.join(self.probe_ids)}"


def probes_for_capability(repo_root: Path, capability_id: str) -> List[Probe]:
    matches = []
    for probe in list_probes(repo_root):
        try:
            metadata = ProbeMetadata.from_script(probe.path)
        except OSError as e:
            raise ProbeDirUnreadableError(f"Unable to read probe script {probe.path}: {e}") from e
        if metadata.primary_capability == capability_id:
            matches.append(probe)
    return sorted(matches, key=lambda probe: probe.id)


def select_by_capability(repo_root: Path, catalog_path: Path, capability_id: str) -> SelectionPlan:
    """
    Raises:
        UnknownCapabilityError: Capability is not in the catalog
        ProbeNotFoundError: No probe targets the capability
    """
    index = CapabilityIndex.load(catalog_path)
    if capability_id not in index:
        raise UnknownCapabilityError(
            capability_id,
            f"unknown capability '{capability_id}' (not present in bundled catalog)",
        )
    probes = probes_for_capability(repo_root, capability_id)
    if not probes:
        raise ProbeNotFoundError(f"capability '{capability_id}' has no probes in this workspace")
    return SelectionPlan(probes=probes, capability_id=capability_id)


def select_by_probe_ids(repo_root: Path, requested: List[str]) -> SelectionPlan:
    """Resolve ids in order, keeping the first occurrence of each probe."""
    if not requested:
        raise ContractError("--probe must be provided at least once when --cap is omitted")
    probes: List[Probe] = []
    seen = set()
    for identifier in requested:
        probe = resolve_probe(repo_root, identifier)
        if probe.id not in seen:
            seen.add(probe.id)
            probes.append(probe)
    return SelectionPlan(probes=probes, probe_ids=[probe.id for probe in probes])


def resolve_selection(
    repo_root: Path,
    catalog_path: Path,
    capability_id: Optional[str],
    probe_ids: List[str],
) -> SelectionPlan:
    """
    Raises:
        ContractError: Both or neither of --cap and --probe were given
    """
    if capability_id and probe_ids:
        raise ContractError("Specify exactly one of --cap or --probe")
    if capability_id:
        return select_by_capability(repo_root, catalog_path, capability_id)
    if probe_ids:
        return select_by_probe_ids(repo_root, probe_ids)
    raise ContractError("--cap or --probe is required")


def render_dry_run(plan: SelectionPlan, modes: List[RunMode], repeat: int) -> str:
    lines = ["probe target (dry-run)", plan.describe(), f"modes: {', '.join(mode.value for mode in modes)}"]
    if repeat > 1:
        lines.append(f"repeat: {repeat}")
    lines.append("probes to run:")
    lines.extend(f"  - {probe.id}" for probe in plan.probes)
    return "\n".join(lines)


class TargetRunError(ExecutionError):
    """One repeat of a target run had failing pairs"""

    def __init__(self, attempt: int, repeat: int, result: MatrixResult):
        self.attempt = attempt
        self.result = result
        prefix = f"repeat {attempt} failed" if repeat > 1 else "target run failed"
        super().__init__(f"{prefix}: {result.summary()}")


def run_target(
    driver: MatrixDriver,
    plan: SelectionPlan,
    modes: List[RunMode],
    repeat: int,
    on_record: Callable[[str], None],
    on_failure: Optional[Callable[[PairFailure], None]] = None,
) -> int:
    """
    Run the plan ``repeat`` times, stopping after the first failing repeat.

    Returns:
        Number of records emitted

    Raises:
        ContractError: repeat < 1 or an empty plan
        TargetRunError: A repeat had failing pairs
    """
    if repeat < 1:
        raise ContractError("--repeat must be >= 1")
    if not plan.probes:
        raise ContractError("no probes resolved for target run")

    emitted = 0
    for attempt in range(1, repeat + 1):
        logger.debug(f"Target run {attempt}/{repeat}: {len(plan.probes)} probe(s) x {len(modes)} mode(s)")
        result = driver.run(plan.probes, modes, on_record, on_failure)
        emitted += result.records
        if not result.ok:
            raise TargetRunError(attempt, repeat, result)
    return emitted
