"""
Matrix Driver

Runs every selected probe under every selected mode, mode-major, and hands
each probe's record back as one compact JSON line. A failing pair (non-zero
exit, signal, malformed stdout) is collected and reported; the remaining
pairs still run.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Mapping, Optional

from probefence.core.errors import ProbeFenceError
from probefence.core.executor.runner import ProbeExecutor
from probefence.core.modes.planner import ModeRegistry, RunMode
from probefence.core.paths import split_list
from probefence.core.probes.resolver import Probe, list_probes, resolve_probe

logger = logging.getLogger(__name__)

PROBES_ENV = "PROBES"
PROBES_RAW_ENV = "PROBES_RAW"
MODES_ENV = "MODES"


@dataclass
class PairFailure:
    probe_id: str
    mode: str
    reason: str

    def __str__(self) -> str:
        return f"probe {self.probe_id} in mode {self.mode} failed: {self.reason}"


@dataclass
class MatrixResult:
    records: int = 0
    failures: List[PairFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        return f"{len(self.failures)} probe(s) failed; see stderr for details"


def select_probes(repo_root: Path, environ: Optional[Mapping[str, str]] = None) -> List[Probe]:
    """
    ``PROBES`` (or ``PROBES_RAW``) in the given order, else every probe.

    Repeated entries run once per occurrence.
    """
    env = os.environ if environ is None else environ
    requested = split_list(env.get(PROBES_ENV) or env.get(PROBES_RAW_ENV) or "")
    if not requested:
        return list_probes(repo_root)
    return [resolve_probe(repo_root, identifier) for identifier in requested]


def select_modes(
    registry: ModeRegistry,
    requested: Optional[List[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    configured: Optional[List[str]] = None,
) -> List[RunMode]:
    """
    Explicit names, else ``MODES``, else configured defaults, else the
    registry defaults for this host.

    Raises:
        UnknownModeError: A requested name is not registered
    """
    env = os.environ if environ is None else environ
    names = list(requested or []) or split_list(env.get(MODES_ENV, ""))
    if not names:
        names = list(configured or []) or registry.defaults()
    return registry.parse(names)


def parse_probe_stdout(stdout: str) -> str:
    """
    Whole stdout as one JSON object, re-encoded compactly.

    Raises:
        ValueError: stdout is not exactly one JSON object
    """
    value = json.loads(stdout)
    if not isinstance(value, dict):
        raise ValueError("probe output is not a JSON object")
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


class MatrixDriver:
    def __init__(self, executor: ProbeExecutor):
        self.executor = executor

    def run_pair(self, probe: Probe, mode: RunMode) -> str:
        """
        Run one pair and return its compact record line.

        Raises:
            ProbeFenceError: Resolution, planning or execution failed
            ValueError: stdout is not a single JSON object
        """
        run = self.executor.run(mode.value, str(probe.path), capture_stdout=True).check()
        try:
            return parse_probe_stdout(run.stdout)
        except ValueError as e:
            raise ValueError(f"failed to parse boundary object: {e}") from e

    def run(
        self,
        probes: List[Probe],
        modes: List[RunMode],
        on_record: Callable[[str], None],
        on_failure: Optional[Callable[[PairFailure], None]] = None,
    ) -> MatrixResult:
        result = MatrixResult()
        for mode in modes:
            for probe in probes:
                try:
                    line = self.run_pair(probe, mode)
                except (ProbeFenceError, ValueError) as e:
                    failure = PairFailure(probe.id, mode.value, str(e))
                    logger.debug(f"Matrix pair failed: {failure}")
                    result.failures.append(failure)
                    if on_failure is not None:
                        on_failure(failure)
                    continue
                result.records += 1
                on_record(line)
        return result
