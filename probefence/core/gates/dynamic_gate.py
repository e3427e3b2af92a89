"""Dynamic Gate: run a probe and inspect the record it emits

For each mode the probe must exit zero, print exactly one line, and that line
must be a boundary object that passes the schema and names only catalog
capabilities. A probe that prints nothing never reached emit-record.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from probefence.core.boundary.models import OBSERVED_RESULTS
from probefence.core.boundary.schema import BoundarySchema
from probefence.core.catalog.index import CapabilityIndex
from probefence.core.errors import ProbeFenceError
from probefence.core.executor.runner import ProbeExecutor
from probefence.core.modes.planner import RunMode
from probefence.core.probes.coverage import extract_capability_ids
from probefence.core.probes.resolver import Probe

logger = logging.getLogger(__name__)

DEFAULT_GATE_TIMEOUT = 5.0


@dataclass
class DynamicGateResult:
    probe_id: str
    mode: str
    reason: Optional[str] = None  # None when the mode passed

    @property
    def passed(self) -> bool:
        return self.reason is None

    def line(self) -> str:
        if self.passed:
            return f"probe-gate: dynamic gate passed for {self.probe_id} ({self.mode})"
        return f"probe-gate: dynamic gate failed for {self.probe_id}: {self.reason}"


def inspect_record(
    value: Any,
    mode: str,
    schema: BoundarySchema,
    index: CapabilityIndex,
) -> Optional[str]:
    """First problem with an emitted record, or None"""
    errors = schema.errors(value)
    if errors:
        return f"schema validation failed: {'; '.join(errors)}"

    observed = value["result"]["observed_result"]
    if observed not in OBSERVED_RESULTS:
        return f"unexpected observed_result '{observed}'"

    if value["run"]["mode"] != mode:
        return f"run.mode '{value['run']['mode']}' does not match requested mode '{mode}'"

    for capability_id in extract_capability_ids(value):
        if capability_id not in index:
            return f"unknown capability id '{capability_id}'"
    return None


class DynamicGate:
    def __init__(
        self,
        executor: ProbeExecutor,
        schema: BoundarySchema,
        index: CapabilityIndex,
        timeout: float = DEFAULT_GATE_TIMEOUT,
    ):
        self.executor = executor
        self.schema = schema
        self.index = index
        self.timeout = timeout

    def check_mode(self, probe: Probe, mode: RunMode) -> DynamicGateResult:
        result = DynamicGateResult(probe_id=probe.id, mode=mode.value)
        try:
            run = self.executor.run(
                mode.value,
                str(probe.path),
                capture_stdout=True,
                capture_stderr=True,
                timeout=self.timeout,
            )
        except ProbeFenceError as e:
            result.reason = str(e)
            return result

        if not run.succeeded:
            detail = run.stderr.strip().splitlines()[-1] if run.stderr.strip() else ""
            result.reason = f"probe exited with code {run.returncode}" + (f": {detail}" if detail else "")
            return result

        lines = [line for line in run.stdout.splitlines() if line.strip()]
        if not lines:
            result.reason = "emit-record not called"
            return result
        if len(lines) > 1:
            result.reason = f"expected exactly one line of output, got {len(lines)}"
            return result

        try:
            value = json.loads(lines[0])
        except json.JSONDecodeError as e:
            result.reason = f"output is not valid JSON: {e}"
            return result
        if not isinstance(value, dict):
            result.reason = "output is not a JSON object"
            return result

        result.reason = inspect_record(value, mode.value, self.schema, self.index)
        return result

    def run(self, probe: Probe, modes: List[RunMode]) -> List[DynamicGateResult]:
        results = []
        for mode in modes:
            outcome = self.check_mode(probe, mode)
            logger.debug(outcome.line())
            results.append(outcome)
        return results
