from __future__ import annotations

import os
from pathlib import Path

from probefence.config import HarnessPaths
from probefence.core.boundary import BoundarySchema
from probefence.core.catalog import CapabilityIndex
from probefence.core.executor import ProbeExecutor
from probefence.core.gates import DynamicGate
from probefence.core.modes import RunMode
from probefence.core.probes import resolve_probe


def _gate(repo: Path, timeout: float = 30.0) -> DynamicGate:
    env = dict(os.environ)
    paths = HarnessPaths.resolve(repo, environ=env)
    return DynamicGate(
        ProbeExecutor(paths, environ=env),
        BoundarySchema.load(paths.boundary_path),
        CapabilityIndex.load(paths.catalog_path),
        timeout=timeout,
    )


def test_fixture_probe_passes(harness_repo: Path) -> None:
    results = _gate(harness_repo).run(resolve_probe(harness_repo, "tests_fixture_probe"), [RunMode.BASELINE])
    assert [result.line() for result in results] == [
        "probe-gate: dynamic gate passed for tests_fixture_probe (baseline)"
    ]


def test_silent_probe_never_called_emitter(harness_repo: Path) -> None:
    result = _gate(harness_repo).check_mode(resolve_probe(harness_repo, "tests_silent_probe"), RunMode.BASELINE)
    assert result.reason == "emit-record not called"


def test_non_json_output(harness_repo: Path) -> None:
    result = _gate(harness_repo).check_mode(resolve_probe(harness_repo, "broken"), RunMode.BASELINE)
    assert result.reason.startswith("output is not valid JSON")
    assert result.line().startswith("probe-gate: dynamic gate failed for broken: ")


def test_gate_timeout(harness_repo: Path) -> None:
    slow = harness_repo / "probes" / "slow.sh"
    slow.write_text(
        '#!/usr/bin/env bash\nprimary_capability_id="cap_fs_read_workspace_tree"\nexec sleep 5\n',
        encoding="utf-8",
    )
    slow.chmod(0o755)
    result = _gate(harness_repo, timeout=0.5).check_mode(resolve_probe(harness_repo, "slow"), RunMode.BASELINE)
    assert "timed out" in result.reason
