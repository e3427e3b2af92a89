from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from probefence.config import HarnessPaths
from probefence.core.errors import (
    ContractError,
    ProbeEscapeError,
    ProbeExitError,
    ProbeSignaledError,
    ProbeSpawnError,
    UnknownModeError,
)
from probefence.core.executor import ProbeExecutor, WorkspaceOverride


def _executor(repo: Path, **environ) -> ProbeExecutor:
    env = dict(os.environ)
    env.update(environ)
    return ProbeExecutor(HarnessPaths.resolve(repo, environ=env), environ=env)


def test_prepare_exports_probe_contract(harness_repo: Path) -> None:
    prepared = _executor(harness_repo).prepare("baseline", "tests_fixture_probe")
    assert prepared.probe.id == "tests_fixture_probe"
    assert prepared.metadata.primary_capability == "cap_fs_read_workspace_tree"
    assert prepared.env["RUN_MODE"] == "baseline"
    assert prepared.env["SANDBOX_MODE"] == ""
    assert prepared.env["WORKSPACE_ROOT"] == str(harness_repo.resolve())
    assert prepared.env["TMPDIR"] == str(harness_repo.resolve() / "tmp")
    assert prepared.env["CATALOG_PATH"].endswith("schema/capabilities.json")
    assert prepared.cwd == harness_repo.resolve()


def test_prepare_drops_workspace_when_skipped(harness_repo: Path) -> None:
    executor = _executor(harness_repo, WORKSPACE_ROOT="/somewhere")
    prepared = executor.prepare("baseline", "tests_fixture_probe", workspace_override=WorkspaceOverride.from_value(""))
    assert "WORKSPACE_ROOT" not in prepared.env


def test_baseline_run_emits_record(harness_repo: Path) -> None:
    run = _executor(harness_repo).run("baseline", "tests_fixture_probe", capture_stdout=True).check()
    record = json.loads(run.stdout)
    assert record["schema_version"] == "boundary_event_v1"
    assert record["probe"]["id"] == "tests_fixture_probe"
    assert record["run"]["mode"] == "baseline"
    assert record["run"]["workspace_root"] == str(harness_repo.resolve())
    assert record["result"]["observed_result"] == "success"
    assert record["capability_context"]["primary"]["id"] == "cap_fs_read_workspace_tree"
    assert record["operation"]["args"] == {"fixture": True}


def test_exit_code_propagates(harness_repo: Path) -> None:
    failing = harness_repo / "probes" / "exits_three.sh"
    failing.write_text(
        '#!/usr/bin/env bash\nprimary_capability_id="cap_fs_read_workspace_tree"\nexit 3\n',
        encoding="utf-8",
    )
    failing.chmod(0o755)
    run = _executor(harness_repo).run("baseline", "exits_three", capture_stdout=True)
    assert run.returncode == 3
    assert not run.succeeded
    with pytest.raises(ProbeExitError, match="code 3"):
        run.check()


def test_signal_termination_raises(harness_repo: Path) -> None:
    script = harness_repo / "probes" / "self_kill.sh"
    script.write_text(
        '#!/usr/bin/env bash\nprimary_capability_id="cap_proc_fork_and_child_spawn"\nkill -9 $$\n',
        encoding="utf-8",
    )
    script.chmod(0o755)
    with pytest.raises(ProbeSignaledError, match="signal 9") as excinfo:
        _executor(harness_repo).run("baseline", "self_kill", capture_stdout=True)
    assert excinfo.value.signal_number == 9


def test_probe_without_primary_capability_rejected(harness_repo: Path) -> None:
    probe = harness_repo / "probes" / "anonymous.sh"
    probe.write_text("#!/usr/bin/env bash\necho hi\n", encoding="utf-8")
    probe.chmod(0o755)
    with pytest.raises(ContractError, match="primary_capability_id"):
        _executor(harness_repo).prepare("baseline", "anonymous")


def test_non_executable_probe_rejected(harness_repo: Path) -> None:
    (harness_repo / "probes" / "tests_fixture_probe.sh").chmod(0o644)
    with pytest.raises(ProbeSpawnError, match="not executable"):
        _executor(harness_repo).prepare("baseline", "tests_fixture_probe")


def test_unknown_mode_rejected(harness_repo: Path) -> None:
    with pytest.raises(UnknownModeError):
        _executor(harness_repo).prepare("warp", "tests_fixture_probe")


def test_escaping_probe_never_runs(harness_repo: Path, tmp_path: Path) -> None:
    marker = tmp_path / "ran"
    outside = tmp_path / "outside.sh"
    outside.write_text(
        f'#!/usr/bin/env bash\nprimary_capability_id="cap_fs_read_workspace_tree"\ntouch "{marker}"\n',
        encoding="utf-8",
    )
    outside.chmod(0o755)
    os.symlink(outside, harness_repo / "probes" / "alias.sh")
    with pytest.raises(ProbeEscapeError):
        _executor(harness_repo).run("baseline", "alias")
    assert not marker.exists()
