from __future__ import annotations

import os
from pathlib import Path

import pytest

from probefence.config import HarnessPaths
from probefence.core.emitter import EmitRequest, RecordEmitter, detect_stack, parse_raw_exit_code, resolve_workspace_root
from probefence.core.errors import ContractError, StatusError, UnknownCapabilityError, UnknownModeError


def _request(**overrides) -> EmitRequest:
    values = dict(
        run_mode="baseline",
        probe_name="tests_fixture_probe",
        probe_version="1",
        primary_capability_id="cap_fs_read_workspace_tree",
        command="cat README.md",
        category="fs",
        verb="read",
        target="README.md",
        status="success",
    )
    values.update(overrides)
    return EmitRequest(**values)


def _emitter(repo: Path, **environ) -> RecordEmitter:
    env = dict(os.environ)
    env.update(environ)
    return RecordEmitter(HarnessPaths.resolve(repo, environ=env), environ=env)


def test_record_assembled_and_validated(harness_repo: Path) -> None:
    emitter = _emitter(harness_repo, WORKSPACE_ROOT=str(harness_repo), SANDBOX_MODE="workspace-write")
    request = _request(
        secondary_capability_ids=["cap_net_outbound_any", "cap_fs_read_git_metadata"],
        errno="",
        raw_exit_code=0,
    )
    record = emitter.build(request)

    assert record["schema_version"] == "boundary_event_v1"
    assert record["schema_key"] == "probefence_boundary_v1"
    assert record["capabilities_schema_version"] == "macOS_codex_v1"
    assert record["stack"]["sandbox_mode"] == "workspace-write"
    assert record["stack"]["os"]
    assert record["run"]["workspace_root"] == str(harness_repo.resolve())
    assert record["result"]["errno"] is None
    assert record["result"]["raw_exit_code"] == 0
    assert record["probe"]["secondary_capability_ids"] == ["cap_fs_read_git_metadata", "cap_net_outbound_any"]
    assert [entry["id"] for entry in record["capability_context"]["secondary"]] == record["probe"]["secondary_capability_ids"]
    assert record["payload"] == {"stdout_snippet": None, "stderr_snippet": None, "raw": {}}
    assert record["operation"]["args"] == {}


def test_emit_is_single_line(harness_repo: Path) -> None:
    line = _emitter(harness_repo, WORKSPACE_ROOT=str(harness_repo)).emit(_request(message="ünïcode"))
    assert "\n" not in line
    assert "ünïcode" in line


def test_unknown_primary_capability(harness_repo: Path) -> None:
    with pytest.raises(UnknownCapabilityError) as excinfo:
        _emitter(harness_repo).build(_request(primary_capability_id="cap_missing"))
    assert "primary capability id" in str(excinfo.value)
    assert "cap_missing" in str(excinfo.value)


def test_status_checked_before_catalog(tmp_path: Path) -> None:
    paths = HarnessPaths.resolve(tmp_path, environ={})
    with pytest.raises(StatusError):
        RecordEmitter(paths, environ={}).build(_request(status="nope"))


def test_workspace_root_resolution_order(tmp_path: Path, monkeypatch) -> None:
    explicit = tmp_path / "explicit"
    explicit.mkdir()
    assert resolve_workspace_root({"WORKSPACE_ROOT": str(explicit)}) == str(explicit.resolve())

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("probefence.core.emitter.record._git_toplevel", lambda: None)
    assert resolve_workspace_root({"PWD": str(explicit)}) == str(explicit.resolve())
    assert resolve_workspace_root({}) == str(tmp_path.resolve())


def test_raw_exit_code_parsing() -> None:
    assert parse_raw_exit_code(None) is None
    assert parse_raw_exit_code("  ") is None
    assert parse_raw_exit_code("-1") == -1
    with pytest.raises(ContractError):
        parse_raw_exit_code("one")


def test_detect_stack_reads_sandbox_mode() -> None:
    stack = detect_stack("sandbox", {"SANDBOX_MODE": "read-only"})
    assert stack.sandbox_mode == "read-only"
    assert stack.os
    assert detect_stack("baseline", {}).sandbox_mode is None
    with pytest.raises(UnknownModeError):
        detect_stack("warp", {})
