from __future__ import annotations

import json
from pathlib import Path

BASE_ARGS = [
    "--run-mode", "baseline",
    "--probe-name", "manual_probe",
    "--probe-version", "1",
    "--primary-capability-id", "cap_fs_read_workspace_tree",
    "--command", "cat file",
    "--category", "fs",
    "--verb", "read",
    "--target", "file",
    "--status", "denied",
]


def _with(args, flag, value):
    updated = list(args)
    updated[updated.index(flag) + 1] = value
    return updated


def test_emit_record_prints_one_record(run_tool) -> None:
    result = run_tool(
        "emit-record",
        *BASE_ARGS,
        "--errno", "EPERM",
        "--raw-exit-code", "1",
        "--payload-stderr", "Operation not permitted",
        "--payload-raw-field", "attempt", "1",
        "--payload-raw-field-json", "retried", "false",
        "--operation-arg-list", "flags", "a,b",
    )
    assert result.returncode == 0, result.stderr
    assert len(result.stdout.splitlines()) == 1
    record = json.loads(result.stdout)
    assert record["result"] == {
        "observed_result": "denied",
        "raw_exit_code": 1,
        "errno": "EPERM",
        "message": None,
        "error_detail": None,
    }
    assert record["payload"]["raw"] == {"attempt": "1", "retried": False}
    assert record["payload"]["stderr_snippet"] == "Operation not permitted"
    assert record["operation"]["args"] == {"flags": ["a", "b"]}


def test_probe_id_alias_and_empty_optionals(run_tool) -> None:
    args = ["--probe-id" if arg == "--probe-name" else arg for arg in BASE_ARGS]
    result = run_tool("emit-record", *args, "--errno", "", "--raw-exit-code", "", "--message", "")
    assert result.returncode == 0, result.stderr
    record = json.loads(result.stdout)
    assert record["probe"]["id"] == "manual_probe"
    assert record["result"]["errno"] is None
    assert record["result"]["raw_exit_code"] is None
    assert record["result"]["message"] is None


def test_unknown_capability_rejected(run_tool) -> None:
    result = run_tool("emit-record", *_with(BASE_ARGS, "--primary-capability-id", "cap_missing"))
    assert result.returncode != 0
    assert result.stdout == ""
    assert "primary capability id" in result.stderr
    assert "cap_missing" in result.stderr


def test_unknown_status_rejected(run_tool) -> None:
    result = run_tool("emit-record", *_with(BASE_ARGS, "--status", "blocked"))
    assert result.returncode == 1
    assert "Unknown status: blocked" in result.stderr


def test_missing_required_flag(run_tool) -> None:
    args = BASE_ARGS[:-2]
    result = run_tool("emit-record", *args)
    assert result.returncode == 1
    assert "Missing required flag: --status" in result.stderr


def test_payload_file_conflict(run_tool, tmp_path: Path) -> None:
    payload = tmp_path / "payload.json"
    payload.write_text('{"stdout_snippet": null, "stderr_snippet": null, "raw": {}}', encoding="utf-8")
    result = run_tool("emit-record", *BASE_ARGS, "--payload-file", str(payload), "--payload-stdout", "x")
    assert result.returncode == 1
    assert "--payload-file cannot be combined with inline payload flags" in result.stderr


def test_detect_stack_usage(run_tool) -> None:
    result = run_tool("detect-stack", env={"RUN_MODE": ""})
    assert result.returncode == 1
    assert "Usage: detect-stack [RUN_MODE]" in result.stderr

    result = run_tool("detect-stack", "sandbox", env={"SANDBOX_MODE": "workspace-write"})
    assert result.returncode == 0, result.stderr
    assert json.loads(result.stdout)["sandbox_mode"] == "workspace-write"
