from __future__ import annotations

import os
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
FIXTURE_PROBES = PROJECT_ROOT / "tests" / "fixtures" / "probes"

HARNESS_ENV_VARS = (
    "WORKSPACE_ROOT",
    "CATALOG_PATH",
    "BOUNDARY_PATH",
    "MODES",
    "PROBES",
    "PROBES_RAW",
    "RUN_MODE",
    "SANDBOX_MODE",
    "PROBEFENCE_AGENT",
    "PROBEFENCE_PREFER_TARGET",
)


def build_harness_repo(root: Path) -> Path:
    """Throwaway checkout: sentinels, schemas, bin shims, the package and the fixture probes."""
    (root / "bin").mkdir(parents=True)
    for shim in (PROJECT_ROOT / "bin").iterdir():
        target = root / "bin" / shim.name
        shutil.copy2(shim, target)
        if shim.name != ".gitkeep":
            target.chmod(0o755)
    (root / "Makefile").write_text("all:\n", encoding="utf-8")
    shutil.copytree(PROJECT_ROOT / "schema", root / "schema")
    (root / "probefence").symlink_to(PROJECT_ROOT / "probefence", target_is_directory=True)

    (root / "probes").mkdir()
    for probe in FIXTURE_PROBES.glob("*.sh"):
        target = root / "probes" / probe.name
        shutil.copy2(probe, target)
        target.chmod(0o755)
    return root


@pytest.fixture
def harness_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = build_harness_repo(tmp_path / "repo")
    for name in HARNESS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ROOT_OVERRIDE", str(root))
    monkeypatch.setenv("PROBEFENCE_PYTHON", sys.executable)
    # bin/ shims put the checkout on the import path themselves
    monkeypatch.delenv("PYTHONPATH", raising=False)
    return root


@pytest.fixture
def run_tool(harness_repo: Path):
    """Run one of the repo's bin/ shims as a subprocess."""

    def _run(name: str, *args: str, env: dict | None = None, cwd: Path | None = None, input: str | None = None):
        merged = dict(os.environ)
        if env:
            merged.update(env)
        return subprocess.run(
            [str(harness_repo / "bin" / name), *args],
            capture_output=True,
            text=True,
            env=merged,
            cwd=str(cwd or harness_repo),
            input=input,
            timeout=60,
        )

    return _run


def make_record(**overrides) -> dict:
    record = {
        "schema_version": "boundary_event_v1",
        "schema_key": "probefence_boundary_v1",
        "capabilities_schema_version": "macOS_codex_v1",
        "stack": {"sandbox_mode": None, "os": "Linux 6.1 x86_64"},
        "probe": {
            "id": "fs_read_workspace_readme",
            "version": "1",
            "primary_capability_id": "cap_fs_read_workspace_tree",
            "secondary_capability_ids": [],
        },
        "run": {"mode": "baseline", "workspace_root": "/work", "command": "head -n 5 README.md"},
        "operation": {"category": "fs", "verb": "read", "target": "/work/README.md", "args": {}},
        "result": {
            "observed_result": "success",
            "raw_exit_code": 0,
            "errno": None,
            "message": None,
            "error_detail": None,
        },
        "payload": {"stdout_snippet": "# probefence", "stderr_snippet": None, "raw": {}},
        "capability_context": {
            "primary": {"id": "cap_fs_read_workspace_tree", "category": "filesystem", "layer": "os_sandbox"},
            "secondary": [],
        },
    }
    record.update(overrides)
    return record


@pytest.fixture
def sample_record():
    """Factory for a valid boundary object; keyword overrides replace top-level sections."""
    return make_record
