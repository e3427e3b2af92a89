from __future__ import annotations

from pathlib import Path

from probefence.core.probes import ProbeMetadata, parse_assignment, parse_secondary_capabilities

SCRIPT = """#!/usr/bin/env bash
set -euo pipefail
# probe_name="commented_out"
probe_name="fs_example"
probe_version=2
primary_capability_id='cap_fs_read_workspace_tree'
secondary_capability_id="cap_fs_read_git_metadata"
secondary_capability_ids=(
  cap_net_outbound_any
  "${dynamic_cap}"
  cap_sysctl_read_basic)
"${emit_record_bin}" --secondary-capability-id cap_proc_fork_and_child_spawn \\
  --secondary-capability-id=cap_net_localhost_only
"""


def test_parse_assignment_skips_comments() -> None:
    assert parse_assignment(SCRIPT, "probe_name") == "fs_example"
    assert parse_assignment(SCRIPT, "probe_version") == "2"
    assert parse_assignment(SCRIPT, "missing_var") is None


def test_secondary_ids_collected_from_every_form() -> None:
    assert parse_secondary_capabilities(SCRIPT) == [
        "cap_fs_read_git_metadata",
        "cap_net_localhost_only",
        "cap_net_outbound_any",
        "cap_proc_fork_and_child_spawn",
        "cap_sysctl_read_basic",
    ]


def test_metadata_from_script(tmp_path: Path) -> None:
    script = tmp_path / "fs_example.sh"
    script.write_text(SCRIPT, encoding="utf-8")
    metadata = ProbeMetadata.from_script(script)
    assert metadata.probe_name == "fs_example"
    assert metadata.probe_version == "2"
    assert metadata.primary_capability == "cap_fs_read_workspace_tree"
    assert "cap_sysctl_read_basic" in metadata.secondary_capabilities


def test_expanded_values_are_dropped(tmp_path: Path) -> None:
    script = tmp_path / "dynamic.sh"
    script.write_text('probe_name="${NAME}"\nprimary_capability_id="$CAP"\n', encoding="utf-8")
    metadata = ProbeMetadata.from_script(script)
    assert metadata.probe_name is None
    assert metadata.primary_capability is None
