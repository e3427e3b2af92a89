"""Probe execution: workspace/TMPDIR planning and the probe runner"""

from probefence.core.executor.workspace import (
    TmpdirPlan,
    WorkspaceOverride,
    WorkspacePlan,
    command_cwd_for,
    determine_workspace_plan,
    workspace_tmpdir_plan,
)
from probefence.core.executor.runner import (
    PreparedRun,
    ProbeExecutor,
    ProbeRun,
    ResolvedProbeMetadata,
)

__all__ = [
    "TmpdirPlan",
    "WorkspaceOverride",
    "WorkspacePlan",
    "command_cwd_for",
    "determine_workspace_plan",
    "workspace_tmpdir_plan",
    "PreparedRun",
    "ProbeExecutor",
    "ProbeRun",
    "ResolvedProbeMetadata",
]
