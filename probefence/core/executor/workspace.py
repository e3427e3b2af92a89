"""
Workspace and TMPDIR planning for probe runs.

Workspace precedence: ``--workspace-root`` flag > ``WORKSPACE_ROOT`` env >
canonical repository root. An explicitly empty value at either level means
"do not export"; the emitter then falls back to git top-level, PWD and cwd.

TMPDIR prefers ``<workspace>/tmp`` and then ``<repo>/tmp``. Creation failures
are kept on the plan instead of raised so the probe can still run and report
them itself.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from probefence.config.settings import WORKSPACE_ROOT_ENV
from probefence.core.paths import canonicalize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkspaceOverride:
    """
    Caller-provided workspace setting.

    ``path=None`` with ``skip_export=True`` is the explicit empty override.
    """

    path: Optional[Path] = None
    skip_export: bool = False

    @classmethod
    def from_value(cls, value: Optional[str]) -> Optional["WorkspaceOverride"]:
        """Map a raw flag/env value: None stays unset, "" skips export."""
        if value is None:
            return None
        if not value.strip():
            return cls(skip_export=True)
        return cls(path=Path(value))


@dataclass
class WorkspacePlan:
    export_value: Optional[Path]  # None: WORKSPACE_ROOT is not exported

    @property
    def exported(self) -> bool:
        return self.export_value is not None


def determine_workspace_plan(
    repo_root: Path,
    cli_override: Optional[WorkspaceOverride] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> WorkspacePlan:
    env = os.environ if environ is None else environ
    override = cli_override or WorkspaceOverride.from_value(env.get(WORKSPACE_ROOT_ENV))

    if override is None:
        return WorkspacePlan(export_value=canonicalize(repo_root))
    if override.skip_export:
        logger.debug("Workspace export disabled by empty override")
        return WorkspacePlan(export_value=None)
    return WorkspacePlan(export_value=canonicalize(override.path))


@dataclass
class TmpdirPlan:
    path: Optional[Path] = None
    last_error: Optional[str] = None


def workspace_tmpdir_plan(workspace: WorkspacePlan, repo_root: Path) -> TmpdirPlan:
    """First ``tmp`` directory that exists or can be created."""
    candidates = []
    if workspace.export_value is not None:
        candidates.append(workspace.export_value / "tmp")
    repo_tmp = repo_root / "tmp"
    if repo_tmp not in candidates:
        candidates.append(repo_tmp)

    last_error = None
    for candidate in candidates:
        try:
            candidate.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            last_error = f"{candidate}: {e}"
            logger.debug(f"Unable to prepare TMPDIR candidate {last_error}")
            continue
        return TmpdirPlan(path=candidate)

    logger.warning(f"No usable TMPDIR under workspace or repository: {last_error}")
    return TmpdirPlan(path=None, last_error=last_error)


def command_cwd_for(workspace: WorkspacePlan, repo_root: Path) -> Path:
    """Exported workspace, else the caller's cwd, else the repository root."""
    if workspace.export_value is not None:
        return workspace.export_value
    try:
        return Path.cwd()
    except OSError:
        return repo_root
