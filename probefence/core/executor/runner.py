"""Probe Executor: runs one probe under one mode

Responsibilities:
- resolve the probe strictly within ``probes/`` and require an execute bit
- require a literal ``primary_capability_id`` in the script
- export the probe contract environment (RUN_MODE, SANDBOX_MODE, CATALOG_PATH,
  BOUNDARY_PATH, WORKSPACE_ROOT, TMPDIR)
- propagate the child's exit code; a signal death is an error

There is no timeout unless the caller asks for one (the dynamic gate does).
"""

import logging
import os
import platform
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from probefence.config.settings import HarnessPaths, WORKSPACE_ROOT_ENV
from probefence.core.errors import (
    ContractError,
    ProbeExitError,
    ProbeSignaledError,
    ProbeSpawnError,
    ProbeTimeoutError,
)
from probefence.core.executor.workspace import (
    WorkspaceOverride,
    WorkspacePlan,
    TmpdirPlan,
    command_cwd_for,
    determine_workspace_plan,
    workspace_tmpdir_plan,
)
from probefence.core.modes.planner import ModePlan, ModeRegistry
from probefence.core.paths import helper_environment, is_executable
from probefence.core.probes.metadata import ProbeMetadata
from probefence.core.probes.resolver import Probe, resolve_probe

logger = logging.getLogger(__name__)

RUN_MODE_ENV = "RUN_MODE"
SANDBOX_MODE_ENV = "SANDBOX_MODE"


@dataclass
class ResolvedProbeMetadata:
    id: str
    version: str
    primary_capability: str

    @classmethod
    def for_probe(cls, probe: Probe) -> "ResolvedProbeMetadata":
        """
        Raises:
            ContractError: Script has no literal primary_capability_id
        """
        parsed = ProbeMetadata.from_script(probe.path)
        if not parsed.primary_capability:
            raise ContractError(f"probe {probe.path} is missing primary_capability_id")
        return cls(
            id=parsed.probe_name or probe.id,
            version=parsed.probe_version or "1",
            primary_capability=parsed.primary_capability,
        )


@dataclass
class PreparedRun:
    """Everything needed to launch one (probe, mode) pair"""

    probe: Probe
    metadata: ResolvedProbeMetadata
    plan: ModePlan
    workspace: WorkspacePlan
    tmpdir: TmpdirPlan
    cwd: Path
    env: Dict[str, str]


@dataclass
class ProbeRun:
    probe: Probe
    mode: str
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    def check(self) -> "ProbeRun":
        """
        Raises:
            ProbeExitError: Probe exited non-zero
        """
        if self.returncode != 0:
            raise ProbeExitError(self.returncode, self.stderr)
        return self


class ProbeExecutor:
    """
    Executes probes for one harness invocation.

    Example:
        >>> executor = ProbeExecutor(HarnessPaths.resolve(repo_root))
        >>> run = executor.run("baseline", "fs_read_workspace_readme", capture_stdout=True)
        >>> run.check().stdout
    """

    def __init__(
        self,
        paths: HarnessPaths,
        registry: Optional[ModeRegistry] = None,
        environ: Optional[Mapping[str, str]] = None,
        platform_name: Optional[str] = None,
    ):
        self.paths = paths
        self.environ = dict(os.environ if environ is None else environ)
        self.registry = registry or ModeRegistry(
            agent_binary=paths.settings.agent_binary,
            environ=self.environ,
        )
        self.platform_name = platform_name or platform.system()

    @property
    def repo_root(self) -> Path:
        return self.paths.repo_root

    def prepare(
        self,
        mode: str,
        identifier: str,
        workspace_override: Optional[WorkspaceOverride] = None,
        sandbox_override: Optional[str] = None,
    ) -> PreparedRun:
        """
        Resolve, check and plan a run without starting it.

        Raises:
            ProbeNotFoundError, ProbeEscapeError, EmptyIdentifierError: Resolution failed
            ContractError: Probe lacks primary_capability_id
            ProbeSpawnError: Probe is not executable
            UnknownModeError, ConnectorUnavailableError: Mode cannot be planned
        """
        probe = resolve_probe(self.repo_root, identifier)
        metadata = ResolvedProbeMetadata.for_probe(probe)
        if not is_executable(probe.path):
            raise ProbeSpawnError(f"Probe is not executable: {probe.path}")

        workspace = determine_workspace_plan(self.repo_root, workspace_override, self.environ)
        tmpdir = workspace_tmpdir_plan(workspace, self.repo_root)
        sandbox_override = sandbox_override or self.environ.get(SANDBOX_MODE_ENV) or None
        plan = self.registry.plan_for(mode, self.platform_name, probe.path, sandbox_override)

        env = helper_environment(self.environ)
        env[RUN_MODE_ENV] = plan.run_mode.value
        env[SANDBOX_MODE_ENV] = plan.sandbox_env
        env.update(self.paths.probe_environment())
        if workspace.exported:
            env[WORKSPACE_ROOT_ENV] = str(workspace.export_value)
        else:
            env.pop(WORKSPACE_ROOT_ENV, None)
        if tmpdir.path is not None:
            env["TMPDIR"] = str(tmpdir.path)

        return PreparedRun(
            probe=probe,
            metadata=metadata,
            plan=plan,
            workspace=workspace,
            tmpdir=tmpdir,
            cwd=command_cwd_for(workspace, self.repo_root),
            env=env,
        )

    def run(
        self,
        mode: str,
        identifier: str,
        workspace_override: Optional[WorkspaceOverride] = None,
        sandbox_override: Optional[str] = None,
        capture_stdout: bool = False,
        capture_stderr: bool = False,
        timeout: Optional[float] = None,
    ) -> ProbeRun:
        """
        Run one probe under one mode.

        Without capture the probe writes straight to this process's stdout and
        stderr. A non-zero exit is reported on the returned ProbeRun.

        Raises:
            ProbeSignaledError: Child was killed by a signal
            ProbeSpawnError: Child could not be started
            ProbeTimeoutError: Only when timeout is given and exceeded
        """
        prepared = self.prepare(mode, identifier, workspace_override, sandbox_override)
        argv = prepared.plan.command.argv()
        logger.debug(f"Running {prepared.probe.id} ({mode}) in {prepared.cwd}: {argv}")

        try:
            result = subprocess.run(
                argv,
                cwd=prepared.cwd,
                env=prepared.env,
                stdout=subprocess.PIPE if capture_stdout else None,
                stderr=subprocess.PIPE if capture_stderr else None,
                text=True,
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ProbeTimeoutError(e.timeout) from e
        except OSError as e:
            raise ProbeSpawnError(f"Failed to execute {argv[0]}: {e}") from e

        if result.returncode < 0:
            raise ProbeSignaledError(-result.returncode)

        logger.debug(f"Probe {prepared.probe.id} ({mode}) exited with {result.returncode}")
        return ProbeRun(
            probe=prepared.probe,
            mode=prepared.plan.run_mode.value,
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )
