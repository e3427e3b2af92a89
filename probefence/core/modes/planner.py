"""
Run Mode Registry

Maps mode names to the command that runs a probe under that mode:

- baseline:    the probe itself, no sandbox
- sandbox:     <agent> sandbox <target> --full-auto -- <probe>
- full-access: <agent> --dangerously-bypass-approvals-and-sandbox sandbox <target> -- <probe>

``target`` is ``macos`` on Darwin hosts and ``linux`` otherwise. Drivers use
this registry instead of hard-coding mode strings.
"""

import logging
import platform as host_platform
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from probefence.core.errors import ConnectorUnavailableError, UnknownModeError
from probefence.core.paths import find_on_path

logger = logging.getLogger(__name__)


class RunMode(str, Enum):
    BASELINE = "baseline"
    SANDBOX = "sandbox"
    FULL_ACCESS = "full-access"

    @classmethod
    def parse(cls, name: str) -> "RunMode":
        try:
            return cls(name)
        except ValueError:
            raise UnknownModeError(name) from None

    def __str__(self) -> str:
        return self.value


class ConnectorKind(str, Enum):
    AMBIENT = "ambient"  # the probe runs directly in the caller's shell
    AGENT = "agent"  # the probe runs under the external agent binary


@dataclass
class CommandSpec:
    program: str
    args: List[str] = field(default_factory=list)

    def argv(self) -> List[str]:
        return [self.program, *self.args]


@dataclass
class ModePlan:
    run_mode: RunMode
    connector: ConnectorKind
    sandbox_env: str  # exported to the probe as SANDBOX_MODE
    command: CommandSpec


@dataclass
class Availability:
    """Which connectors the host can provide"""

    agent_present: bool = False

    @classmethod
    def for_host(cls, agent_binary: str, environ: Optional[Mapping[str, str]] = None) -> "Availability":
        return cls(agent_present=find_on_path(agent_binary, environ) is not None)


@dataclass(frozen=True)
class _ModeSpec:
    run_mode: RunMode
    connector: ConnectorKind
    default_sandbox: str


MODE_SPECS: Dict[RunMode, _ModeSpec] = {
    RunMode.BASELINE: _ModeSpec(RunMode.BASELINE, ConnectorKind.AMBIENT, ""),
    RunMode.SANDBOX: _ModeSpec(RunMode.SANDBOX, ConnectorKind.AGENT, "workspace-write"),
    RunMode.FULL_ACCESS: _ModeSpec(RunMode.FULL_ACCESS, ConnectorKind.AGENT, "danger-full-access"),
}


def platform_target(platform_name: Optional[str] = None) -> str:
    name = (platform_name or host_platform.system()).strip().lower()
    return "macos" if name in ("darwin", "macos") else "linux"


class ModeRegistry:
    """
    Registry of run modes for one agent binary

    Example:
        >>> registry = ModeRegistry(agent_binary="codex")
        >>> plan = registry.plan_for("baseline", "Linux", Path("/repo/probes/p.sh"))
        >>> plan.command.argv()
        ['/repo/probes/p.sh']
    """

    def __init__(self, agent_binary: str = "codex", environ: Optional[Mapping[str, str]] = None):
        self.agent_binary = agent_binary
        self.environ = environ

    def allowed(self) -> List[str]:
        return [mode.value for mode in MODE_SPECS]

    def availability(self) -> Availability:
        return Availability.for_host(self.agent_binary, self.environ)

    def defaults(self, availability: Optional[Availability] = None) -> List[str]:
        """Baseline always; agent-backed modes only when the agent is installed"""
        availability = availability or self.availability()
        return [
            spec.run_mode.value
            for spec in MODE_SPECS.values()
            if spec.connector is ConnectorKind.AMBIENT or availability.agent_present
        ]

    def parse(self, names: List[str]) -> List[RunMode]:
        """
        Raises:
            UnknownModeError: On the first unregistered name
        """
        return [RunMode.parse(name) for name in names]

    def plan_for(
        self,
        name: str,
        platform_name: Optional[str],
        probe_path: Path,
        sandbox_override: Optional[str] = None,
    ) -> ModePlan:
        """
        Build the command plan for running probe_path under mode name.

        Raises:
            UnknownModeError: Mode is not registered
            ConnectorUnavailableError: Mode needs the agent and it is not on PATH
        """
        run_mode = RunMode.parse(name)
        spec = MODE_SPECS[run_mode]
        probe_arg = str(probe_path)

        if spec.connector is ConnectorKind.AMBIENT:
            return ModePlan(run_mode, spec.connector, "", CommandSpec(program=probe_arg))

        agent = find_on_path(self.agent_binary, self.environ)
        if agent is None:
            raise ConnectorUnavailableError(run_mode.value, self.agent_binary)

        target = platform_target(platform_name)
        if run_mode is RunMode.SANDBOX:
            args = ["sandbox", target, "--full-auto", "--", probe_arg]
        else:
            args = ["--dangerously-bypass-approvals-and-sandbox", "sandbox", target, "--", probe_arg]

        sandbox_env = sandbox_override or spec.default_sandbox
        logger.debug(f"Planned {run_mode.value} via {agent} (sandbox={sandbox_env})")
        return ModePlan(run_mode, spec.connector, sandbox_env, CommandSpec(program=str(agent), args=args))
