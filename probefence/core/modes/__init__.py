"""Run modes and command planning"""

from probefence.core.modes.planner import (
    Availability,
    CommandSpec,
    ConnectorKind,
    ModePlan,
    ModeRegistry,
    RunMode,
    platform_target,
)

__all__ = [
    "Availability",
    "CommandSpec",
    "ConnectorKind",
    "ModePlan",
    "ModeRegistry",
    "RunMode",
    "platform_target",
]
