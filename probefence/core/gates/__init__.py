"""Contract gates for probe scripts"""

from probefence.core.gates.static_gate import (
    StaticGateResult,
    check_static_contract,
    collect_gate_targets,
    run_static_gate,
)
from probefence.core.gates.dynamic_gate import (
    DEFAULT_GATE_TIMEOUT,
    DynamicGate,
    DynamicGateResult,
    inspect_record,
)

__all__ = [
    "StaticGateResult",
    "check_static_contract",
    "collect_gate_targets",
    "run_static_gate",
    "DEFAULT_GATE_TIMEOUT",
    "DynamicGate",
    "DynamicGateResult",
    "inspect_record",
]
