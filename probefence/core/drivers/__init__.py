"""Matrix and target drivers"""

from probefence.core.drivers.matrix import (
    MatrixDriver,
    MatrixResult,
    PairFailure,
    parse_probe_stdout,
    select_modes,
    select_probes,
)
from probefence.core.drivers.target import (
    SelectionPlan,
    TargetRunError,
    probes_for_capability,
    render_dry_run,
    resolve_selection,
    run_target,
)

__all__ = [
    "MatrixDriver",
    "MatrixResult",
    "PairFailure",
    "parse_probe_stdout",
    "select_modes",
    "select_probes",
    "SelectionPlan",
    "TargetRunError",
    "probes_for_capability",
    "render_dry_run",
    "resolve_selection",
    "run_target",
]
