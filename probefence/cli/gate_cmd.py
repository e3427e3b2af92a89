"""CLI probe-gate command"""

import sys

import click

from probefence.cli.common import (
    boundary_option,
    catalog_option,
    harness_errors,
    report_line,
    resolve_paths,
    setup_logging,
    verbose_option,
)
from probefence.core.boundary import BoundarySchema
from probefence.core.catalog import CapabilityIndex
from probefence.core.drivers import select_modes
from probefence.core.executor import ProbeExecutor
from probefence.core.gates import (
    DEFAULT_GATE_TIMEOUT,
    DynamicGate,
    collect_gate_targets,
    run_static_gate,
)
from probefence.core.paths import split_list
from probefence.core.probes import resolve_probe


@click.command(name="probe-gate")
@click.option("--probe", "probe_id", default=None, help="Gate one probe (static + dynamic)")
@click.option("--static-only", is_flag=True, help="Skip the dynamic gate")
@click.option("--modes", "modes", default=None, help="Modes for the dynamic gate (space or comma separated)")
@click.option(
    "--timeout",
    type=float,
    default=DEFAULT_GATE_TIMEOUT,
    show_default=True,
    help="Per-run timeout for the dynamic gate, in seconds",
)
@catalog_option
@boundary_option
@verbose_option
def gate_cmd(probe_id, static_only, modes, timeout, catalog, boundary, verbose):
    """Check probe scripts against the probe contract.

    Without --probe every script under probes/ gets the static checks.
    With --probe the named probe is also executed and its record inspected.
    """
    setup_logging(verbose)
    with harness_errors("probe-gate"):
        paths = resolve_paths(catalog, boundary)
        targets = collect_gate_targets(paths.repo_root, probe_id)

        static_ok = True
        for result in run_static_gate(paths.repo_root, targets):
            if result.passed:
                click.echo(result.lines()[0])
            else:
                static_ok = False
                for line in result.lines():
                    report_line(line)

        if not static_ok:
            sys.exit(1)
        if probe_id is None or static_only:
            return

        executor = ProbeExecutor(paths)
        gate = DynamicGate(
            executor,
            BoundarySchema.load(paths.boundary_path, canonical_schema_path=paths.canonical_boundary_path),
            CapabilityIndex.load(paths.catalog_path),
            timeout=timeout,
        )
        probe = resolve_probe(paths.repo_root, probe_id)
        run_modes = select_modes(
            executor.registry,
            requested=split_list(modes or ""),
            configured=paths.settings.default_modes,
        )

        dynamic_ok = True
        for outcome in gate.run(probe, run_modes):
            if outcome.passed:
                click.echo(outcome.line())
            else:
                dynamic_ok = False
                report_line(outcome.line())

    if not dynamic_ok:
        sys.exit(1)
    click.echo(f"probe-gate: all gates passed for {probe.id}")


main = gate_cmd

if __name__ == "__main__":
    main()
