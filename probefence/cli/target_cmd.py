"""CLI probe-target command"""

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
from probefence.core.drivers import MatrixDriver, render_dry_run, resolve_selection, run_target, select_modes
from probefence.core.errors import ContractError
from probefence.core.executor import ProbeExecutor


@click.command(name="probe-target")
@click.option("--cap", "capability_ids", multiple=True, help="Run every probe whose primary capability is ID")
@click.option("--probe", "probe_ids", multiple=True, help="Probe id or path (repeatable)")
@click.option("--mode", "modes", multiple=True, help="Restrict to MODE (repeatable)")
@click.option("--repeat", type=int, default=1, show_default=True, help="Run the plan N times")
@click.option("--list-only", is_flag=True, help="Print the plan without running it")
@catalog_option
@boundary_option
@verbose_option
def target_cmd(capability_ids, probe_ids, modes, repeat, list_only, catalog, boundary, verbose):
    """Run a capability's probes (or named probes) across modes."""
    setup_logging(verbose)
    with harness_errors("probe-target"):
        if len(capability_ids) > 1:
            raise ContractError("--cap may only be specified once")
        if repeat < 1:
            raise ContractError("--repeat must be >= 1")
        paths = resolve_paths(catalog, boundary)
        executor = ProbeExecutor(paths)
        run_modes = select_modes(
            executor.registry,
            requested=list(modes),
            environ={},
            configured=paths.settings.default_modes,
        )
        plan = resolve_selection(
            paths.repo_root,
            paths.catalog_path,
            capability_ids[0] if capability_ids else None,
            list(probe_ids),
        )

        if list_only:
            click.echo(render_dry_run(plan, run_modes, repeat))
            return

        run_target(
            MatrixDriver(executor),
            plan,
            run_modes,
            repeat,
            on_record=click.echo,
            on_failure=lambda failure: report_line(f"probe-matrix: {failure}"),
        )


main = target_cmd

if __name__ == "__main__":
    main()
