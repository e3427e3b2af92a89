"""CLI probe-matrix command"""

import sys

import click

from probefence.cli.common import (
    boundary_option,
    catalog_option,
    harness_errors,
    report_error,
    report_line,
    resolve_paths,
    setup_logging,
    verbose_option,
)
from probefence.core.drivers import MatrixDriver, select_modes, select_probes
from probefence.core.executor import ProbeExecutor


@click.command(name="probe-matrix")
@catalog_option
@boundary_option
@verbose_option
def matrix_cmd(catalog, boundary, verbose):
    """Run probes x modes and stream one NDJSON record per pair.

    Probes come from PROBES (or PROBES_RAW), else every script in probes/.
    Modes come from MODES, else the modes this host supports.
    """
    setup_logging(verbose)
    with harness_errors("probe-matrix"):
        paths = resolve_paths(catalog, boundary)
        executor = ProbeExecutor(paths)
        probes = select_probes(paths.repo_root)
        modes = select_modes(executor.registry, configured=paths.settings.default_modes)

        result = MatrixDriver(executor).run(
            probes,
            modes,
            on_record=click.echo,
            on_failure=lambda failure: report_line(f"probe-matrix: {failure}"),
        )

    if not result.ok:
        report_error("probe-matrix", result.summary())
        sys.exit(1)


main = matrix_cmd

if __name__ == "__main__":
    main()
