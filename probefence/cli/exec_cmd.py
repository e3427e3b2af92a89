"""CLI probe-exec command"""

import sys

import click

from probefence.cli.common import (
    boundary_option,
    catalog_option,
    harness_errors,
    resolve_paths,
    setup_logging,
    verbose_option,
)
from probefence.core.executor import ProbeExecutor, WorkspaceOverride


@click.command(name="probe-exec")
@click.option(
    "--workspace-root",
    default=None,
    help="Export PATH as WORKSPACE_ROOT (defaults to the repo root); an empty value skips the export",
)
@click.option("--sandbox-mode", default=None, help="Override the SANDBOX_MODE exported for agent modes")
@catalog_option
@boundary_option
@verbose_option
@click.argument("mode")
@click.argument("probe")
def exec_cmd(workspace_root, sandbox_mode, catalog, boundary, verbose, mode, probe):
    """Run one PROBE under MODE; the probe's record goes straight to stdout."""
    setup_logging(verbose)
    with harness_errors("probe-exec"):
        paths = resolve_paths(catalog, boundary)
        executor = ProbeExecutor(paths)
        run = executor.run(
            mode,
            probe,
            workspace_override=WorkspaceOverride.from_value(workspace_root),
            sandbox_override=sandbox_mode,
        )
    sys.exit(run.returncode)


main = exec_cmd

if __name__ == "__main__":
    main()
