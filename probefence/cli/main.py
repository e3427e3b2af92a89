"""CLI main entry point"""

import click

from probefence import __version__


@click.group()
@click.version_option(version=__version__, prog_name="probe")
def cli():
    """probefence - sandbox capability probe harness

    Runs probes under baseline and agent-sandboxed modes and streams one
    boundary object per (probe, mode) as NDJSON.
    """
    pass


# Import subcommands
from probefence.cli.exec_cmd import exec_cmd
from probefence.cli.matrix_cmd import matrix_cmd
from probefence.cli.target_cmd import target_cmd
from probefence.cli.listen_cmd import listen_cmd
from probefence.cli.gate_cmd import gate_cmd
from probefence.cli.emit_record import emit_record_cmd
from probefence.cli.detect_stack_cmd import detect_stack_cmd
from probefence.cli.catalog_cmd import catalog_group

cli.add_command(exec_cmd, name="exec")
cli.add_command(matrix_cmd, name="matrix")
cli.add_command(target_cmd, name="target")
cli.add_command(listen_cmd, name="listen")
cli.add_command(gate_cmd, name="gate")
cli.add_command(emit_record_cmd, name="emit-record")
cli.add_command(detect_stack_cmd, name="detect-stack")
cli.add_command(catalog_group, name="catalog")


if __name__ == "__main__":
    cli()
