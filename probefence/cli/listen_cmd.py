"""CLI probe-listen command"""

import click

from probefence.cli.common import harness_errors, resolve_paths, setup_logging, verbose_option
from probefence.core.boundary import BoundarySchema
from probefence.core.errors import ContractError
from probefence.core.listen import render_listen_output

TTY_MESSAGE = (
    "probe --listen expects boundary-object NDJSON on stdin "
    "(e.g. probe --matrix | probe --listen)"
)


@click.command(name="probe-listen")
@click.option("--boundary", "boundary", default=None, help="Boundary-object schema path (or set BOUNDARY_PATH)")
@verbose_option
def listen_cmd(boundary, verbose):
    """Summarize a boundary-object NDJSON stream read from stdin."""
    setup_logging(verbose)
    stdin = click.get_text_stream("stdin")
    with harness_errors("probe-listen"):
        if stdin.isatty():
            raise ContractError(TTY_MESSAGE)
        paths = resolve_paths(boundary=boundary)
        schema = BoundarySchema.load(paths.boundary_path, canonical_schema_path=paths.canonical_boundary_path)
        output = render_listen_output(stdin, schema)
    click.echo(output, nl=False)


main = listen_cmd

if __name__ == "__main__":
    main()
