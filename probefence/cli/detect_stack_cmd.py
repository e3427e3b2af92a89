"""CLI detect-stack command"""

import json
import os
import sys

import click

from probefence.cli.common import harness_errors, report_line, setup_logging
from probefence.core.emitter import detect_stack

USAGE = "Usage: detect-stack [RUN_MODE]"


@click.command(name="detect-stack")
@click.argument("run_mode", required=False)
def detect_stack_cmd(run_mode):
    """Print host stack metadata for RUN_MODE (or $RUN_MODE) as JSON."""
    setup_logging(False)
    run_mode = run_mode or os.environ.get("RUN_MODE") or None
    if run_mode is None:
        report_line(USAGE)
        sys.exit(1)
    with harness_errors("detect-stack"):
        stack = detect_stack(run_mode)
    click.echo(json.dumps(stack.to_dict(), ensure_ascii=False, separators=(",", ":")))


main = detect_stack_cmd

if __name__ == "__main__":
    main()
