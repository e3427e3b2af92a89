"""Shared CLI plumbing: consoles, logging setup and error reporting"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from probefence.config.settings import HarnessPaths
from probefence.core.errors import ProbeFenceError
from probefence.core.paths import find_repo_root

# stdout carries records only; everything else goes here
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Route harness logs to stderr through rich (DEBUG with --verbose, else WARNING)."""
    root = logging.getLogger("probefence")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = RichHandler(
        console=err_console,
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False


def report_error(tool: str, message: str) -> None:
    err_console.print(f"{tool}: {message}", style="red", markup=False, highlight=False, soft_wrap=True)


def report_line(line: str) -> None:
    """Plain diagnostic line on stderr"""
    err_console.print(line, markup=False, highlight=False, soft_wrap=True)


@contextmanager
def harness_errors(tool: str) -> Iterator[None]:
    """Turn harness exceptions into ``<tool>: <message>`` and exit status 1."""
    try:
        yield
    except ProbeFenceError as e:
        report_error(tool, str(e))
        sys.exit(1)


def resolve_paths(catalog: Optional[str] = None, boundary: Optional[str] = None) -> HarnessPaths:
    """
    Raises:
        RepoRootNotFoundError: No repository root could be located
    """
    return HarnessPaths.resolve(find_repo_root(), catalog=catalog, boundary=boundary)


verbose_option = click.option("--verbose", "-v", is_flag=True, help="Show debug logging on stderr")
catalog_option = click.option(
    "--catalog", "catalog", default=None, help="Capability catalog path (or set CATALOG_PATH)"
)
boundary_option = click.option(
    "--boundary", "boundary", default=None, help="Boundary-object schema path (or set BOUNDARY_PATH)"
)
