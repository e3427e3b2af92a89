"""CLI probe-catalog commands: catalog/probe cross checks and coverage"""

import json
import sys
from pathlib import Path

import click

from probefence.cli.common import (
    catalog_option,
    harness_errors,
    report_line,
    resolve_paths,
    setup_logging,
    verbose_option,
)
from probefence.core.catalog import CapabilityIndex
from probefence.core.probes import (
    PROBES_DIR,
    ProbeMetadata,
    build_coverage_map,
    collect_probe_scripts,
    filter_coverage_probes,
    validate_boundary_objects,
    validate_probe_capabilities,
)


def _probe_metadata(repo_root: Path):
    scripts = collect_probe_scripts([repo_root / PROBES_DIR])
    return filter_coverage_probes(ProbeMetadata.from_script(script) for script in scripts)


@click.group(name="probe-catalog")
def catalog_group():
    """Capability catalog checks"""
    pass


@catalog_group.command("validate")
@click.option(
    "--records",
    "record_dirs",
    multiple=True,
    type=click.Path(file_okay=False),
    help="Directory of stored boundary objects to check (repeatable)",
)
@catalog_option
@verbose_option
def validate_cmd(record_dirs, catalog, verbose):
    """Load the catalog and check probes (and stored records) against it."""
    setup_logging(verbose)
    with harness_errors("probe-catalog"):
        paths = resolve_paths(catalog=catalog)
        index = CapabilityIndex.load(paths.catalog_path)
        probes = _probe_metadata(paths.repo_root)
        errors = validate_probe_capabilities(index, probes)
        errors.extend(validate_boundary_objects(index, [Path(d) for d in record_dirs]))

    if errors:
        for error in errors:
            report_line(f"probe-catalog: {error}")
        sys.exit(1)
    click.echo(f"probe-catalog: catalog {index.key} OK ({len(index)} capabilities, {len(probes)} probe scripts)")


@catalog_group.command("coverage")
@catalog_option
@verbose_option
def coverage_cmd(catalog, verbose):
    """Print which capabilities have probes, as JSON."""
    setup_logging(verbose)
    with harness_errors("probe-catalog"):
        paths = resolve_paths(catalog=catalog)
        index = CapabilityIndex.load(paths.catalog_path)
        coverage = build_coverage_map(index, _probe_metadata(paths.repo_root))
    click.echo(json.dumps({key: entry.to_dict() for key, entry in coverage.items()}, indent=2))


main = catalog_group

if __name__ == "__main__":
    main()
