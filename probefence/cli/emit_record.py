"""CLI emit-record command

The authoritative serializer probes call to print their single record.
"""

from pathlib import Path

import click

from probefence.cli.common import (
    boundary_option,
    catalog_option,
    harness_errors,
    resolve_paths,
    setup_logging,
    verbose_option,
)
from probefence.core.emitter import (
    EmitRequest,
    JsonObjectBuilder,
    PayloadArgs,
    RecordEmitter,
    TextSource,
    parse_raw_exit_code,
)
from probefence.core.errors import ContractError

REQUIRED_FLAGS = (
    ("run_mode", "--run-mode"),
    ("probe_name", "--probe-name"),
    ("probe_version", "--probe-version"),
    ("primary_capability_id", "--primary-capability-id"),
    ("command", "--command"),
    ("category", "--category"),
    ("verb", "--verb"),
    ("target", "--target"),
    ("status", "--status"),
)


def _fill_builder(builder: JsonObjectBuilder, objects, files, fields, json_fields, nulls, lists) -> None:
    for raw in objects:
        builder.merge_json_string(raw)
    for path in files:
        builder.merge_json_file(Path(path))
    for key, value in fields:
        builder.insert_string(key, value)
    for key, value in json_fields:
        builder.insert_json_value(key, value)
    for key in nulls:
        builder.insert_null(key)
    for key, value in lists:
        builder.insert_list(key, value)


def build_request(params: dict) -> EmitRequest:
    """
    Raises:
        ContractError: A required flag is missing or a payload source repeats
    """
    for name, flag in REQUIRED_FLAGS:
        if params.get(name) is None:
            raise ContractError(f"Missing required flag: {flag}")

    payload = PayloadArgs()
    if params["payload_file"] is not None:
        payload.set_payload_file(Path(params["payload_file"]))
    if params["payload_stdout"] is not None:
        payload.set_stdout(TextSource(inline=params["payload_stdout"]))
    if params["payload_stdout_file"] is not None:
        payload.set_stdout(TextSource(path=Path(params["payload_stdout_file"])))
    if params["payload_stderr"] is not None:
        payload.set_stderr(TextSource(inline=params["payload_stderr"]))
    if params["payload_stderr_file"] is not None:
        payload.set_stderr(TextSource(path=Path(params["payload_stderr_file"])))
    _fill_builder(
        payload.raw,
        params["payload_raw"],
        params["payload_raw_file"],
        params["payload_raw_field"],
        params["payload_raw_field_json"],
        params["payload_raw_null"],
        params["payload_raw_list"],
    )

    operation_args = JsonObjectBuilder("operation args")
    _fill_builder(
        operation_args,
        params["operation_args"],
        params["operation_args_file"],
        params["operation_arg"],
        params["operation_arg_json"],
        params["operation_arg_null"],
        params["operation_arg_list"],
    )

    return EmitRequest(
        run_mode=params["run_mode"],
        probe_name=params["probe_name"],
        probe_version=params["probe_version"],
        primary_capability_id=params["primary_capability_id"],
        command=params["command"],
        category=params["category"],
        verb=params["verb"],
        target=params["target"],
        status=params["status"],
        errno=params["errno"],
        message=params["message"],
        raw_exit_code=parse_raw_exit_code(params["raw_exit_code"]),
        error_detail=params["error_detail"],
        secondary_capability_ids=list(params["secondary_capability_id"]),
        payload=payload,
        operation_args=operation_args,
    )


@click.command(name="emit-record")
@click.option("--run-mode")
@click.option("--probe-name", "--probe-id", "probe_name")
@click.option("--probe-version")
@click.option("--primary-capability-id")
@click.option("--secondary-capability-id", multiple=True, help="Repeat for multiple ids")
@click.option("--command")
@click.option("--category")
@click.option("--verb")
@click.option("--target")
@click.option("--status", help="success|denied|partial|error")
@click.option("--errno")
@click.option("--message")
@click.option("--raw-exit-code")
@click.option("--error-detail")
@click.option("--payload-file", help="Whole payload as a JSON object file")
@click.option("--payload-stdout")
@click.option("--payload-stdout-file")
@click.option("--payload-stderr")
@click.option("--payload-stderr-file")
@click.option("--payload-raw", multiple=True, help="JSON object merged into payload.raw")
@click.option("--payload-raw-file", multiple=True)
@click.option("--payload-raw-field", nargs=2, multiple=True, metavar="KEY VALUE")
@click.option("--payload-raw-field-json", nargs=2, multiple=True, metavar="KEY JSON")
@click.option("--payload-raw-null", multiple=True, metavar="KEY")
@click.option("--payload-raw-list", nargs=2, multiple=True, metavar="KEY LIST")
@click.option("--operation-args", multiple=True, help="JSON object merged into operation.args")
@click.option("--operation-args-file", multiple=True)
@click.option("--operation-arg", nargs=2, multiple=True, metavar="KEY VALUE")
@click.option("--operation-arg-json", nargs=2, multiple=True, metavar="KEY JSON")
@click.option("--operation-arg-null", multiple=True, metavar="KEY")
@click.option("--operation-arg-list", nargs=2, multiple=True, metavar="KEY LIST")
@catalog_option
@boundary_option
@verbose_option
def emit_record_cmd(catalog, boundary, verbose, **params):
    """Validate one probe outcome and print it as a compact boundary object."""
    setup_logging(verbose)
    with harness_errors("emit-record"):
        request = build_request(params)
        emitter = RecordEmitter(resolve_paths(catalog, boundary))
        line = emitter.emit(request)
    click.echo(line)


main = emit_record_cmd

if __name__ == "__main__":
    main()
