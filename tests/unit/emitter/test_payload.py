from __future__ import annotations

from pathlib import Path

import pytest

from probefence.core.catalog import CapabilityIndex
from probefence.core.emitter import (
    SNIPPET_MAX_CHARS,
    JsonObjectBuilder,
    PayloadArgs,
    TextSource,
    normalize_secondary_ids,
    truncate_snippet,
    validate_status,
)
from probefence.core.errors import (
    ContractError,
    JsonParseError,
    PayloadConflictError,
    StatusError,
    UnknownCapabilityError,
)

BUNDLED_CATALOG = Path(__file__).resolve().parents[3] / "schema" / "capabilities.json"


def test_snippet_truncated_by_codepoints() -> None:
    assert truncate_snippet("short") == "short"
    exact = "é" * SNIPPET_MAX_CHARS
    assert truncate_snippet(exact) == exact
    truncated = truncate_snippet("é" * (SNIPPET_MAX_CHARS + 50))
    assert len(truncated) == SNIPPET_MAX_CHARS
    assert truncated.endswith("…")


def test_text_source_strips_nul_bytes(tmp_path: Path) -> None:
    path = tmp_path / "out.txt"
    path.write_bytes(b"ab\x00c\xff")
    assert TextSource(path=path).read() == "abc�"
    assert TextSource(inline="x\0y").read() == "xy"
    with pytest.raises(ContractError, match="not found"):
        TextSource(path=tmp_path / "missing").read()


def test_builder_merges_then_sets_fields() -> None:
    builder = JsonObjectBuilder("operation args")
    builder.insert_string("mode", "field")
    builder.merge_json_string('{"mode": "merged", "keep": 1}')
    builder.insert_json_value("count", "3")
    builder.insert_null("gone")
    builder.insert_list("names", "a, b c")
    assert builder.build() == {"mode": "field", "keep": 1, "count": 3, "gone": None, "names": ["a", "b", "c"]}


def test_builder_rejects_non_objects_and_bad_json() -> None:
    builder = JsonObjectBuilder("payload raw")
    with pytest.raises(ContractError, match="must be a JSON object"):
        builder.merge_json_string("[1, 2]")
    with pytest.raises(JsonParseError):
        builder.insert_json_value("key", "{nope")


def test_inline_payload_shape() -> None:
    payload = PayloadArgs()
    payload.set_stdout(TextSource(inline="hello"))
    payload.raw.insert_string("k", "v")
    assert payload.build() == {"stdout_snippet": "hello", "stderr_snippet": None, "raw": {"k": "v"}}


def test_payload_file_conflicts_with_inline_flags(tmp_path: Path) -> None:
    path = tmp_path / "payload.json"
    path.write_text('{"stdout_snippet": null, "stderr_snippet": null, "raw": {}}', encoding="utf-8")
    payload = PayloadArgs()
    payload.set_payload_file(path)
    assert payload.build()["raw"] == {}

    payload.set_stderr(TextSource(inline="err"))
    with pytest.raises(PayloadConflictError, match="cannot be combined"):
        payload.build()


def test_duplicate_snippet_sources_rejected() -> None:
    payload = PayloadArgs()
    payload.set_stdout(TextSource(inline="a"))
    with pytest.raises(PayloadConflictError):
        payload.set_stdout(TextSource(inline="b"))


def test_missing_payload_file(tmp_path: Path) -> None:
    payload = PayloadArgs()
    payload.set_payload_file(tmp_path / "absent.json")
    with pytest.raises(ContractError, match="Payload file not found"):
        payload.build()


def test_status_literals() -> None:
    for status in ("success", "denied", "partial", "error"):
        assert validate_status(status) == status
    with pytest.raises(StatusError, match="Unknown status: blocked"):
        validate_status("blocked")


def test_secondary_ids_normalized() -> None:
    index = CapabilityIndex.load(BUNDLED_CATALOG)
    ids = normalize_secondary_ids(
        index,
        [" cap_net_outbound_any", "", "cap_fs_read_git_metadata", "cap_net_outbound_any"],
    )
    assert ids == ["cap_fs_read_git_metadata", "cap_net_outbound_any"]
    with pytest.raises(UnknownCapabilityError, match="secondary capability id"):
        normalize_secondary_ids(index, ["cap_missing"])
