from __future__ import annotations

from pathlib import Path

import pytest

from probefence.core.errors import HelperNotFoundError
from probefence.core.paths import find_repo_root, helper_environment, is_repo_root, resolve_helper, split_list


def _root(tmp_path: Path) -> Path:
    (tmp_path / "bin").mkdir()
    (tmp_path / "bin" / ".gitkeep").write_text("", encoding="utf-8")
    (tmp_path / "Makefile").write_text("all:\n", encoding="utf-8")
    return tmp_path


def _helper(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n", encoding="utf-8")
    path.chmod(0o755)
    return path


def test_root_override_wins(tmp_path: Path) -> None:
    root = _root(tmp_path)
    assert is_repo_root(root)
    assert find_repo_root({"ROOT_OVERRIDE": str(root)}) == root.resolve()


def test_root_requires_both_sentinels(tmp_path: Path) -> None:
    (tmp_path / "Makefile").write_text("", encoding="utf-8")
    assert not is_repo_root(tmp_path)


def test_synced_helper_preferred(tmp_path: Path) -> None:
    root = _root(tmp_path)
    synced = _helper(root / "bin" / "emit-record")
    _helper(root / "target" / "release" / "emit-record")
    assert resolve_helper(root, "emit-record", environ={}) == synced


def test_prefer_target_inverts_order(tmp_path: Path) -> None:
    root = _root(tmp_path)
    _helper(root / "bin" / "emit-record")
    debug = _helper(root / "target" / "debug" / "emit-record")
    assert resolve_helper(root, "emit-record", environ={"PROBEFENCE_PREFER_TARGET": "1"}) == debug
    assert resolve_helper(root, "emit-record", environ={"PROBEFENCE_PREFER_TARGET": "0"}) == root / "bin" / "emit-record"


def test_non_executable_helper_is_skipped(tmp_path: Path) -> None:
    root = _root(tmp_path)
    (root / "bin" / "detect-stack").write_text("#!/bin/sh\n", encoding="utf-8")
    with pytest.raises(HelperNotFoundError):
        resolve_helper(root, "detect-stack", environ={})


def test_helper_environment_pins_interpreter() -> None:
    env = helper_environment({"PATH": "/bin"})
    assert env["PATH"] == "/bin"
    assert env["PROBEFENCE_PYTHON"]
    assert helper_environment({"PROBEFENCE_PYTHON": "/opt/py"})["PROBEFENCE_PYTHON"] == "/opt/py"


def test_split_list_accepts_commas_and_spaces() -> None:
    assert split_list("a, b  c,,d") == ["a", "b", "c", "d"]
    assert split_list("  ") == []
