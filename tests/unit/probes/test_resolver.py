from __future__ import annotations

import os
from pathlib import Path

import pytest

from probefence.core.errors import EmptyIdentifierError, ProbeDirUnreadableError, ProbeEscapeError, ProbeNotFoundError
from probefence.core.probes import list_probes, resolve_probe


def _repo(tmp_path: Path) -> Path:
    probes = tmp_path / "probes"
    probes.mkdir(parents=True)
    for name in ("beta", "alpha"):
        script = probes / f"{name}.sh"
        script.write_text("#!/usr/bin/env bash\n", encoding="utf-8")
        script.chmod(0o755)
    (probes / "notes.txt").write_text("not a probe", encoding="utf-8")
    return tmp_path


@pytest.mark.parametrize("identifier", ["alpha", "alpha.sh", "./alpha", "probes/alpha.sh", "  alpha  "])
def test_identifier_forms_resolve_to_same_probe(tmp_path: Path, identifier: str) -> None:
    repo = _repo(tmp_path)
    probe = resolve_probe(repo, identifier)
    assert probe.id == "alpha"
    assert probe.path == (repo / "probes" / "alpha.sh").resolve()


def test_absolute_path_inside_probes(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    assert resolve_probe(repo, str(repo / "probes" / "beta.sh")).id == "beta"


def test_symlink_escape_rejected(tmp_path: Path) -> None:
    repo = _repo(tmp_path / "repo")
    outside = tmp_path / "outside.sh"
    outside.write_text("#!/usr/bin/env bash\ntouch ran\n", encoding="utf-8")
    os.symlink(outside, repo / "probes" / "alias.sh")
    with pytest.raises(ProbeEscapeError) as excinfo:
        resolve_probe(repo, "alias")
    assert excinfo.value.resolved == outside.resolve()


def test_absolute_path_outside_probes_rejected(tmp_path: Path) -> None:
    repo = _repo(tmp_path / "repo")
    outside = tmp_path / "elsewhere.sh"
    outside.write_text("", encoding="utf-8")
    with pytest.raises(ProbeEscapeError):
        resolve_probe(repo, str(outside))


def test_missing_and_empty_identifiers(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    with pytest.raises(ProbeNotFoundError):
        resolve_probe(repo, "gamma")
    with pytest.raises(EmptyIdentifierError):
        resolve_probe(repo, "   ")


def test_missing_probes_dir(tmp_path: Path) -> None:
    with pytest.raises(ProbeDirUnreadableError):
        resolve_probe(tmp_path, "alpha")


def test_list_probes_sorted_and_filtered(tmp_path: Path) -> None:
    repo = _repo(tmp_path / "repo")
    outside = tmp_path / "outside.sh"
    outside.write_text("", encoding="utf-8")
    os.symlink(outside, repo / "probes" / "zz_link.sh")
    assert [probe.id for probe in list_probes(repo)] == ["alpha", "beta"]
