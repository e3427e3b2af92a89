from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from probefence.core.catalog import CapabilityCategory, CapabilityIndex, CapabilityLayer, CatalogRepository
from probefence.core.errors import CatalogLoadError, DuplicateCapabilityError, SchemaVersionMismatchError

SCHEMA_DIR = Path(__file__).resolve().parents[3] / "schema"
BUNDLED_CATALOG = SCHEMA_DIR / "capabilities.json"


def _bundled() -> dict:
    return json.loads(BUNDLED_CATALOG.read_text(encoding="utf-8"))


def _write_catalog(tmp_path: Path, document: dict, with_schema: bool = False) -> Path:
    path = tmp_path / "capabilities.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    if with_schema:
        shutil.copy(SCHEMA_DIR / "capability_catalog.schema.json", tmp_path / "capability_catalog.schema.json")
    return path


def test_bundled_catalog_loads() -> None:
    index = CapabilityIndex.load(BUNDLED_CATALOG)
    assert index.key == "macOS_codex_v1"
    assert "cap_fs_read_workspace_tree" in index
    ids = list(index.ids())
    assert ids == sorted(ids)
    assert len(index) == len(ids)


def test_snapshot_carries_category_and_layer() -> None:
    index = CapabilityIndex.load(BUNDLED_CATALOG)
    snapshot = index.snapshot("cap_fs_read_workspace_tree")
    assert snapshot.category is CapabilityCategory.FILESYSTEM
    assert snapshot.layer is CapabilityLayer.OS_SANDBOX
    assert snapshot.to_dict() == {
        "id": "cap_fs_read_workspace_tree",
        "category": "filesystem",
        "layer": "os_sandbox",
    }
    assert index.snapshot("cap_missing") is None


def test_duplicate_capability_id_rejected(tmp_path: Path) -> None:
    document = _bundled()
    document["capabilities"].append(dict(document["capabilities"][0]))
    with pytest.raises(DuplicateCapabilityError):
        CapabilityIndex.load(_write_catalog(tmp_path, document))


def test_unexpected_schema_version_rejected(tmp_path: Path) -> None:
    document = _bundled()
    document["schema_version"] = "sandbox_catalog_v0"
    with pytest.raises(SchemaVersionMismatchError):
        CapabilityIndex.load(_write_catalog(tmp_path, document))


def test_undeclared_layer_rejected(tmp_path: Path) -> None:
    document = _bundled()
    document["capabilities"][0]["layer"] = "hypervisor"
    with pytest.raises(CatalogLoadError, match="unknown layer hypervisor"):
        CapabilityIndex.load(_write_catalog(tmp_path, document))


def test_undeclared_doc_rejected(tmp_path: Path) -> None:
    document = _bundled()
    document["capabilities"][0]["sources"] = [{"doc": "nowhere"}]
    with pytest.raises(CatalogLoadError, match="unknown doc 'nowhere'"):
        CapabilityIndex.load(_write_catalog(tmp_path, document))


def test_structural_schema_applied_when_present(tmp_path: Path) -> None:
    document = _bundled()
    del document["capabilities"][0]["operations"]
    with pytest.raises(CatalogLoadError, match="failed schema validation"):
        CapabilityIndex.load(_write_catalog(tmp_path, document, with_schema=True))


def test_missing_catalog_file(tmp_path: Path) -> None:
    with pytest.raises(CatalogLoadError):
        CapabilityIndex.load(tmp_path / "absent.json")


def test_newer_category_kept_as_other(tmp_path: Path) -> None:
    document = _bundled()
    document["scope"]["categories"]["gpu"] = "GPU access"
    document["capabilities"][0]["category"] = "gpu"
    index = CapabilityIndex.load(_write_catalog(tmp_path, document))
    capability = index.get(document["capabilities"][0]["id"])
    assert capability.category.is_other
    assert capability.category.value == "gpu"
    assert capability.to_dict()["category"] == "gpu"


def test_repository_resolves_record_context() -> None:
    repository = CatalogRepository()
    repository.register(CapabilityIndex.load(BUNDLED_CATALOG))
    record = {
        "capabilities_schema_version": "macOS_codex_v1",
        "probe": {
            "primary_capability_id": "cap_fs_read_workspace_tree",
            "secondary_capability_ids": ["cap_fs_write_workspace_tree"],
        },
    }
    primary, secondary = repository.lookup_context(record)
    assert primary.id == "cap_fs_read_workspace_tree"
    assert [capability.id for capability in secondary] == ["cap_fs_write_workspace_tree"]

    record["capabilities_schema_version"] = "linux_other_v9"
    assert repository.lookup_context(record) is None
