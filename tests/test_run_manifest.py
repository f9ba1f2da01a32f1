from __future__ import annotations

import json
from pathlib import Path

import pytest

from pipeline.run_manifest import (
    MANIFEST_FILENAME,
    RunManifest,
    find_manifest,
    load_manifest,
    manifest_path,
    write_manifest,
)


def _manifest(**overrides) -> RunManifest:
    data = {
        "dataset_name": "shovel_levels",
        "dataset_version": "0.1.0",
        "schema_version": 1,
        "row_count": 100,
        "shovel_count": 2,
        "table_sha256": "a" * 64,
        "out_parquet": "data/shovel_levels",
        "export_dir": "exports",
    }
    data.update(overrides)
    return RunManifest(**data)


def test_write_then_load(tmp_path: Path) -> None:
    path = write_manifest(tmp_path, _manifest())
    assert path == manifest_path(tmp_path)
    assert not path.with_suffix(".json.tmp").exists()

    loaded = load_manifest(path)
    assert loaded.table_sha256 == "a" * 64
    assert loaded.row_count == 100
    assert loaded.created_at.endswith("Z")


def test_to_dict_keeps_explicit_created_at() -> None:
    assert _manifest(created_at="2024-01-01T00:00:00Z").to_dict()["created_at"] == "2024-01-01T00:00:00Z"


def test_from_dict_blank_paths_become_none() -> None:
    m = RunManifest.from_dict({**_manifest().to_dict(), "out_parquet": "  ", "export_dir": None})
    assert m.out_parquet is None
    assert m.export_dir is None


@pytest.mark.parametrize(
    ("overrides", "match"),
    [
        ({"dataset_name": ""}, "dataset_name"),
        ({"dataset_version": ""}, "dataset_version"),
        ({"schema_version": 0}, "schema_version"),
        ({"row_count": -1}, "counts"),
        ({"table_sha256": "abc"}, "table_sha256"),
    ],
)
def test_validate_rejects(tmp_path: Path, overrides: dict, match: str) -> None:
    with pytest.raises(ValueError, match=match):
        write_manifest(tmp_path, _manifest(**overrides))
    assert not (tmp_path / MANIFEST_FILENAME).exists()


def test_load_rejects_non_object(tmp_path: Path) -> None:
    path = tmp_path / MANIFEST_FILENAME
    path.write_text(json.dumps([1, 2]), encoding="utf-8")
    with pytest.raises(ValueError, match="expected object"):
        load_manifest(path)


def test_find_manifest_walks_up(tmp_path: Path) -> None:
    write_manifest(tmp_path, _manifest())
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert find_manifest(nested) == (tmp_path / MANIFEST_FILENAME).resolve()


def test_find_manifest_checks_default_dataset_dir(tmp_path: Path) -> None:
    write_manifest(tmp_path / "data" / "shovel_levels", _manifest())
    assert find_manifest(tmp_path) == (tmp_path / "data" / "shovel_levels" / MANIFEST_FILENAME).resolve()
