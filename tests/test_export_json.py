from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from pipeline.export_json import (
    CSV_FILENAME,
    JSON_FILENAME,
    SUMMARY_FILENAME,
    ExportConfig,
    ShovelLevelsExporter,
    run_export,
)
from tests.factories import make_table, write_parquet
from version import DATASET_NAME, SCHEMA_VERSION


def test_missing_parquet_raises(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="No parquet files matched"):
        ShovelLevelsExporter(ExportConfig(parquet_glob=str(tmp_path / "*.parquet")))


def test_wire_records_follow_shovel_order(tmp_path: Path) -> None:
    records = make_table("shovel_z", "shovel_a", luck="0")
    glob = write_parquet(records, tmp_path / "ds", partition_field="ShovelID")

    exporter = ShovelLevelsExporter(
        ExportConfig(parquet_glob=glob, out_dir=str(tmp_path / "out"), shovel_order=["shovel_z", "shovel_a"])
    )
    try:
        assert exporter.wire_records() == records
    finally:
        exporter.close()


def test_unlisted_shovels_sort_by_name(tmp_path: Path) -> None:
    glob = write_parquet(make_table("shovel_c", "shovel_b", "shovel_a"), tmp_path / "ds")

    exporter = ShovelLevelsExporter(ExportConfig(parquet_glob=glob, shovel_order=["shovel_c"]))
    try:
        ids = [r["ShovelID"] for r in exporter.wire_records()]
    finally:
        exporter.close()
    assert ids[0] == "shovel_c"
    assert ids[50] == "shovel_a"
    assert ids[100] == "shovel_b"


def test_run_export_writes_all_files(tmp_path: Path) -> None:
    records = make_table("shovel_a", "shovel_b")
    glob = write_parquet(records, tmp_path / "ds")
    out_dir = tmp_path / "out"

    written = run_export(ExportConfig(parquet_glob=glob, out_dir=str(out_dir)))
    assert [p.name for p in written] == [JSON_FILENAME, SUMMARY_FILENAME, CSV_FILENAME]

    assert json.loads((out_dir / JSON_FILENAME).read_text(encoding="utf-8")) == records

    with (out_dir / CSV_FILENAME).open(encoding="utf-8", newline="") as f:
        assert list(csv.DictReader(f)) == records

    summary = json.loads((out_dir / SUMMARY_FILENAME).read_text(encoding="utf-8"))
    assert summary["dataset_name"] == DATASET_NAME
    assert summary["schema_version"] == SCHEMA_VERSION
    assert summary["row_count"] == 100
    assert summary["shovel_count"] == 2
    assert summary["shovels"][1] == {
        "ShovelID": "shovel_b",
        "level_count": 50,
        "min_level": 0,
        "max_level": 49,
        "min_gems": 3,
        "max_gems": 12,
        "total_gems": 375,
    }


def test_run_export_without_csv(tmp_path: Path) -> None:
    glob = write_parquet(make_table("shovel_a"), tmp_path / "ds")
    written = run_export(ExportConfig(parquet_glob=glob, out_dir=str(tmp_path / "out"), export_csv=False))
    assert [p.name for p in written] == [JSON_FILENAME, SUMMARY_FILENAME]
    assert not (tmp_path / "out" / CSV_FILENAME).exists()
