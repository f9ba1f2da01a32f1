"""Shared lightweight factories for tests.

These helpers build wire records and whole tables shaped like the bundled
shovel level table, so tests can start from a valid table and break one thing.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pipeline.writer_parquet import ParquetWriterConfig, ShovelLevelsParquetWriter


def make_wire_record(**overrides: Any) -> dict[str, str]:
    """One wire record with deterministic defaults and optional overrides."""
    data: dict[str, Any] = {
        "ShovelID": "shovel_test",
        "Level": "0",
        "Gems": "3",
        "luck": "",
        "Modifier": "",
        "Value": "",
        "mod_detail": "",
    }
    data.update(overrides)
    return data


def make_shovel_rows(shovel_id: str, *, levels: int = 50, luck: str = "") -> list[dict[str, str]]:
    """All rows for one shovel following the 3 + level // 5 Gems curve."""
    return [
        make_wire_record(ShovelID=shovel_id, Level=str(level), Gems=str(3 + level // 5), luck=luck)
        for level in range(levels)
    ]


def make_table(*shovel_ids: str, luck: str = "") -> list[dict[str, str]]:
    """A valid table for the given shovels (defaults to two shovels)."""
    ids = shovel_ids or ("shovel_alpha", "shovel_beta")
    rows: list[dict[str, str]] = []
    for shovel_id in ids:
        rows.extend(make_shovel_rows(shovel_id, luck=luck))
    return rows


def table_text(records: list[dict[str, Any]]) -> str:
    return json.dumps(records)


def write_parquet(records: list[dict[str, Any]], base_dir: Path, *, partition_field: str | None = None) -> str:
    """Write records with the Parquet writer and return the dataset glob."""
    writer = ShovelLevelsParquetWriter(
        ParquetWriterConfig(base_dir=str(base_dir), partition_field=partition_field)
    )
    writer.extend(records)
    writer.close()
    return (base_dir / "**" / "*.parquet").as_posix()
