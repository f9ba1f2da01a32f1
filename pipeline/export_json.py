"""DuckDB-powered export of the shovel level table.

Loads the Parquet dataset into DuckDB and writes plain asset files for
consumers that only want a flat file:

  - shovel_levels.json  wire-shaped JSON array (seven string fields per row)
  - shovel_levels.csv   the same rows as CSV, header = wire field names
  - summary.json        per-shovel level/Gems spans and totals
"""

from __future__ import annotations

import csv
import glob as _glob
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import duckdb

from contracts.shovel_contracts import WIRE_FIELDS, ShovelLevelEntry
from infra.logging_config import StructuredLogger
from pipeline.query_duckdb import table_rel
from version import DATASET_NAME, DATASET_VERSION, SCHEMA_VERSION

logger = StructuredLogger(__name__)

JSON_FILENAME = "shovel_levels.json"
CSV_FILENAME = "shovel_levels.csv"
SUMMARY_FILENAME = "summary.json"


@dataclass(frozen=True)
class ExportConfig:
    parquet_glob: str
    out_dir: str = "exports"

    # ShovelIDs in table order; rows of unlisted shovels sort after, by name
    shovel_order: Optional[Sequence[str]] = None

    export_csv: bool = True


def _entry_from_row(row: Dict[str, Any]) -> ShovelLevelEntry:
    return ShovelLevelEntry(
        shovel_id=row["ShovelID"],
        level=int(row["Level"]),
        gems=int(row["Gems"]),
        luck=None if row["luck"] is None else float(row["luck"]),
        modifier=row["Modifier"] or "",
        value=row["Value"] or "",
        mod_detail=row["mod_detail"] or "",
    )


class ShovelLevelsExporter:
    """
    Export the Parquet copy of the table back to flat JSON/CSV files.
    """

    def __init__(self, cfg: ExportConfig) -> None:
        self.cfg = cfg
        self._files = sorted(
            f for f in _glob.glob(cfg.parquet_glob, recursive=True) if f.endswith(".parquet")
        )
        if not self._files:
            raise ValueError(f"No parquet files matched {cfg.parquet_glob!r}. Check your paths/globs.")

        self.con = duckdb.connect(":memory:")
        self.con.execute("PRAGMA enable_progress_bar=false;")
        logger.info("export_inputs_matched", parquet_files=len(self._files))

    def close(self) -> None:
        self.con.close()

    # -------------------------
    # Queries
    # -------------------------

    def _fetch(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        cur = self.con.execute(sql, list(params))
        cols = [d[0] for d in cur.description]
        return [dict(zip(cols, r)) for r in cur.fetchall()]

    def _ordered_rows(self) -> List[Dict[str, Any]]:
        sql = f"""
        SELECT ShovelID, Level, Gems, luck, Modifier, Value, mod_detail
        FROM {table_rel(self.cfg.parquet_glob)}
        ORDER BY ShovelID, Level;
        """
        rows = self._fetch(sql)
        position = {sid: i for i, sid in enumerate(self.cfg.shovel_order or [])}
        unlisted = len(position)
        # stable sort keeps the (ShovelID, Level) order inside each shovel
        rows.sort(key=lambda r: position.get(r["ShovelID"], unlisted))
        return rows

    def wire_records(self) -> List[Dict[str, str]]:
        return [_entry_from_row(r).to_wire() for r in self._ordered_rows()]

    # -------------------------
    # Exports
    # -------------------------

    def export_json(self) -> Path:
        return self._write_json(JSON_FILENAME, self.wire_records())

    def export_csv(self) -> Path:
        path = self._out_path(CSV_FILENAME)
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=list(WIRE_FIELDS))
            writer.writeheader()
            writer.writerows(self.wire_records())
        logger.info("export_written", path=str(path))
        return path

    def export_summary(self) -> Path:
        sql = f"""
        SELECT
            ShovelID,
            count(*) AS level_count,
            min(Level) AS min_level,
            max(Level) AS max_level,
            min(Gems) AS min_gems,
            max(Gems) AS max_gems,
            sum(Gems) AS total_gems
        FROM {table_rel(self.cfg.parquet_glob)}
        GROUP BY ShovelID
        ORDER BY ShovelID;
        """
        shovels = self._fetch(sql)
        for rec in shovels:
            for k in ("level_count", "min_level", "max_level", "min_gems", "max_gems", "total_gems"):
                rec[k] = int(rec[k])

        payload = {
            "dataset_name": DATASET_NAME,
            "dataset_version": DATASET_VERSION,
            "schema_version": SCHEMA_VERSION,
            "row_count": sum(r["level_count"] for r in shovels),
            "shovel_count": len(shovels),
            "shovels": shovels,
        }
        return self._write_json(SUMMARY_FILENAME, payload)

    # -------------------------
    # Utils
    # -------------------------

    def _out_path(self, filename: str) -> Path:
        out_dir = Path(self.cfg.out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        return out_dir / filename

    def _write_json(self, filename: str, payload: Any) -> Path:
        path = self._out_path(filename)
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        logger.info("export_written", path=str(path))
        return path


def run_export(cfg: ExportConfig) -> List[Path]:
    exporter = ShovelLevelsExporter(cfg)
    try:
        written = [exporter.export_json(), exporter.export_summary()]
        if cfg.export_csv:
            written.append(exporter.export_csv())
        return written
    finally:
        exporter.close()
