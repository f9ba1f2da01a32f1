"""Thin wrapper utilities around DuckDB.

Kept separate so higher-level pipeline modules can depend on a small surface
area (connection creation, safe parameter handling, convenience helpers)
when querying the Parquet copy of the shovel level table.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import duckdb


def _json_default(obj: Any) -> Any:
    """JSON serializer for Decimal and other values returned by DuckDB."""
    if isinstance(obj, Decimal):
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    return str(obj)


@dataclass(frozen=True)
class DuckDBConfig:
    parquet_glob: str  # ex: "data/shovel_levels/**/*.parquet"
    database: str = ":memory:"
    threads: int = 4


def table_rel(parquet_glob: str) -> str:
    """Single source of truth for reading the Parquet dataset as a relation."""
    # hive_partitioning off: ShovelID=<id> directories must not add a second ShovelID column
    escaped = parquet_glob.replace("'", "''")
    return f"read_parquet('{escaped}', union_by_name=true, hive_partitioning=false)"


class ShovelLevelsDuckDB:
    """
    Minimal DuckDB query layer over the shovel level Parquet dataset.
    """

    def __init__(self, cfg: DuckDBConfig) -> None:
        self._cfg = cfg
        self._con = duckdb.connect(cfg.database, read_only=False)
        self._con.execute(f"PRAGMA threads={int(cfg.threads)};")

    def close(self) -> None:
        self._con.close()

    def __enter__(self) -> "ShovelLevelsDuckDB":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -------------------------
    # Internal helpers
    # -------------------------

    def _exec(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        cur = self._con.execute(sql, list(params))
        cols = [d[0] for d in cur.description]
        return [dict(zip(cols, r, strict=False)) for r in cur.fetchall()]

    # -------------------------
    # Public queries
    # -------------------------

    def row_count(self) -> int:
        rows = self._exec(f"SELECT count(*) AS n FROM {table_rel(self._cfg.parquet_glob)};")
        return int(rows[0]["n"]) if rows else 0

    def gem_cost(self, shovel_id: str, level: int) -> int | None:
        """Gems for one (ShovelID, Level), None when the row does not exist."""
        sql = f"""
        SELECT Gems
        FROM {table_rel(self._cfg.parquet_glob)}
        WHERE ShovelID = ? AND Level = ?
        LIMIT 1;
        """
        rows = self._exec(sql, [shovel_id, int(level)])
        return int(rows[0]["Gems"]) if rows else None

    def list_levels(self, shovel_id: str) -> list[dict[str, Any]]:
        """All rows of one shovel ordered by Level."""
        sql = f"""
        SELECT ShovelID, Level, Gems, luck, Modifier, Value, mod_detail
        FROM {table_rel(self._cfg.parquet_glob)}
        WHERE ShovelID = ?
        ORDER BY Level;
        """
        return self._exec(sql, [shovel_id])

    def shovel_summary(self) -> list[dict[str, Any]]:
        """
        One row per ShovelID: level span, Gems span and the sum of Gems over all levels.
        """
        sql = f"""
        SELECT
            ShovelID,
            count(*) AS level_count,
            min(Level) AS min_level,
            max(Level) AS max_level,
            min(Gems) AS min_gems,
            max(Gems) AS max_gems,
            sum(Gems) AS total_gems
        FROM {table_rel(self._cfg.parquet_glob)}
        GROUP BY ShovelID
        ORDER BY ShovelID;
        """
        out = self._exec(sql)
        for rec in out:
            rec["total_gems"] = int(rec["total_gems"])
        return out

    def to_json(self, obj: Any) -> str:
        return json.dumps(obj, default=_json_default, ensure_ascii=False)
