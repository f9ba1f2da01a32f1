"""Typed Parquet writer for the shovel level table.

This is the storage boundary: it casts wire records (all strings) to the typed
Arrow schema and writes Parquet files, optionally partitioned by ShovelID.
Row order within a file follows append order.
"""

from __future__ import annotations

import os
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pyarrow as pa
import pyarrow.parquet as pq

from contracts.schema import SHOVEL_LEVELS_SCHEMA
from contracts.storage_cast import StorageCastError, cast_for_storage
from version import DATASET_NAME, DATASET_VERSION, SCHEMA_VERSION


class ParquetWriteError(RuntimeError):
    """Raised when Parquet writing fails."""


# Partition values become directory names under base_dir.
_PARTITION_VALUE_RE = re.compile(r"[A-Za-z0-9_-]+")


def _safe_str(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass
class ParquetWriterConfig:
    base_dir: str
    schema: pa.Schema = SHOVEL_LEVELS_SCHEMA

    # Directory-style partitioning (e.g. "ShovelID"); None writes flat files
    partition_field: Optional[str] = None

    # Write behavior
    compression: str = "zstd"
    use_dictionary: bool = True

    # Batching controls
    max_rows_per_file: int = 100_000
    max_buffered_rows: int = 100_000  # flush when reaching this

    # Error policy
    drop_invalid_on_cast: bool = False  # if True: skip records failing cast
    max_error_samples: int = 50  # keep only N errors in memory


@dataclass
class ParquetWriterStats:
    received: int = 0
    written: int = 0
    files: int = 0
    dropped_cast_errors: int = 0
    cast_errors: List[str] = field(default_factory=list)


class ShovelLevelsParquetWriter:
    """
    Writes shovel level wire records to Parquet.

    Layout:
      {base_dir}/part-<uuid>.parquet
      {base_dir}/ShovelID=<id>/part-<uuid>.parquet   (with partition_field="ShovelID")

    Files carry dataset/schema version metadata in the Arrow schema.
    """

    def __init__(self, config: ParquetWriterConfig) -> None:
        self._cfg = config
        self._buffer: List[Dict[str, Any]] = []
        self.stats = ParquetWriterStats()

        if config.partition_field is not None and config.partition_field not in config.schema.names:
            raise ParquetWriteError(f"Unknown partition field: {config.partition_field!r}")

        os.makedirs(self._cfg.base_dir, exist_ok=True)

    def append(self, wire_record: Mapping[str, Any]) -> None:
        """
        Append one wire record. It will be cast to storage format and buffered.
        """
        self.stats.received += 1

        try:
            storage_record = cast_for_storage(wire_record, self._cfg.schema)
            self._check_partition_value(storage_record)
        except StorageCastError as exc:
            if len(self.stats.cast_errors) < self._cfg.max_error_samples:
                self.stats.cast_errors.append(str(exc))

            if self._cfg.drop_invalid_on_cast:
                self.stats.dropped_cast_errors += 1
                return
            raise ParquetWriteError(
                f"Storage cast failed for ShovelID={wire_record.get('ShovelID')!r} "
                f"Level={wire_record.get('Level')!r}: {exc}"
            ) from exc

        self._buffer.append(storage_record)

        if len(self._buffer) >= self._cfg.max_buffered_rows:
            self.flush()

    def extend(self, wire_records: Iterable[Mapping[str, Any]]) -> None:
        for rec in wire_records:
            self.append(rec)

    def flush(self) -> None:
        """
        Flush buffered storage-format records to Parquet files.
        """
        if not self._buffer:
            return

        groups: Dict[Optional[str], List[Dict[str, Any]]] = {}
        part = self._cfg.partition_field
        for rec in self._buffer:
            key = _safe_str(rec.get(part)) if part else None
            groups.setdefault(key, []).append(rec)

        self._buffer = []

        for key, rows in groups.items():
            self._write_group(key, rows)

    def close(self) -> ParquetWriterStats:
        self.flush()
        return self.stats

    # -------------------------
    # Internal helpers
    # -------------------------

    def _check_partition_value(self, storage_record: Mapping[str, Any]) -> None:
        part = self._cfg.partition_field
        if part is None:
            return
        value = _safe_str(storage_record.get(part))
        if not _PARTITION_VALUE_RE.fullmatch(value):
            raise StorageCastError(f"{part}: {value!r} is not a valid partition directory name")

    def _write_group(self, partition_value: Optional[str], rows: Sequence[Dict[str, Any]]) -> None:
        out_dir = self._cfg.base_dir
        if partition_value is not None:
            out_dir = os.path.join(out_dir, f"{self._cfg.partition_field}={partition_value}")
        os.makedirs(out_dir, exist_ok=True)

        start = 0
        total = len(rows)
        while start < total:
            end = min(start + self._cfg.max_rows_per_file, total)
            table = self._table_from_rows(rows[start:end])

            out_path = os.path.join(out_dir, f"part-{uuid.uuid4().hex}.parquet")
            try:
                pq.write_table(
                    table,
                    out_path,
                    compression=self._cfg.compression,
                    use_dictionary=self._cfg.use_dictionary,
                    write_statistics=True,
                )
            except (pa.ArrowException, OSError) as exc:
                raise ParquetWriteError(f"Failed to write {out_path}: {exc}") from exc

            self.stats.written += end - start
            self.stats.files += 1
            start = end

    def _table_from_rows(self, rows: Sequence[Dict[str, Any]]) -> pa.Table:
        schema = self._cfg.schema.with_metadata({
            "dataset_name": DATASET_NAME,
            "dataset_version": DATASET_VERSION,
            "schema_version": str(SCHEMA_VERSION),
        })
        try:
            return pa.Table.from_pylist(list(rows), schema=schema)
        except (pa.ArrowInvalid, pa.ArrowTypeError) as exc:
            raise ParquetWriteError(f"Rows do not match storage schema: {exc}") from exc
