"""
build.py

Table -> integrity check -> typed Parquet -> JSON/CSV exports -> run manifest.

The table is checked before anything is written; a table with integrity
issues aborts the build unless ``dataset.allow_integrity_issues`` is set.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from catalog.table import load_table, raw_table
from contracts.shovel_contracts import table_sha256
from infra.config import Settings, get_settings
from infra.logging_config import StructuredLogger, clear_log_context, set_log_context
from infra.pipeline_paths import PipelinePaths
from pipeline.export_json import ExportConfig, run_export
from pipeline.integrity import IntegrityReport, check_table
from pipeline.run_manifest import RunManifest, write_manifest
from pipeline.writer_parquet import ParquetWriterConfig, ShovelLevelsParquetWriter
from version import DATASET_NAME, DATASET_VERSION, SCHEMA_VERSION

logger = StructuredLogger(__name__)


@dataclass
class BuildResult:
    manifest: RunManifest
    manifest_path: Path
    report: IntegrityReport
    exports: List[Path] = field(default_factory=list)


def read_table_text(settings: Settings) -> str:
    """Table JSON text: the configured table_path, or the bundled table."""
    if settings.dataset.table_path:
        return Path(settings.dataset.table_path).read_text(encoding="utf-8")
    return raw_table()


def paths_from_settings(settings: Settings) -> PipelinePaths:
    return PipelinePaths(
        base_data_dir=Path(settings.dataset.data_dir or "data"),
        base_export_dir=Path(settings.dataset.export_dir or "exports"),
    )


def build_dataset(
    paths: Optional[PipelinePaths] = None,
    settings: Optional[Settings] = None,
) -> BuildResult:
    """Run the full build and return what was written."""
    settings = settings or get_settings()
    paths = paths or paths_from_settings(settings)

    set_log_context(dataset=DATASET_NAME, dataset_version=DATASET_VERSION)
    try:
        records = load_table(read_table_text(settings))

        report = check_table(records)
        if not report.ok:
            for issue in report.issues[:20]:
                logger.warning("integrity_issue", check=issue.check_id, detail=str(issue))
            if not settings.dataset.allow_integrity_issues:
                report.raise_for_issues()

        parquet_dir = paths.parquet_dir()
        if parquet_dir.exists():
            # A rebuild replaces the dataset; stale part files would duplicate rows.
            shutil.rmtree(parquet_dir)

        writer = ShovelLevelsParquetWriter(
            ParquetWriterConfig(
                base_dir=str(parquet_dir),
                partition_field="ShovelID" if settings.dataset.partition_by_shovel else None,
                compression=settings.dataset.parquet_compression,
                max_rows_per_file=settings.dataset.max_rows_per_file,
                max_buffered_rows=max(settings.dataset.max_rows_per_file, 1),
                drop_invalid_on_cast=settings.dataset.allow_integrity_issues,
            )
        )
        writer.extend(records)
        stats = writer.close()
        logger.info(
            "parquet_written",
            rows=stats.written,
            files=stats.files,
            dropped=stats.dropped_cast_errors,
            out=str(parquet_dir),
        )

        order: List[str] = []
        for rec in records:
            sid = rec.get("ShovelID")
            if isinstance(sid, str) and sid not in order:
                order.append(sid)

        exports = run_export(
            ExportConfig(
                parquet_glob=paths.parquet_glob(),
                out_dir=str(paths.export_dir()),
                shovel_order=order,
            )
        )

        manifest = RunManifest(
            dataset_name=DATASET_NAME,
            dataset_version=DATASET_VERSION,
            schema_version=SCHEMA_VERSION,
            row_count=stats.written,
            shovel_count=report.shovel_count,
            table_sha256=table_sha256(records),
            out_parquet=str(parquet_dir),
            export_dir=str(paths.export_dir()),
        )
        mpath = write_manifest(parquet_dir, manifest)
        logger.info("manifest_written", path=str(mpath), sha256=manifest.table_sha256)

        return BuildResult(manifest=manifest, manifest_path=mpath, report=report, exports=exports)
    finally:
        clear_log_context()
