"""
Shovel level table CLI.

Usage
-----
shovels validate [--table path/to/table.json]
shovels lookup shovel_base01 25
shovels cost shovel_base01 0 49
shovels list
shovels build --out data/shovel_levels --export-dir exports
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from catalog.lookup import LevelOutOfRangeError, ShovelLevelIndex, UnknownShovelError, default_index
from catalog.table import TableLoadError, load_entries, raw_table
from contracts.shovel_contracts import ContractError, ValidationError
from infra.config import get_settings
from infra.logging_config import setup_logging
from infra.pipeline_paths import PipelinePaths
from pipeline.build import build_dataset
from pipeline.integrity import IntegrityError, check_raw_table
from pipeline.writer_parquet import ParquetWriteError

EXIT_INTEGRITY = 1
EXIT_USAGE = 2


def _table_text(path: Optional[str]) -> str:
    if path:
        try:
            return Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise SystemExit(f"Cannot read table {path}: {exc}") from exc
    configured = get_settings().dataset.table_path
    if configured:
        return Path(configured).read_text(encoding="utf-8")
    return raw_table()


def _index(path: Optional[str]) -> ShovelLevelIndex:
    if not path and not get_settings().dataset.table_path:
        return default_index()
    try:
        return ShovelLevelIndex.from_entries(load_entries(_table_text(path)))
    except (TableLoadError, ValidationError) as exc:
        print(f"Invalid table: {exc}", file=sys.stderr)
        raise SystemExit(EXIT_INTEGRITY) from exc


def cmd_validate(args: argparse.Namespace) -> int:
    report = check_raw_table(_table_text(args.table))
    if report.ok:
        print(f"OK: {report.row_count} rows, {report.shovel_count} shovels, no integrity issues.")
        return 0

    print(f"ERROR: {len(report.issues)} integrity issue(s) found:")
    for issue in report.issues:
        print(f"- {issue}")
    return EXIT_INTEGRITY


def cmd_lookup(args: argparse.Namespace) -> int:
    index = _index(args.table)
    try:
        entry = index.get(args.shovel_id, args.level)
    except (UnknownShovelError, LevelOutOfRangeError) as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE
    print(json.dumps(entry.to_wire(), indent=2))
    return 0


def cmd_cost(args: argparse.Namespace) -> int:
    index = _index(args.table)
    try:
        total = index.total_upgrade_cost(args.shovel_id, args.from_level, args.to_level)
    except (UnknownShovelError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE
    print(total)
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    index = _index(args.table)
    for shovel_id in index.shovel_ids():
        print(shovel_id)
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    settings = get_settings()
    paths = PipelinePaths.with_overrides(
        data_dir=settings.dataset.data_dir,
        parquet_dir=args.out,
        export_dir=args.export_dir or settings.dataset.export_dir,
    )

    try:
        result = build_dataset(paths, settings)
    except IntegrityError as exc:
        print(f"Build aborted: {exc}", file=sys.stderr)
        return EXIT_INTEGRITY
    except ContractError as exc:
        print(f"Invalid table: {exc}", file=sys.stderr)
        return EXIT_INTEGRITY
    except ParquetWriteError as exc:
        print(f"Build failed: {exc}", file=sys.stderr)
        return EXIT_INTEGRITY

    m = result.manifest
    print("=== Build summary ===")
    print(f"dataset: {m.dataset_name} {m.dataset_version} (schema v{m.schema_version})")
    print(f"rows: {m.row_count}")
    print(f"shovels: {m.shovel_count}")
    print(f"table_sha256: {m.table_sha256}")
    print(f"out_parquet: {m.out_parquet}")
    print(f"manifest: {result.manifest_path}")
    for path in result.exports:
        print(f"export: {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="shovels", description="Shovel upgrade table tools")
    p.add_argument("--log-level", default=None, help="DEBUG|INFO|WARNING|ERROR (or SHOVELS_LOG_LEVEL env var).")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_table(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--table", default=None, help="Table JSON to use instead of the bundled one.")

    sp = sub.add_parser("validate", help="Run the data-integrity checks on the table.")
    add_table(sp)
    sp.set_defaults(func=cmd_validate)

    sp = sub.add_parser("lookup", help="Print one (ShovelID, Level) row as JSON.")
    add_table(sp)
    sp.add_argument("shovel_id")
    sp.add_argument("level", type=int)
    sp.set_defaults(func=cmd_lookup)

    sp = sub.add_parser("cost", help="Total Gems to upgrade a shovel from one level to another.")
    add_table(sp)
    sp.add_argument("shovel_id")
    sp.add_argument("from_level", type=int)
    sp.add_argument("to_level", type=int)
    sp.set_defaults(func=cmd_cost)

    sp = sub.add_parser("list", help="List ShovelIDs in table order.")
    add_table(sp)
    sp.set_defaults(func=cmd_list)

    sp = sub.add_parser("build", help="Write Parquet, JSON/CSV exports and the run manifest.")
    sp.add_argument("--out", default=None, help="Parquet output directory. Default: data/shovel_levels")
    sp.add_argument("--export-dir", default=None, help="Export directory. Default: exports")
    sp.set_defaults(func=cmd_build)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=args.log_level)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
