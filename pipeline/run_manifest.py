"""Run manifest helpers.

A build writes ``run_manifest.json`` next to the Parquet dataset. It records
which table version produced the files, how many rows/shovels went in and a
SHA-256 digest of the table content, so downstream consumers can tell whether
an export is stale without re-reading the whole table.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

MANIFEST_FILENAME = "run_manifest.json"


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class RunManifest:
    """Identity + path context of one dataset build."""

    dataset_name: str
    dataset_version: str
    schema_version: int
    row_count: int
    shovel_count: int
    table_sha256: str

    # Paths
    out_parquet: str | None = None
    export_dir: str | None = None

    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if not d.get("created_at"):
            d["created_at"] = _utc_now_iso()
        return d

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> RunManifest:
        return cls(
            dataset_name=str(payload.get("dataset_name") or "").strip(),
            dataset_version=str(payload.get("dataset_version") or "").strip(),
            schema_version=int(payload.get("schema_version") or 0),
            row_count=int(payload.get("row_count") or 0),
            shovel_count=int(payload.get("shovel_count") or 0),
            table_sha256=str(payload.get("table_sha256") or "").strip(),
            out_parquet=(str(payload.get("out_parquet") or "").strip() or None),
            export_dir=(str(payload.get("export_dir") or "").strip() or None),
            created_at=str(payload.get("created_at") or "").strip(),
        )

    def validate(self) -> None:
        if not self.dataset_name:
            raise ValueError("RunManifest missing dataset_name")
        if not self.dataset_version:
            raise ValueError("RunManifest missing dataset_version")
        if self.schema_version < 1:
            raise ValueError("RunManifest schema_version must be >= 1")
        if self.row_count < 0 or self.shovel_count < 0:
            raise ValueError("RunManifest counts must be >= 0")
        if len(self.table_sha256) != 64:
            raise ValueError("RunManifest table_sha256 must be a 64 character hex digest")


def manifest_path(base_dir: str | Path) -> Path:
    """Return the canonical manifest path for a dataset directory."""

    return Path(base_dir) / MANIFEST_FILENAME


def write_manifest(base_dir: str | Path, manifest: RunManifest) -> Path:
    """Write *manifest* to *base_dir* (atomically best-effort)."""

    base = Path(base_dir)
    base.mkdir(parents=True, exist_ok=True)
    path = manifest_path(base)
    tmp = path.with_suffix(path.suffix + ".tmp")

    manifest.validate()
    payload = manifest.to_dict()

    tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)
    return path


def load_manifest(path: str | Path) -> RunManifest:
    """Load a manifest from *path* and validate it."""

    p = Path(path)
    payload = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid run manifest (expected object): {p}")
    m = RunManifest.from_dict(payload)
    m.validate()
    return m


def find_manifest(start: str | Path) -> Path | None:
    """Search for a manifest starting at *start* and walking up a few levels."""

    cur = Path(start).resolve()
    if cur.is_file():
        cur = cur.parent

    for _ in range(6):
        cand = cur / MANIFEST_FILENAME
        if cand.exists():
            return cand
        cand2 = cur / "data" / "shovel_levels" / MANIFEST_FILENAME
        if cand2.exists():
            return cand2
        if cur.parent == cur:
            break
        cur = cur.parent
    return None
