"""Path and glob conventions for the shovel level datasets.

All code that needs to know where datasets live (Parquet copy of the table,
JSON/CSV exports, run manifest) should go through
:class:`infra.pipeline_paths.PipelinePaths`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _p(path: str | Path) -> Path:
    return path if isinstance(path, Path) else Path(str(path))


def _as_posix_str(path: Path) -> str:
    # DuckDB + globbing are happier with forward slashes even on Windows.
    return path.as_posix()


@dataclass(frozen=True)
class PipelinePaths:
    """
    Central path conventions for the table datasets.

    Rules:
      - CLI may override *base directories* (e.g. --out, --export-dir)
      - Directory names and default layout live here, not scattered in code
      - Globs are produced from the resolved dirs and are stable
    """

    base_data_dir: Path = Path("data")
    base_export_dir: Path = Path("exports")

    parquet_dirname: str = "shovel_levels"

    parquet_override: Optional[Path] = None
    export_override: Optional[Path] = None

    def __post_init__(self) -> None:
        for name in ("base_data_dir", "base_export_dir", "parquet_override", "export_override"):
            val = getattr(self, name)
            if val is None:
                continue
            if not isinstance(val, Path):
                raise TypeError(f"{name} must be a pathlib.Path (got {type(val)})")

        v = self.parquet_dirname
        if not isinstance(v, str) or not v.strip():
            raise ValueError("parquet_dirname must be a non-empty string")
        if "/" in v or "\\" in v:
            raise ValueError(f"parquet_dirname must be a simple directory name, not a path: {v!r}")

    # -------------------------
    # Resolved directories
    # -------------------------

    def parquet_dir(self) -> Path:
        return self.parquet_override or (self.base_data_dir / self.parquet_dirname)

    def export_dir(self) -> Path:
        return self.export_override or self.base_export_dir

    # -------------------------
    # Globs
    # -------------------------

    def parquet_glob(self) -> str:
        return _as_posix_str(self.parquet_dir() / "**" / "*.parquet")

    # -------------------------
    # Constructors
    # -------------------------

    @classmethod
    def with_overrides(
        cls,
        *,
        data_dir: str | Path | None = None,
        parquet_dir: str | Path | None = None,
        export_dir: str | Path | None = None,
    ) -> "PipelinePaths":
        """
        Preferred way for the CLI to override locations without changing conventions.
        """
        kwargs = {}
        if data_dir:
            kwargs["base_data_dir"] = _p(data_dir)
        return cls(
            parquet_override=_p(parquet_dir) if parquet_dir else None,
            export_override=_p(export_dir) if export_dir else None,
            **kwargs,
        )
