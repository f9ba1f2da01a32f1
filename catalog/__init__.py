"""Shovel level table and lookups.

The bundled table lives next to this package as ``shovel_levels.json``.
"""

from catalog.lookup import (
    DEFAULT_GEM_COST,
    LevelOutOfRangeError,
    ShovelLevelIndex,
    UnknownShovelError,
    default_index,
)
from catalog.table import TableLoadError, load_entries, load_table, raw_table, shovel_ids

__all__ = [
    "DEFAULT_GEM_COST",
    "LevelOutOfRangeError",
    "ShovelLevelIndex",
    "TableLoadError",
    "UnknownShovelError",
    "default_index",
    "load_entries",
    "load_table",
    "raw_table",
    "shovel_ids",
]
