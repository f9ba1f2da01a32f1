"""Read-only lookup index over the shovel level table, keyed by (ShovelID, Level)."""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, Iterable, List, Optional

from catalog.table import load_entries
from contracts.shovel_contracts import ShovelLevelEntry, ValidationError

# Cost reported for a level the table has no row for.
DEFAULT_GEM_COST: int = 1


class UnknownShovelError(LookupError):
    """Raised when a ShovelID is not present in the table."""


class LevelOutOfRangeError(LookupError):
    """Raised when a (ShovelID, Level) pair is not present in the table."""


class ShovelLevelIndex:
    """
    Index of table rows grouped by ShovelID.

    Exact lookups (get) raise on a missing row. Stat lookups (entry_for_level,
    luck) clamp the level to the range the shovel has rows for, so a shovel
    past its last row keeps the stats of that row.
    """

    def __init__(self, rows: Dict[str, Dict[int, ShovelLevelEntry]]) -> None:
        self._rows = rows
        self._count = sum(len(levels) for levels in rows.values())

    @classmethod
    def from_entries(cls, entries: Iterable[ShovelLevelEntry]) -> "ShovelLevelIndex":
        rows: Dict[str, Dict[int, ShovelLevelEntry]] = {}
        for entry in entries:
            levels = rows.setdefault(entry.shovel_id, {})
            if entry.level in levels:
                raise ValidationError(
                    f"Duplicate row for ShovelID={entry.shovel_id!r} Level={entry.level}"
                )
            levels[entry.level] = entry
        return cls(rows)

    def __contains__(self, shovel_id: object) -> bool:
        return shovel_id in self._rows

    def __len__(self) -> int:
        return self._count

    # -------------------------
    # Internal helpers
    # -------------------------

    def _levels_for(self, shovel_id: str) -> Dict[int, ShovelLevelEntry]:
        try:
            return self._rows[shovel_id]
        except KeyError:
            raise UnknownShovelError(f"Unknown ShovelID: {shovel_id!r}") from None

    # -------------------------
    # Lookups
    # -------------------------

    def shovel_ids(self) -> List[str]:
        return list(self._rows)

    def levels(self, shovel_id: str) -> List[int]:
        return sorted(self._levels_for(shovel_id))

    def max_level(self, shovel_id: str) -> int:
        levels = self._levels_for(shovel_id)
        if not levels:
            raise LevelOutOfRangeError(f"ShovelID {shovel_id!r} has no levels")
        return max(levels)

    def get(self, shovel_id: str, level: int) -> ShovelLevelEntry:
        levels = self._levels_for(shovel_id)
        try:
            return levels[level]
        except KeyError:
            raise LevelOutOfRangeError(
                f"No row for ShovelID={shovel_id!r} Level={level}"
            ) from None

    def entry_for_level(self, shovel_id: str, level: int) -> ShovelLevelEntry:
        """Row for level, clamped to the shovel's first/last row."""
        available = self.levels(shovel_id)
        if not available:
            raise LevelOutOfRangeError(f"ShovelID {shovel_id!r} has no levels")
        clamped = min(max(level, available[0]), available[-1])
        return self.get(shovel_id, clamped)

    def gem_cost(self, shovel_id: str, level: int) -> int:
        entry = self._levels_for(shovel_id).get(level)
        return entry.gems if entry is not None else DEFAULT_GEM_COST

    def luck(self, shovel_id: str, level: int) -> Optional[float]:
        return self.entry_for_level(shovel_id, level).luck

    def upgrade_cost(self, shovel_id: str, level: int) -> Optional[int]:
        """
        Gems needed to go from level to level + 1.

        Returns None at (or past) the max level, or for a negative level.
        """
        if level < 0 or level >= self.max_level(shovel_id):
            return None
        return self.gem_cost(shovel_id, level)

    def total_upgrade_cost(self, shovel_id: str, from_level: int, to_level: int) -> int:
        """Sum of upgrade costs from from_level up to to_level (levels clamped)."""
        if from_level > to_level:
            raise ValueError(f"from_level ({from_level}) must be <= to_level ({to_level})")
        top = self.max_level(shovel_id)
        start = min(max(from_level, 0), top)
        end = min(max(to_level, 0), top)

        total = 0
        for level in range(start, end):
            total += self.upgrade_cost(shovel_id, level) or 0
        return total

    def can_afford(self, shovel_id: str, level: int, gem_count: int) -> bool:
        cost = self.upgrade_cost(shovel_id, level)
        return cost is not None and gem_count >= cost


@lru_cache(maxsize=1)
def default_index() -> ShovelLevelIndex:
    """Index over the bundled table."""
    return ShovelLevelIndex.from_entries(load_entries())
