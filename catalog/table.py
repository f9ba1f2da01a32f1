"""Access to the bundled shovel level table.

The table ships as ``catalog/shovel_levels.json``: a JSON array of objects,
one per (ShovelID, Level), every value a string. ``raw_table()`` returns that
text unchanged; the loaders parse and validate it.
"""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any, Dict, List, Optional

from contracts.shovel_contracts import ContractError, ShovelLevelEntry, ValidationError, parse_entry

TABLE_RESOURCE = "shovel_levels.json"


class TableLoadError(ContractError):
    """Raised when the table text is not a JSON array of objects."""


@lru_cache(maxsize=1)
def raw_table() -> str:
    """Return the bundled table as its constant JSON text."""
    return resources.files("catalog").joinpath(TABLE_RESOURCE).read_text(encoding="utf-8")


def load_table(text: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Parse the table JSON. Defaults to the bundled table.

    Only the outer shape is checked here (array of objects); field level
    validation is done by load_entries / pipeline.integrity.
    """
    source = raw_table() if text is None else text
    try:
        payload = json.loads(source)
    except json.JSONDecodeError as exc:
        raise TableLoadError(f"Table is not valid JSON: {exc}") from exc

    if not isinstance(payload, list):
        raise TableLoadError(f"Table must be a JSON array, got {type(payload).__name__}")
    for idx, rec in enumerate(payload):
        if not isinstance(rec, dict):
            raise TableLoadError(f"Table row {idx} must be an object, got {type(rec).__name__}")
    return payload


@lru_cache(maxsize=1)
def _bundled_entries() -> tuple[ShovelLevelEntry, ...]:
    return tuple(_parse_all(load_table()))


def _parse_all(records: List[Dict[str, Any]]) -> List[ShovelLevelEntry]:
    out: List[ShovelLevelEntry] = []
    for idx, rec in enumerate(records):
        try:
            out.append(parse_entry(rec))
        except ValidationError as exc:
            raise ValidationError(f"Table row {idx}: {exc}") from exc
    return out


def load_entries(text: Optional[str] = None) -> List[ShovelLevelEntry]:
    """Parse and validate every row into ShovelLevelEntry objects."""
    if text is None:
        return list(_bundled_entries())
    return _parse_all(load_table(text))


def shovel_ids(text: Optional[str] = None) -> List[str]:
    """Distinct ShovelIDs in table order."""
    seen: Dict[str, None] = {}
    for entry in load_entries(text):
        seen.setdefault(entry.shovel_id, None)
    return list(seen)
