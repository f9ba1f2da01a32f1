"""
shovel_contracts.py

Validation, typed conversion, canonicalization and stable hashing for the
shovel level table.

This module is intentionally writer-agnostic: it does not read/write Parquet/CSV.
It provides:
- The ordered wire field names of a table record
- Wire record validation (exact field set, string values, numeric fields)
- ShovelLevelEntry, the typed form of one record, and its inverse
- Deterministic JSON serialization and a SHA-256 digest of the whole table
"""

from __future__ import annotations

import hashlib
import json
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


# -----------------------------
# Contract constants
# -----------------------------

WIRE_FIELDS: Tuple[str, ...] = (
    "ShovelID",
    "Level",
    "Gems",
    "luck",
    "Modifier",
    "Value",
    "mod_detail",
)

# Fields that exist in the table but carry no data in this data set.
PLACEHOLDER_FIELDS: Tuple[str, ...] = ("Modifier", "Value", "mod_detail")

_INT_RE = re.compile(r"-?[0-9]+")

# ShovelIDs name partition directories, so they stay plain identifiers.
_SHOVEL_ID_RE = re.compile(r"[A-Za-z0-9_]+")


# -----------------------------
# Exceptions
# -----------------------------


class ContractError(ValueError):
    """Base contract error."""


class ValidationError(ContractError):
    """Raised when a record does not satisfy the table contract."""


# -----------------------------
# Helpers
# -----------------------------


def normalize_str(value: Any, *, lower: bool = False) -> str:
    """
    Normalize a value into a stripped string. None becomes "".
    """
    if value is None:
        return ""
    out = str(value).strip()
    return out.lower() if lower else out


def _parse_luck(raw: str) -> Optional[float]:
    txt = raw.strip()
    if txt == "":
        return None
    try:
        parsed = float(txt)
    except ValueError as exc:
        raise ValidationError(f"luck must be numeric or empty: {raw!r}") from exc
    if not math.isfinite(parsed):
        raise ValidationError(f"luck must be a finite number: {raw!r}")
    return parsed


def _format_luck(luck: Optional[float]) -> str:
    if luck is None:
        return ""
    if float(luck).is_integer():
        return str(int(luck))
    return repr(float(luck))


# -----------------------------
# Validation
# -----------------------------


def validate_wire_record(record: Any) -> None:
    """
    Validate one wire record of the table.

    Raises ValidationError naming the offending field when:
    - the record is not a mapping or its field set differs from WIRE_FIELDS
    - a value is not a string
    - ShovelID is empty or not a plain identifier (letters, digits, underscore)
    - Level/Gems are not decimal integers (Level must be >= 0)
    - luck is neither numeric nor empty
    """
    if not isinstance(record, Mapping):
        raise ValidationError(f"Record must be an object, got {type(record).__name__}")

    keys = set(record.keys())
    expected = set(WIRE_FIELDS)
    missing = [f for f in WIRE_FIELDS if f not in keys]
    extra = sorted(str(k) for k in keys - expected)
    if missing:
        raise ValidationError(f"Missing field(s): {', '.join(missing)}")
    if extra:
        raise ValidationError(f"Unexpected field(s): {', '.join(extra)}")

    for name in WIRE_FIELDS:
        if not isinstance(record[name], str):
            raise ValidationError(
                f"Field {name} must be a string, got {type(record[name]).__name__} ({record[name]!r})"
            )

    if not record["ShovelID"].strip():
        raise ValidationError("ShovelID must be non-empty")
    if not _SHOVEL_ID_RE.fullmatch(record["ShovelID"].strip()):
        raise ValidationError(
            f"ShovelID must contain only letters, digits and underscores: {record['ShovelID']!r}"
        )

    shovel_id = record["ShovelID"]
    for name in ("Level", "Gems"):
        if not _INT_RE.fullmatch(record[name].strip()):
            raise ValidationError(f"{name} must be an integer: {record[name]!r} (ShovelID={shovel_id!r})")
    if int(record["Level"]) < 0:
        raise ValidationError(f"Level must be >= 0: {record['Level']!r} (ShovelID={shovel_id!r})")

    _parse_luck(record["luck"])


# -----------------------------
# Typed entry
# -----------------------------


@dataclass(frozen=True)
class ShovelLevelEntry:
    """One row of the table: the cost and stats of a shovel at one level."""

    shovel_id: str
    level: int
    gems: int
    luck: Optional[float] = None
    modifier: str = ""
    value: str = ""
    mod_detail: str = ""

    @property
    def key(self) -> Tuple[str, int]:
        return (self.shovel_id, self.level)

    def to_wire(self) -> Dict[str, str]:
        """Render back to the wire shape (all strings, wire field names)."""
        return {
            "ShovelID": self.shovel_id,
            "Level": str(self.level),
            "Gems": str(self.gems),
            "luck": _format_luck(self.luck),
            "Modifier": self.modifier,
            "Value": self.value,
            "mod_detail": self.mod_detail,
        }


def parse_entry(record: Mapping[str, Any]) -> ShovelLevelEntry:
    """Validate a wire record and convert it to a ShovelLevelEntry."""
    validate_wire_record(record)
    return ShovelLevelEntry(
        shovel_id=record["ShovelID"].strip(),
        level=int(record["Level"]),
        gems=int(record["Gems"]),
        luck=_parse_luck(record["luck"]),
        modifier=record["Modifier"],
        value=record["Value"],
        mod_detail=record["mod_detail"],
    )


# -----------------------------
# Canonical JSON + hashing
# -----------------------------


def canonical_json_dumps(payload: Any) -> str:
    """
    Deterministic JSON serialization:
    - sort keys
    - no whitespace
    - ensure_ascii=False for stable UTF-8
    """
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def table_sha256(records: Iterable[Mapping[str, Any]]) -> str:
    """
    SHA-256 hex digest of the table content. Record order is significant.
    """
    payload = [dict(r) for r in records]
    return hashlib.sha256(canonical_json_dumps(payload).encode("utf-8")).hexdigest()
