"""Data-integrity checks for the shovel level table.

The table has no behavior of its own, so what can be verified about it is
structural: field shape, level contiguity and the Gems cost curve. Each check
walks the wire records and reports an IntegrityIssue per violation instead of
stopping at the first one, so a single run shows everything that is wrong.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from contracts.shovel_contracts import (
    PLACEHOLDER_FIELDS,
    ContractError,
    ValidationError,
    validate_wire_record,
)

logger = logging.getLogger(__name__)

LEVEL_COUNT: int = 50  # levels 0..49
GEMS_BASE: int = 3
GEMS_STEP_EVERY: int = 5
GEMS_VALUES: Tuple[int, ...] = tuple(range(GEMS_BASE, GEMS_BASE + LEVEL_COUNT // GEMS_STEP_EVERY))


class IntegrityError(ContractError):
    """Raised by IntegrityReport.raise_for_issues when the table has issues."""


@dataclass(frozen=True)
class IntegrityIssue:
    check_id: str
    message: str
    shovel_id: Optional[str] = None
    level: Optional[int] = None

    def __str__(self) -> str:
        where = ""
        if self.shovel_id is not None:
            where = f" [{self.shovel_id}"
            where += f" L{self.level}]" if self.level is not None else "]"
        return f"{self.check_id}{where}: {self.message}"


@dataclass
class IntegrityReport:
    row_count: int = 0
    shovel_count: int = 0
    issues: List[IntegrityIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    def by_check(self) -> Dict[str, List[IntegrityIssue]]:
        out: Dict[str, List[IntegrityIssue]] = {}
        for issue in self.issues:
            out.setdefault(issue.check_id, []).append(issue)
        return out

    def raise_for_issues(self, *, max_listed: int = 10) -> None:
        if self.ok:
            return
        listed = "; ".join(str(i) for i in self.issues[:max_listed])
        more = len(self.issues) - max_listed
        if more > 0:
            listed += f"; ... and {more} more"
        raise IntegrityError(f"{len(self.issues)} integrity issue(s): {listed}")


def expected_gems(level: int) -> int:
    """Gems cost the table's curve assigns to a level."""
    return GEMS_BASE + level // GEMS_STEP_EVERY


# -------------------------
# Individual checks
# -------------------------

_Rows = Dict[str, List[Tuple[int, Mapping[str, Any]]]]


def _check_schema(records: Sequence[Any]) -> Tuple[List[IntegrityIssue], List[Mapping[str, Any]]]:
    issues: List[IntegrityIssue] = []
    valid: List[Mapping[str, Any]] = []
    for idx, rec in enumerate(records):
        try:
            validate_wire_record(rec)
        except ValidationError as exc:
            check_id = "luck.numeric" if str(exc).startswith("luck ") else "schema.fields"
            shovel_id = rec.get("ShovelID") if isinstance(rec, Mapping) else None
            issues.append(IntegrityIssue(check_id, f"row {idx}: {exc}", shovel_id=shovel_id))
            continue
        valid.append(rec)
    return issues, valid


def _check_levels_contiguous(rows: _Rows) -> List[IntegrityIssue]:
    issues: List[IntegrityIssue] = []
    expected = set(range(LEVEL_COUNT))
    for shovel_id, levels in rows.items():
        seen: Dict[int, int] = defaultdict(int)
        for level, _ in levels:
            seen[level] += 1
        for level in sorted(lvl for lvl, n in seen.items() if n > 1):
            issues.append(IntegrityIssue("levels.contiguous", "duplicate level", shovel_id, level))
        for level in sorted(expected - set(seen)):
            issues.append(IntegrityIssue("levels.contiguous", "missing level", shovel_id, level))
        for level in sorted(set(seen) - expected):
            issues.append(
                IntegrityIssue("levels.contiguous", f"level outside 0..{LEVEL_COUNT - 1}", shovel_id, level)
            )
    return issues


def _check_gems_monotonic(rows: _Rows) -> List[IntegrityIssue]:
    issues: List[IntegrityIssue] = []
    for shovel_id, levels in rows.items():
        ordered = sorted(levels, key=lambda item: item[0])
        for (_, prev), (level, rec) in zip(ordered, ordered[1:]):
            if int(rec["Gems"]) < int(prev["Gems"]):
                issues.append(
                    IntegrityIssue(
                        "gems.monotonic",
                        f"Gems drops from {prev['Gems']} to {rec['Gems']}",
                        shovel_id,
                        level,
                    )
                )
    return issues


def _check_gems_range(rows: _Rows) -> List[IntegrityIssue]:
    issues: List[IntegrityIssue] = []
    for shovel_id, levels in rows.items():
        for level, rec in levels:
            if int(rec["Gems"]) not in GEMS_VALUES:
                issues.append(
                    IntegrityIssue(
                        "gems.range",
                        f"Gems {rec['Gems']} not in {GEMS_VALUES[0]}..{GEMS_VALUES[-1]}",
                        shovel_id,
                        level,
                    )
                )
    return issues


def _check_gems_step(rows: _Rows) -> List[IntegrityIssue]:
    issues: List[IntegrityIssue] = []
    for shovel_id, levels in rows.items():
        for level, rec in levels:
            want = expected_gems(level)
            if int(rec["Gems"]) != want:
                issues.append(
                    IntegrityIssue("gems.step", f"Gems {rec['Gems']} != expected {want}", shovel_id, level)
                )
    return issues


def _check_placeholders(rows: _Rows) -> List[IntegrityIssue]:
    issues: List[IntegrityIssue] = []
    for shovel_id, levels in rows.items():
        for level, rec in levels:
            filled = [f for f in PLACEHOLDER_FIELDS if rec[f] != ""]
            if filled:
                issues.append(
                    IntegrityIssue(
                        "placeholders.empty",
                        f"placeholder field(s) not empty: {', '.join(filled)}",
                        shovel_id,
                        level,
                    )
                )
    return issues


_ROW_CHECKS: Tuple[Tuple[str, Callable[[_Rows], List[IntegrityIssue]]], ...] = (
    ("levels.contiguous", _check_levels_contiguous),
    ("gems.monotonic", _check_gems_monotonic),
    ("gems.range", _check_gems_range),
    ("gems.step", _check_gems_step),
    ("placeholders.empty", _check_placeholders),
)

CHECK_IDS: Tuple[str, ...] = ("schema.fields", "luck.numeric") + tuple(cid for cid, _ in _ROW_CHECKS)


# -------------------------
# Entry points
# -------------------------


def check_table(records: Iterable[Any]) -> IntegrityReport:
    """Run every check over wire records and collect the issues."""
    records = list(records)
    schema_issues, valid = _check_schema(records)

    rows: _Rows = {}
    for rec in valid:
        rows.setdefault(rec["ShovelID"], []).append((int(rec["Level"]), rec))

    report = IntegrityReport(row_count=len(records), shovel_count=len(rows))
    report.issues.extend(schema_issues)
    for check_id, check in _ROW_CHECKS:
        found = check(rows)
        if found:
            logger.debug("Integrity check %s found %d issue(s)", check_id, len(found))
        report.issues.extend(found)

    logger.info(
        "Integrity check: rows=%d shovels=%d issues=%d",
        report.row_count,
        report.shovel_count,
        len(report.issues),
    )
    return report


def check_raw_table(text: str) -> IntegrityReport:
    """Like check_table, but starting from JSON text; parse failures become an issue."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        return IntegrityReport(issues=[IntegrityIssue("json.parse", f"table is not valid JSON: {exc}")])
    if not isinstance(payload, list):
        return IntegrityReport(
            issues=[IntegrityIssue("json.parse", f"table must be a JSON array, got {type(payload).__name__}")]
        )
    return check_table(payload)


__all__ = [
    "CHECK_IDS",
    "IntegrityError",
    "IntegrityIssue",
    "IntegrityReport",
    "check_raw_table",
    "check_table",
    "expected_gems",
]
