"""Property-based tests for the Gems cost curve and upgrade-cost lookups."""

from __future__ import annotations

import pytest

pytest.importorskip("hypothesis")
from hypothesis import given  # type: ignore  # noqa: E402
from hypothesis import strategies as st

from catalog.lookup import default_index
from contracts.shovel_contracts import parse_entry
from pipeline.integrity import expected_gems

_INDEX = default_index()
_SHOVEL_ID = st.sampled_from(_INDEX.shovel_ids())
_LEVEL = st.integers(min_value=0, max_value=49)
_ANY_LEVEL = st.integers(min_value=-100, max_value=200)


@given(shovel_id=_SHOVEL_ID, level=_LEVEL)
def test_gems_follow_curve(shovel_id: str, level: int) -> None:
    assert _INDEX.get(shovel_id, level).gems == 3 + level // 5 == expected_gems(level)


@given(shovel_id=_SHOVEL_ID, level=_ANY_LEVEL)
def test_stat_lookups_never_leave_table(shovel_id: str, level: int) -> None:
    entry = _INDEX.entry_for_level(shovel_id, level)
    assert 0 <= entry.level <= 49
    assert entry.level == min(max(level, 0), 49)


@given(shovel_id=_SHOVEL_ID, a=_LEVEL, b=_LEVEL, c=_LEVEL)
def test_total_cost_is_additive(shovel_id: str, a: int, b: int, c: int) -> None:
    lo, mid, hi = sorted((a, b, c))
    total = _INDEX.total_upgrade_cost(shovel_id, lo, hi)
    assert total == _INDEX.total_upgrade_cost(shovel_id, lo, mid) + _INDEX.total_upgrade_cost(shovel_id, mid, hi)
    assert total >= 3 * (hi - lo)


@given(shovel_id=_SHOVEL_ID, level=st.integers(min_value=0, max_value=48), gems=st.integers(min_value=0, max_value=20))
def test_can_afford_matches_cost(shovel_id: str, level: int, gems: int) -> None:
    assert _INDEX.can_afford(shovel_id, level, gems) == (gems >= expected_gems(level))


@given(shovel_id=_SHOVEL_ID, level=_LEVEL)
def test_wire_round_trip(shovel_id: str, level: int) -> None:
    entry = _INDEX.get(shovel_id, level)
    assert parse_entry(entry.to_wire()) == entry
