"""Tests for the table integrity checks."""

from __future__ import annotations

import pytest

from catalog.table import load_table, raw_table
from pipeline.integrity import (
    CHECK_IDS,
    GEMS_VALUES,
    IntegrityError,
    IntegrityIssue,
    check_raw_table,
    check_table,
    expected_gems,
)
from tests.factories import make_table, make_wire_record, table_text


def _row(records: list[dict], shovel_id: str, level: int) -> dict:
    for rec in records:
        if rec["ShovelID"] == shovel_id and rec["Level"] == str(level):
            return rec
    raise AssertionError(f"no row {shovel_id} L{level}")


def test_bundled_table_is_clean() -> None:
    report = check_table(load_table())
    assert report.ok, [str(i) for i in report.issues[:5]]
    assert report.row_count == 50 * report.shovel_count


def test_bundled_raw_text_is_clean() -> None:
    assert check_raw_table(raw_table()).ok


def test_factory_table_is_clean() -> None:
    report = check_table(make_table())
    assert report.ok
    assert report.row_count == 100
    assert report.shovel_count == 2


def test_expected_gems_curve() -> None:
    assert expected_gems(0) == 3
    assert expected_gems(4) == 3
    assert expected_gems(5) == 4
    assert expected_gems(25) == 8
    assert expected_gems(49) == 12
    assert GEMS_VALUES == tuple(range(3, 13))


def test_missing_field_is_schema_issue() -> None:
    records = make_table("shovel_a")
    del records[7]["Gems"]
    report = check_table(records)
    assert list(report.by_check()) == ["schema.fields", "levels.contiguous"]
    issue = report.by_check()["schema.fields"][0]
    assert issue.shovel_id == "shovel_a"
    assert "row 7" in issue.message


def test_non_object_row_is_schema_issue() -> None:
    records: list = make_table("shovel_a")
    records.append("oops")
    report = check_table(records)
    assert [i.check_id for i in report.issues] == ["schema.fields"]
    assert report.issues[0].shovel_id is None


def test_bad_luck_is_its_own_check() -> None:
    records = make_table("shovel_a")
    records[0]["luck"] = "very"
    report = check_table(records)
    assert "luck.numeric" in report.by_check()
    assert "schema.fields" not in report.by_check()


def test_missing_and_duplicate_levels() -> None:
    records = make_table("shovel_a")
    records.remove(_row(records, "shovel_a", 12))
    records.append(make_wire_record(ShovelID="shovel_a", Level="3", Gems="3"))
    issues = check_table(records).by_check()["levels.contiguous"]
    assert {(i.level, i.message) for i in issues} == {(12, "missing level"), (3, "duplicate level")}


def test_level_outside_range() -> None:
    records = make_table("shovel_a")
    records.append(make_wire_record(ShovelID="shovel_a", Level="50", Gems="12"))
    by_check = check_table(records).by_check()
    assert [i.level for i in by_check["levels.contiguous"]] == [50]
    assert [i.level for i in by_check["gems.step"]] == [50]


def test_gems_drop_is_reported() -> None:
    records = make_table("shovel_a")
    _row(records, "shovel_a", 10)["Gems"] = "3"
    by_check = check_table(records).by_check()
    assert [i.level for i in by_check["gems.monotonic"]] == [10]
    assert [i.level for i in by_check["gems.step"]] == [10]
    assert "gems.range" not in by_check


def test_gems_out_of_range() -> None:
    records = make_table("shovel_a")
    _row(records, "shovel_a", 49)["Gems"] = "13"
    by_check = check_table(records).by_check()
    assert [i.level for i in by_check["gems.range"]] == [49]
    assert "gems.monotonic" not in by_check


def test_filled_placeholder_is_reported() -> None:
    records = make_table("shovel_a")
    _row(records, "shovel_a", 0)["Modifier"] = "speed"
    issues = check_table(records).by_check()["placeholders.empty"]
    assert len(issues) == 1
    assert "Modifier" in issues[0].message


def test_check_ids_cover_every_row_check() -> None:
    assert set(CHECK_IDS) == {
        "schema.fields",
        "luck.numeric",
        "levels.contiguous",
        "gems.monotonic",
        "gems.range",
        "gems.step",
        "placeholders.empty",
    }


@pytest.mark.parametrize("text", ["[{", '{"rows": []}'])
def test_raw_table_parse_failures(text: str) -> None:
    report = check_raw_table(text)
    assert not report.ok
    assert [i.check_id for i in report.issues] == ["json.parse"]


def test_raw_table_delegates_to_check_table() -> None:
    assert check_raw_table(table_text(make_table("shovel_a"))).ok


def test_raise_for_issues() -> None:
    check_table(make_table()).raise_for_issues()

    records = make_table("shovel_a")
    for rec in records:
        rec["Modifier"] = "x"
    report = check_table(records)
    with pytest.raises(IntegrityError, match=r"50 integrity issue\(s\).*and 47 more"):
        report.raise_for_issues(max_listed=3)


def test_issue_str() -> None:
    assert str(IntegrityIssue("gems.step", "bad", "shovel_a", 4)) == "gems.step [shovel_a L4]: bad"
    assert str(IntegrityIssue("json.parse", "bad")) == "json.parse: bad"
