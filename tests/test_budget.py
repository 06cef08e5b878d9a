import pytest
from pathlib import Path
from unittest.mock import patch
from budgetrec.errors import BudgetSourceError
from budgetrec.ingest.budget import (
    read_budget_frame,
    load_budget,
    load_budget_for_period,
    select_period,
    team_totals,
    records_for_employee,
)

HEADER = "Team;Description;Employee;TaskID;202501;202502;202503"


def write_budget(tmp_path: Path, *rows: str, header: str = HEADER, name: str = "budget.csv") -> Path:
    path = tmp_path / name
    path.write_text("\n".join([header, *rows]) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def budget_file(tmp_path):
    return write_budget(
        tmp_path,
        "CST III;Platform;THN;T-1;100;110;120",
        "CST III;Support;ab;T-2;50;;abc",
        "CST IV;Data;CDE;T-3;80;80;80",
        "CST IV;Blank;XYZ;T-4;;;",
    )


def test_load_budget(budget_file):
    records = load_budget(budget_file)
    assert len(records) == 4

    thn = records[0]
    assert thn.team == "CST III"
    assert thn.employee == "THN"
    assert thn.task_id == "T-1"
    assert thn.monthly_hours == {"202501": 100, "202502": 110, "202503": 120}
    assert thn.total_hours == 330


def test_blank_and_non_numeric_cells_are_zero(budget_file):
    records = load_budget(budget_file)
    ab = records[1]
    assert ab.employee == "AB"  # initials canonicalized
    assert ab.monthly_hours == {"202501": 50, "202502": 0, "202503": 0}
    assert ab.total_hours == 50

    blank = records[3]
    assert blank.total_hours == 0
    assert set(blank.monthly_hours.values()) == {0}


def test_negative_and_decimal_hours(tmp_path):
    path = write_budget(tmp_path, "CST III;X;AB;T;-5;7.9;1e2")
    record = load_budget(path)[0]
    assert record.monthly_hours == {"202501": 0, "202502": 7, "202503": 100}


def test_out_of_range_hours_are_zero(tmp_path):
    path = write_budget(tmp_path, "CST III;X;AB;T;99999999999999999999;1e400;40")
    record = load_budget(path)[0]
    assert record.monthly_hours == {"202501": 0, "202502": 0, "202503": 40}
    assert record.total_hours == 40


def test_crlf_bom_and_blank_lines(tmp_path):
    path = tmp_path / "budget.csv"
    content = "\ufeff" + HEADER + "\r\n" + "CST III;X;AB;T;1;2;3\r\n" + "\r\n" + "CST IV;Y;CD;T;4;5;6\r\n"
    path.write_bytes(content.encode("utf-8"))
    records = load_budget(path)
    assert [r.employee for r in records] == ["AB", "CD"]
    assert records[1].monthly_hours["202503"] == 6


def test_fields_are_trimmed(tmp_path):
    path = write_budget(tmp_path, " CST III ; Platform ; thn ; T-1 ; 10 ; 20 ; 30 ")
    record = load_budget(path)[0]
    assert record.team == "CST III"
    assert record.description == "Platform"
    assert record.employee == "THN"
    assert record.total_hours == 60


def test_period_scoping(budget_file):
    records = load_budget_for_period("202502", path=budget_file)
    assert [r.employee for r in records] == ["THN", "AB", "CDE", "XYZ"]
    assert [r.total_hours for r in records] == [110, 0, 80, 0]
    # Full year stays available
    assert records[0].monthly_hours["202501"] == 100


def test_period_missing_column_drops_records(budget_file):
    assert load_budget_for_period("202512", path=budget_file) == []


def test_team_filter(budget_file):
    records = load_budget_for_period("202501", team="CST IV", path=budget_file)
    assert [r.employee for r in records] == ["CDE", "XYZ"]
    assert load_budget_for_period("202501", team="CST V", path=budget_file) == []


def test_select_period_does_not_mutate(budget_file):
    records = load_budget(budget_file)
    scoped = select_period(records, "202501")
    assert scoped[0].total_hours == 100
    assert records[0].total_hours == 330


def test_team_totals(budget_file):
    assert team_totals(load_budget(budget_file)) == {"CST III": 380, "CST IV": 240}
    assert team_totals([]) == {}


def test_records_for_employee(budget_file):
    records = load_budget(budget_file)
    assert [r.task_id for r in records_for_employee(records, "thn")] == ["T-1"]
    assert records_for_employee(records, "QQ") == []


def test_header_only_file(tmp_path):
    path = write_budget(tmp_path)
    assert load_budget(path) == []


def test_default_path_from_settings(budget_file):
    with patch("budgetrec.ingest.budget.settings") as mock_settings:
        mock_settings.BUDGET_CSV_PATH = str(budget_file)
        assert len(load_budget()) == 4


# ---------------------------------------------------------------------------
# Source failures
# ---------------------------------------------------------------------------
def test_missing_file(tmp_path):
    with pytest.raises(BudgetSourceError, match="not found"):
        load_budget(tmp_path / "nope.csv")


def test_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("\n\n", encoding="utf-8")
    with pytest.raises(BudgetSourceError, match="empty"):
        load_budget(path)


def test_wrong_field_count(tmp_path):
    path = write_budget(
        tmp_path,
        "CST III;X;AB;T;1;2;3",
        "CST III;X;CD;T;1;2",
    )
    with pytest.raises(BudgetSourceError, match="line 3"):
        load_budget(path)


def test_too_many_fields(tmp_path):
    path = write_budget(tmp_path, "CST III;X;AB;T;1;2;3;4")
    with pytest.raises(BudgetSourceError):
        load_budget(path)


def test_missing_fixed_column(tmp_path):
    path = write_budget(tmp_path, "CST III;X;1;2;3", header="Team;Description;Employee;202501;202502")
    with pytest.raises(BudgetSourceError, match="TaskID"):
        read_budget_frame(path)


def test_duplicate_header(tmp_path):
    path = write_budget(tmp_path, "CST III;X;AB;T;1;2", header="Team;Description;Employee;TaskID;202501;202501")
    with pytest.raises(BudgetSourceError, match="duplicate"):
        read_budget_frame(path)
