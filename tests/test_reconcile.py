import logging
import pytest
from unittest.mock import patch
from sqlalchemy import create_engine
from sqlalchemy.pool import NullPool
from sqlmodel import Session, SQLModel
from budgetrec.errors import (
    ActualsConnectionError,
    BudgetSourceError,
    MalformedEmployeeError,
    MalformedPeriodError,
    MalformedTeamError,
)
from budgetrec.models.actuals import Employee, TimeEntry
from budgetrec.models.records import ActualsRecord, BudgetRecord
from budgetrec.reconcile import index_budget, percentage, reconcile, reconcile_records

TEAMS = ["CST3", "CST4", "CST5"]


def budget(initials: str, hours: int, team: str = "CST III", task: str = "T") -> BudgetRecord:
    return BudgetRecord(
        team=team,
        description="work",
        employee=initials,
        task_id=task,
        monthly_hours={"202505": hours},
        total_hours=hours,
    )


def actual(raw: str, hours: float, team: str = "CST3") -> ActualsRecord:
    return ActualsRecord(employee_full_name_raw=raw, team_storage_id=team, billable_hours=hours)


# ---------------------------------------------------------------------------
# Join and aggregation
# ---------------------------------------------------------------------------
def test_percentage_zero_denominator():
    assert percentage(5, 0) == 0.0
    assert percentage(0, 0) == 0.0
    assert percentage(20, 100) == 20.0


def test_single_employee():
    summary = reconcile_records("202505", [actual("ABC - Alice Brown", 120)], [budget("ABC", 100)], TEAMS)

    assert summary.period == "202505"
    assert len(summary.employee_analysis) == 1
    emp = summary.employee_analysis[0]
    assert emp.initials == "ABC"
    assert emp.full_name == "Alice Brown"
    assert emp.team == "CST III"
    assert emp.budgeted_hours == 100
    assert emp.billed_hours == 120
    assert emp.variance == 20
    assert emp.variance_percentage == pytest.approx(20.0)

    assert summary.total_budgeted == 100
    assert summary.total_billed == 120
    assert summary.budget_variance == 20
    assert summary.utilization_rate == pytest.approx(120.0)
    assert not summary.diagnostics.has_misses


def test_empty_inputs():
    summary = reconcile_records("202505", [], [], TEAMS)
    assert summary.total_budgeted == 0
    assert summary.total_billed == 0
    assert summary.budget_variance == 0
    assert summary.utilization_rate == 0
    assert summary.employee_analysis == []
    assert summary.team_summary == {}


def test_team_summary():
    summary = reconcile_records(
        "202505",
        [actual("AA - Ann A", 110), actual("BB - Bob B", 180)],
        [budget("AA", 100), budget("BB", 200)],
        TEAMS,
    )
    team = summary.team_summary["CST III"]
    assert team.budgeted == 300
    assert team.billed == 290
    assert team.variance == -10
    assert team.employee_count == 2
    assert summary.utilization_rate == pytest.approx(290 / 300 * 100)


def test_team_summary_order_and_totals_agree():
    summary = reconcile_records(
        "202505",
        [actual("CC - C", 10, "CST5"), actual("AA - A", 20, "CST3"), actual("DD - D", 30, "CST5")],
        [budget("AA", 25, "CST III"), budget("CC", 5, "CST V"), budget("DD", 40, "CST V")],
        TEAMS,
    )
    assert list(summary.team_summary) == ["CST V", "CST III"]
    assert sum(t.budgeted for t in summary.team_summary.values()) == summary.total_budgeted
    assert sum(t.billed for t in summary.team_summary.values()) == summary.total_billed
    assert sum(t.employee_count for t in summary.team_summary.values()) == len(summary.employee_analysis)


def test_zero_budget_employee():
    summary = reconcile_records("202505", [actual("AA - A", 12)], [budget("AA", 0)], TEAMS)
    emp = summary.employee_analysis[0]
    assert emp.variance == 12
    assert emp.variance_percentage == 0.0
    assert summary.utilization_rate == 0.0


def test_unmatched_employees_reported(caplog):
    with caplog.at_level(logging.WARNING, logger="budgetrec"):
        summary = reconcile_records(
            "202505",
            [actual("AA - Ann A", 10), actual("XY - Xavier Y", 40, "CST4")],
            [budget("AA", 10), budget("QQ", 25)],
            TEAMS,
        )

    assert [e.initials for e in summary.employee_analysis] == ["AA"]
    assert summary.total_billed == 10
    assert summary.total_budgeted == 10

    missing_budget = summary.diagnostics.unmatched_actuals
    assert [(m.initials, m.full_name, m.team, m.hours) for m in missing_budget] == [
        ("XY", "Xavier Y", "CST IV", 40)
    ]
    missing_actuals = summary.diagnostics.unmatched_budget
    assert [(m.initials, m.hours) for m in missing_actuals] == [("QQ", 25)]
    assert "No budget data found for employee: XY" in caplog.text


def test_initials_match_case_insensitive():
    summary = reconcile_records("202505", [actual("abc - alice brown", 5)], [budget("ABC", 5)], TEAMS)
    assert summary.employee_analysis[0].initials == "ABC"
    assert summary.employee_analysis[0].full_name == "Alice Brown"


def test_first_budget_row_per_employee_is_used(caplog):
    index, duplicates = index_budget([budget("AA", 100, task="T1"), budget("AA", 50, task="T2")])
    assert index["AA"].task_id == "T1"
    assert index["AA"].total_hours == 100
    assert [(d.initials, d.task_id, d.hours) for d in duplicates] == [("AA", "T2", 50)]

    with caplog.at_level(logging.WARNING, logger="budgetrec"):
        summary = reconcile_records(
            "202505",
            [actual("AA - Ann", 120)],
            [budget("AA", 100, task="T1"), budget("AA", 50, task="T2")],
            TEAMS,
        )
    emp = summary.employee_analysis[0]
    assert emp.budgeted_hours == 100
    assert emp.variance == 20
    assert emp.variance_percentage == pytest.approx(20.0)
    assert summary.total_budgeted == 100
    assert [d.task_id for d in summary.diagnostics.duplicate_budget] == ["T2"]
    assert not summary.diagnostics.has_misses
    assert "Ignoring budget row 'T2' for AA" in caplog.text


def test_rows_outside_universe_skipped():
    summary = reconcile_records("202505", [actual("AA - A", 30, "CST9")], [budget("AA", 10)], TEAMS)
    assert summary.employee_analysis == []
    assert summary.diagnostics.unmatched_actuals == []


def test_malformed_employee_propagates():
    with pytest.raises(MalformedEmployeeError):
        reconcile_records("202505", [actual("Ann Without Initials", 5)], [budget("AA", 5)], TEAMS)


def test_malformed_team_propagates():
    with pytest.raises(MalformedTeamError):
        reconcile_records("202505", [actual("AA - A", 5, "CST21")], [budget("AA", 5)], None)


def test_result_serializes_camel_case():
    summary = reconcile_records("202505", [actual("ABC - Alice Brown", 120)], [budget("ABC", 100)], TEAMS)
    data = summary.to_dict()
    assert data["totalBudgeted"] == 100
    assert data["utilizationRate"] == pytest.approx(120.0)
    assert data["employeeAnalysis"][0]["variancePercentage"] == pytest.approx(20.0)
    assert data["teamSummary"]["CST III"]["employeeCount"] == 1
    assert data["diagnostics"] == {"unmatchedActuals": [], "unmatchedBudget": [], "duplicateBudget": []}


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------
def test_reconcile_uses_canonical_period_and_filter():
    with patch("budgetrec.reconcile.fetch_billed_hours") as mock_fetch, \
         patch("budgetrec.reconcile.load_budget_for_period") as mock_budget:
        mock_fetch.return_value = [actual("ABC - Alice Brown", 120)]
        mock_budget.return_value = [budget("ABC", 100)]

        summary = reconcile("May 2025", "cst3", teams=TEAMS)

    assert summary.period == "202505"
    assert summary.budget_variance == 20
    mock_fetch.assert_called_once_with("202505", TEAMS, None)
    mock_budget.assert_called_once_with("202505", "CST III", None)


def test_team_filter_narrows_budget_only():
    # Billed rows for other teams come back, but only CST III has budget
    with patch("budgetrec.reconcile.fetch_billed_hours") as mock_fetch, \
         patch("budgetrec.reconcile.load_budget_for_period") as mock_budget:
        mock_fetch.return_value = [actual("AA - A", 10, "CST3"), actual("BB - B", 20, "CST4")]
        mock_budget.return_value = [budget("AA", 10, "CST III")]

        summary = reconcile("202505", "CST III", teams=TEAMS)

    assert [e.initials for e in summary.employee_analysis] == ["AA"]
    assert list(summary.team_summary) == ["CST III"]
    assert [m.initials for m in summary.diagnostics.unmatched_actuals] == ["BB"]


def test_reconcile_source_failure_propagates():
    with patch("budgetrec.reconcile.fetch_billed_hours") as mock_fetch, \
         patch("budgetrec.reconcile.load_budget_for_period") as mock_budget:
        mock_fetch.side_effect = ActualsConnectionError("down")
        mock_budget.return_value = [budget("AA", 10)]
        with pytest.raises(ActualsConnectionError):
            reconcile("202505", teams=TEAMS)

        mock_fetch.side_effect = None
        mock_fetch.return_value = []
        mock_budget.side_effect = BudgetSourceError("missing")
        with pytest.raises(BudgetSourceError):
            reconcile("202505", teams=TEAMS)


def test_reconcile_strict_period():
    with pytest.raises(MalformedPeriodError):
        reconcile("not a month", strict_period=True)


def test_reconcile_bad_team_filter():
    with pytest.raises(MalformedTeamError):
        reconcile("202505", "CST XXX", teams=TEAMS)


def test_reconcile_end_to_end(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'actuals.db'}", poolclass=NullPool)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        session.add_all([
            Employee(employee_key=1, employee_name="ABC - Alice Brown", team_id="CST3"),
            Employee(employee_key=2, employee_name="DEF - Dan Ellis", team_id="CST4"),
            TimeEntry(entry_id=1, batch_created=1, employee_key=1, hours=70.0, is_billable=1, entry_date="20250502"),
            TimeEntry(entry_id=2, batch_created=1, employee_key=1, hours=50.0, is_billable=1, entry_date="20250520"),
            TimeEntry(entry_id=3, batch_created=1, employee_key=2, hours=40.0, is_billable=1, entry_date="20250512"),
        ])
        session.commit()

    budget_path = tmp_path / "budget.csv"
    budget_path.write_text(
        "Team;Description;Employee;TaskID;202504;202505\n"
        "CST III;Platform;ABC;T-1;90;100\n"
        "CST IV;Data;DEF;T-2;50;50\n",
        encoding="utf-8",
    )

    summary = reconcile("may 2025", budget_path=budget_path, engine=engine, teams=TEAMS)

    assert summary.period == "202505"
    assert summary.total_budgeted == 150
    assert summary.total_billed == 160
    assert summary.budget_variance == 10
    assert summary.team_summary["CST III"].variance == 20
    assert summary.team_summary["CST IV"].variance == -10
    assert not summary.diagnostics.has_misses
