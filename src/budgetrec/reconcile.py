"""
Budget vs. billed reconciliation.

Joins the period's budget records to the billed-hours rows by employee
initials and aggregates per employee, per team and overall.

Rules:
- Employees present in only one source are left out of the analysis and
  reported in ``ExecutiveSummary.diagnostics``.
- The team filter narrows the budget side only. The actuals query is scoped
  to the recognized team universe, which is also enforced by the join.
- Every ratio with a zero denominator is 0.
"""
import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from sqlalchemy.engine import Engine

from budgetrec.config import settings
from budgetrec.ingest.actuals import fetch_billed_hours
from budgetrec.ingest.budget import load_budget_for_period
from budgetrec.models.records import (
    ActualsRecord,
    BudgetRecord,
    DuplicateBudgetRow,
    EmployeeAnalysis,
    ExecutiveSummary,
    JoinDiagnostics,
    TeamSummary,
    UnmatchedEmployee,
)
from budgetrec.normalize.employee import employee_identity_from_raw
from budgetrec.normalize.period import period_to_code
from budgetrec.normalize.team import normalize_team_filter, team_display_to_storage, team_storage_to_display
from budgetrec.logging import logger


def percentage(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator * 100


def index_budget(budget: Sequence[BudgetRecord]) -> Tuple[Dict[str, BudgetRecord], List[DuplicateBudgetRow]]:
    """
    Budget keyed by canonical initials.

    The first row per initials is the one joined. Later rows with the same
    initials are returned as duplicates and never added to the budget.
    """
    index: Dict[str, BudgetRecord] = {}
    duplicates: List[DuplicateBudgetRow] = []
    for record in budget:
        if record.employee not in index:
            index[record.employee] = record
            continue
        logger.warning(
            f"Ignoring budget row {record.task_id!r} for {record.employee}: "
            f"row {index[record.employee].task_id!r} is already used"
        )
        duplicates.append(DuplicateBudgetRow(
            initials=record.employee,
            team=record.team,
            task_id=record.task_id,
            hours=record.total_hours,
        ))
    return index, duplicates


def summarize_teams(analysis: Sequence[EmployeeAnalysis]) -> Dict[str, TeamSummary]:
    """Running sums per display-form team, in first-encountered order."""
    sums: Dict[str, dict] = {}
    for employee in analysis:
        team = sums.setdefault(employee.team, {"budgeted": 0.0, "billed": 0.0, "variance": 0.0, "employee_count": 0})
        team["budgeted"] += employee.budgeted_hours
        team["billed"] += employee.billed_hours
        team["variance"] += employee.variance
        team["employee_count"] += 1
    return {name: TeamSummary(**values) for name, values in sums.items()}


def reconcile_records(
    period_code: str,
    actuals: Sequence[ActualsRecord],
    budget: Sequence[BudgetRecord],
    teams: Optional[Sequence[str]] = None,
) -> ExecutiveSummary:
    """
    Join already-fetched sources into an ExecutiveSummary.

    Raises MalformedEmployeeError / MalformedTeamError when an actuals row
    carries an identifier that can't be normalized.
    """
    universe = set(teams) if teams is not None else None
    budget_index, duplicate_budget = index_budget(budget)

    analysis: List[EmployeeAnalysis] = []
    unmatched_actuals: List[UnmatchedEmployee] = []
    matched = set()

    for row in actuals:
        if universe is not None and row.team_storage_id not in universe:
            logger.warning(
                f"Skipping {row.employee_full_name_raw!r}: team {row.team_storage_id} is not a recognized team"
            )
            continue

        identity = employee_identity_from_raw(row.employee_full_name_raw)
        team = team_storage_to_display(row.team_storage_id)

        budget_entry = budget_index.get(identity.initials)
        if budget_entry is None:
            logger.warning(f"No budget data found for employee: {identity.initials} ({identity.full_name})")
            unmatched_actuals.append(UnmatchedEmployee(
                initials=identity.initials,
                full_name=identity.full_name,
                team=team,
                hours=row.billable_hours,
            ))
            continue

        matched.add(identity.initials)
        budgeted = float(budget_entry.total_hours)
        billed = float(row.billable_hours)
        variance = billed - budgeted
        analysis.append(EmployeeAnalysis(
            initials=identity.initials,
            full_name=identity.full_name,
            team=team,
            budgeted_hours=budgeted,
            billed_hours=billed,
            variance=variance,
            variance_percentage=percentage(variance, budgeted),
        ))

    unmatched_budget = [
        UnmatchedEmployee(initials=initials, team=record.team, hours=record.total_hours)
        for initials, record in budget_index.items()
        if initials not in matched
    ]
    for miss in unmatched_budget:
        logger.warning(f"No billed hours found for budgeted employee: {miss.initials} ({miss.team})")

    total_budgeted = sum(e.budgeted_hours for e in analysis)
    total_billed = sum(e.billed_hours for e in analysis)

    summary = ExecutiveSummary(
        period=period_code,
        total_budgeted=total_budgeted,
        total_billed=total_billed,
        budget_variance=total_billed - total_budgeted,
        utilization_rate=percentage(total_billed, total_budgeted),
        employee_analysis=analysis,
        team_summary=summarize_teams(analysis),
        diagnostics=JoinDiagnostics(
            unmatched_actuals=unmatched_actuals,
            unmatched_budget=unmatched_budget,
            duplicate_budget=duplicate_budget,
        ),
    )
    logger.info(
        f"Reconciled {period_code}: {len(analysis)} employees, {len(summary.team_summary)} teams, "
        f"{len(unmatched_actuals)} unmatched billed, {len(unmatched_budget)} unmatched budgeted"
    )
    return summary


async def reconcile_async(
    period: str,
    team: Optional[str] = None,
    *,
    budget_path: Optional[Union[str, Path]] = None,
    engine: Optional[Engine] = None,
    teams: Optional[Sequence[str]] = None,
    strict_period: Optional[bool] = None,
) -> ExecutiveSummary:
    """
    Run the pipeline for a free-text period and optional team.

    Both sources are read concurrently in worker threads; the join starts
    only after both succeed. Any source failure propagates unchanged.
    """
    strict = settings.PERIOD_STRICT if strict_period is None else strict_period
    period_code = period_to_code(period, strict=strict)
    universe = list(teams) if teams is not None else list(settings.RECOGNIZED_TEAMS)

    team_filter = normalize_team_filter(team) if team else None
    if team_filter and team_display_to_storage(team_filter) not in universe:
        logger.warning(f"Team filter {team_filter!r} is not one of the recognized teams {universe}")

    logger.info(f"Reconciling period {period_code} for {team_filter or 'all teams'}")
    actuals, budget = await asyncio.gather(
        asyncio.to_thread(fetch_billed_hours, period_code, universe, engine),
        asyncio.to_thread(load_budget_for_period, period_code, team_filter, budget_path),
    )
    return reconcile_records(period_code, actuals, budget, universe)


def reconcile(period: str, team: Optional[str] = None, **kwargs) -> ExecutiveSummary:
    """Synchronous entry point. Use ``reconcile_async`` from inside a running event loop."""
    return asyncio.run(reconcile_async(period, team, **kwargs))
