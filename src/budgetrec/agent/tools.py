"""
Tools exposed to the budget assistant.

Each handler takes keyword arguments from the model and returns a
JSON-serializable dict. Pipeline failures come back as an error payload
(``"error": true``) with no totals, so the model can never read a failed
analysis as a quiet month.
"""
import time
from typing import Optional

from budgetrec.config import settings
from budgetrec.errors import BudgetRecError
from budgetrec.ingest.budget import load_budget, team_totals
from budgetrec.insights import Thresholds, build_insights, team_variance_percentage
from budgetrec.normalize.team import normalize_team_filter
from budgetrec.reconcile import percentage, reconcile
from budgetrec.logging import logger, new_request_id
from budgetrec.agent.registry import register_tool

ALL_TEAMS = "All Teams"


def error_payload(exc: Exception, **context) -> dict:
    return {
        **context,
        "error": True,
        "errorType": type(exc).__name__,
        "errorMessage": str(exc),
    }


# ---------------------------------------------------------------------------
# executive summary
# ---------------------------------------------------------------------------
def _get_executive_summary(*, period: str, team: Optional[str] = None) -> dict:
    """Budget vs. billed for a period, with recommendations and alerts."""
    new_request_id()
    t0 = time.monotonic()
    logger.info(f"Executive summary requested - period: {period}, team: {team or ALL_TEAMS}")

    try:
        summary = reconcile(period, team)
    except BudgetRecError as e:
        logger.error(f"Executive summary failed after {int((time.monotonic() - t0) * 1000)}ms: {e}")
        return error_payload(e, period=period, team=team or ALL_TEAMS)

    insights = build_insights(summary)
    logger.info(
        f"Executive summary done in {int((time.monotonic() - t0) * 1000)}ms - "
        f"{len(summary.team_summary)} teams, {len(summary.employee_analysis)} employees"
    )
    return {
        "error": False,
        "requestedPeriod": period,
        "team": team or ALL_TEAMS,
        **summary.to_dict(),
        **insights.to_dict(),
    }


register_tool(
    name="get_executive_summary",
    description=(
        "Executive summary of budget performance for one month: total budgeted vs billed hours, "
        "budget variance, utilization rate, per-team and per-employee breakdown, recommendations "
        "and alerts. Use for overviews, budget status, variance or utilization questions."
    ),
    parameters={
        "type": "object",
        "properties": {
            "period": {"type": "string", "description": "Month to analyse, e.g. 'May 2025' or '202505'."},
            "team": {"type": "string", "description": "Optional team filter, e.g. 'CST III'. Omit for all teams."},
        },
        "required": ["period"],
    },
    handler=_get_executive_summary,
)


# ---------------------------------------------------------------------------
# team performance
# ---------------------------------------------------------------------------
def _trend(variance_pct: float, on_track_pct: float) -> str:
    if variance_pct > on_track_pct:
        return "over_budget"
    if variance_pct < -on_track_pct:
        return "under_budget"
    return "on_track"


def _get_team_performance(*, team_name: str, period: str, include_individuals: bool = True) -> dict:
    """Metrics for one team, optionally with each member's numbers."""
    new_request_id()
    try:
        team = normalize_team_filter(team_name)
        summary = reconcile(period, team)
    except BudgetRecError as e:
        logger.error(f"Team performance failed for {team_name!r}: {e}")
        return error_payload(e, teamName=team_name, period=period)

    result = {"error": False, "teamName": team, "period": summary.period}
    team_summary = summary.team_summary.get(team)
    if team_summary is None:
        result.update({
            "found": False,
            "message": f"No employees of {team} matched between budget and billed hours for {summary.period}",
            "diagnostics": summary.diagnostics.to_dict(),
        })
        return result

    variance_pct = team_variance_percentage(team_summary)
    members = [e for e in summary.employee_analysis if e.team == team]
    result.update({
        "found": True,
        "teamMetrics": {
            **team_summary.to_dict(),
            "variancePercentage": variance_pct,
            "utilizationRate": percentage(team_summary.billed, team_summary.budgeted),
        },
        "trend": _trend(variance_pct, Thresholds.from_settings().on_track_pct),
        "individualPerformance": [e.to_dict() for e in members] if include_individuals else [],
    })
    return result


register_tool(
    name="get_team_performance",
    description="Budget performance of one team for one month, with an optional per-employee breakdown.",
    parameters={
        "type": "object",
        "properties": {
            "team_name": {"type": "string", "description": "Team to analyse, e.g. 'CST III' or 'CST3'."},
            "period": {"type": "string", "description": "Month to analyse, e.g. 'May 2025' or '202505'."},
            "include_individuals": {
                "type": "boolean",
                "description": "Include each employee's budgeted/billed hours (default true).",
            },
        },
        "required": ["team_name", "period"],
    },
    handler=_get_team_performance,
)


# ---------------------------------------------------------------------------
# budget teams
# ---------------------------------------------------------------------------
def _list_budget_teams() -> dict:
    """Full-year budgeted hours per team from the plan-of-record."""
    try:
        totals = team_totals(load_budget())
    except BudgetRecError as e:
        return error_payload(e)
    return {
        "error": False,
        "recognizedTeams": list(settings.RECOGNIZED_TEAMS),
        "teams": [{"team": team, "budgetedHours": hours} for team, hours in totals.items()],
    }


register_tool(
    name="list_budget_teams",
    description="List the teams in the budget plan with their full-year budgeted hours.",
    parameters={"type": "object", "properties": {}, "required": []},
    handler=_list_budget_teams,
)
