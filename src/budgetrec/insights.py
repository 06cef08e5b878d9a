"""
Rule-based recommendations and alerts derived from an ExecutiveSummary.

Thresholds (percent, magnitude of variance vs. budget):
- overall  > SUMMARY_VARIANCE_ALERT_PCT  -> summary recommendation + alert
- team     > TEAM_VARIANCE_ALERT_PCT     -> team recommendation
- employee > EMPLOYEE_VARIANCE_ALERT_PCT -> one "review N employees" recommendation
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import Field

from budgetrec.config import Settings, settings
from budgetrec.models.base import RecordModel
from budgetrec.models.records import ExecutiveSummary, TeamSummary
from budgetrec.reconcile import percentage


class AlertType(str, Enum):
    WARNING = "warning"
    INFO = "info"
    ERROR = "error"


class Alert(RecordModel):
    type: AlertType
    message: str


class KeyMetrics(RecordModel):
    budgeted_hours: float
    billed_hours: float
    employees_on_track: int
    employees_over_budget: int
    employees_under_budget: int


class Insights(RecordModel):
    variance_percentage: float
    key_metrics: KeyMetrics
    recommendations: List[str] = Field(default_factory=list)
    alerts: List[Alert] = Field(default_factory=list)


@dataclass(frozen=True)
class Thresholds:
    summary_pct: float = 10.0
    team_pct: float = 15.0
    employee_pct: float = 20.0
    on_track_pct: float = 5.0

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None) -> "Thresholds":
        cfg = cfg or settings
        return cls(
            summary_pct=cfg.SUMMARY_VARIANCE_ALERT_PCT,
            team_pct=cfg.TEAM_VARIANCE_ALERT_PCT,
            employee_pct=cfg.EMPLOYEE_VARIANCE_ALERT_PCT,
            on_track_pct=cfg.ON_TRACK_VARIANCE_PCT,
        )


def team_variance_percentage(team: TeamSummary) -> float:
    return percentage(team.variance, team.budgeted)


def build_insights(summary: ExecutiveSummary, thresholds: Optional[Thresholds] = None) -> Insights:
    thresholds = thresholds or Thresholds.from_settings()
    recommendations: List[str] = []
    alerts: List[Alert] = []

    overall_pct = percentage(summary.budget_variance, summary.total_budgeted)
    if abs(overall_pct) > thresholds.summary_pct:
        if overall_pct > 0:
            recommendations.append(
                f"Total hours are {overall_pct:.1f}% over budget - review resource allocation and project scope"
            )
            alerts.append(Alert(type=AlertType.WARNING, message=f"Trending {overall_pct:.1f}% over budget this period"))
        else:
            recommendations.append(
                f"Total hours are {abs(overall_pct):.1f}% under budget - "
                "consider increasing utilization or reallocating resources"
            )
            alerts.append(Alert(type=AlertType.INFO, message=f"{abs(overall_pct):.1f}% unutilized budget capacity"))

    for team_name, team in summary.team_summary.items():
        team_pct = team_variance_percentage(team)
        if abs(team_pct) <= thresholds.team_pct:
            continue
        if team_pct > 0:
            recommendations.append(
                f"{team_name} team is {team_pct:.1f}% over budget - review workload and project priorities"
            )
        else:
            recommendations.append(
                f"{team_name} team is {abs(team_pct):.1f}% under budget - consider additional project assignments"
            )

    high_variance = [e for e in summary.employee_analysis if abs(e.variance_percentage) > thresholds.employee_pct]
    if high_variance:
        recommendations.append(
            f"Review individual performance for {len(high_variance)} employees "
            f"with >{thresholds.employee_pct:g}% variance from budget"
        )

    key_metrics = KeyMetrics(
        budgeted_hours=summary.total_budgeted,
        billed_hours=summary.total_billed,
        employees_on_track=sum(1 for e in summary.employee_analysis if abs(e.variance_percentage) <= thresholds.on_track_pct),
        employees_over_budget=sum(1 for e in summary.employee_analysis if e.variance > 0),
        employees_under_budget=sum(1 for e in summary.employee_analysis if e.variance < 0),
    )

    return Insights(
        variance_percentage=overall_pct,
        key_metrics=key_metrics,
        recommendations=recommendations,
        alerts=alerts,
    )
