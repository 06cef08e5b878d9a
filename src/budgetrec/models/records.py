from typing import Dict, List

from pydantic import Field, NonNegativeInt

from budgetrec.models.base import RecordModel


class BudgetRecord(RecordModel):
    """One plan-of-record row (team / employee / task)."""
    team: str  # display form, as stored in the budget file
    description: str
    employee: str  # initials
    task_id: str
    monthly_hours: Dict[str, NonNegativeInt] = Field(default_factory=dict)
    total_hours: int = Field(0, ge=0)


class ActualsRecord(RecordModel):
    """Billable hours for one employee/team in one period."""
    employee_full_name_raw: str
    team_storage_id: str
    billable_hours: float = Field(ge=0)


class EmployeeAnalysis(RecordModel):
    initials: str
    full_name: str
    team: str  # display form
    budgeted_hours: float
    billed_hours: float
    variance: float
    variance_percentage: float


class TeamSummary(RecordModel):
    budgeted: float = 0.0
    billed: float = 0.0
    variance: float = 0.0
    employee_count: int = 0


class UnmatchedEmployee(RecordModel):
    """A join miss: present in one source, absent from the other."""
    initials: str
    full_name: str = ""
    team: str = ""
    hours: float = 0.0


class DuplicateBudgetRow(RecordModel):
    """A budget row left out of the join because an earlier row has the same initials."""
    initials: str
    team: str
    task_id: str
    hours: int = 0


class JoinDiagnostics(RecordModel):
    unmatched_actuals: List[UnmatchedEmployee] = Field(default_factory=list)
    unmatched_budget: List[UnmatchedEmployee] = Field(default_factory=list)
    duplicate_budget: List[DuplicateBudgetRow] = Field(default_factory=list)

    @property
    def has_misses(self) -> bool:
        return bool(self.unmatched_actuals or self.unmatched_budget)


class ExecutiveSummary(RecordModel):
    period: str
    total_budgeted: float = 0.0
    total_billed: float = 0.0
    budget_variance: float = 0.0
    utilization_rate: float = 0.0
    employee_analysis: List[EmployeeAnalysis] = Field(default_factory=list)
    team_summary: Dict[str, TeamSummary] = Field(default_factory=dict)
    diagnostics: JoinDiagnostics = Field(default_factory=JoinDiagnostics)
