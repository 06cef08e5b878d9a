from budgetrec.models.actuals import TimeEntry, Employee
from budgetrec.models.records import (
    BudgetRecord,
    ActualsRecord,
    EmployeeAnalysis,
    TeamSummary,
    UnmatchedEmployee,
    DuplicateBudgetRow,
    JoinDiagnostics,
    ExecutiveSummary,
)

__all__ = [
    "TimeEntry", "Employee",
    "BudgetRecord", "ActualsRecord",
    "EmployeeAnalysis", "TeamSummary",
    "UnmatchedEmployee", "DuplicateBudgetRow", "JoinDiagnostics",
    "ExecutiveSummary",
]
