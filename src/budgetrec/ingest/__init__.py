from budgetrec.ingest.budget import load_budget, load_budget_for_period, team_totals, records_for_employee
from budgetrec.ingest.actuals import fetch_billed_hours, check_connection

__all__ = [
    "load_budget",
    "load_budget_for_period",
    "team_totals",
    "records_for_employee",
    "fetch_billed_hours",
    "check_connection",
]
