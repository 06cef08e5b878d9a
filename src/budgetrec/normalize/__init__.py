from budgetrec.normalize.period import PeriodParse, parse_period, period_to_code, current_period_code, period_label
from budgetrec.normalize.team import (
    team_display_to_storage,
    team_storage_to_display,
    normalize_team_filter,
    to_roman,
    from_roman,
    is_valid_storage_team,
    is_valid_display_team,
)
from budgetrec.normalize.employee import (
    EmployeeIdentity,
    employee_identity_from_raw,
    initials_for_lookup,
    is_valid_raw_employee,
    is_valid_initials,
)

__all__ = [
    "PeriodParse", "parse_period", "period_to_code", "current_period_code", "period_label",
    "team_display_to_storage", "team_storage_to_display", "normalize_team_filter",
    "to_roman", "from_roman", "is_valid_storage_team", "is_valid_display_team",
    "EmployeeIdentity", "employee_identity_from_raw", "initials_for_lookup",
    "is_valid_raw_employee", "is_valid_initials",
]
