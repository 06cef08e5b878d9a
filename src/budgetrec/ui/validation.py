from typing import List
from pathlib import Path
from budgetrec.config import settings
from budgetrec.db import create_actuals_engine
from budgetrec.errors import BudgetSourceError, ActualsConfigError
from budgetrec.ingest.actuals import check_connection
from budgetrec.ingest.budget import read_budget_frame, is_month_column
from budgetrec.normalize.team import is_valid_storage_team
from budgetrec.logging import logger

def validate_budget_file() -> List[str]:
    """Validate that the budget file exists, parses and has monthly columns."""
    errors = []
    path = Path(settings.BUDGET_CSV_PATH)

    try:
        df = read_budget_frame(path)
    except BudgetSourceError as e:
        errors.append(str(e))
        return errors

    if not any(is_month_column(c) for c in df.columns):
        errors.append(f"Budget file {path} has no monthly columns (e.g. 202501)")

    return errors

def validate_db_config() -> List[str]:
    """Validate that an actuals engine can be built from settings."""
    errors = []
    try:
        create_actuals_engine()
    except ActualsConfigError as e:
        errors.append(str(e))

    if not settings.RECOGNIZED_TEAMS:
        errors.append("RECOGNIZED_TEAMS is empty; the actuals query would return nothing")

    invalid = [t for t in settings.RECOGNIZED_TEAMS if not is_valid_storage_team(t)]
    if invalid:
        errors.append(f"RECOGNIZED_TEAMS contains invalid team ids: {', '.join(invalid)} (expected e.g. CST3)")

    return errors

def validate_db_connection() -> List[str]:
    """Validate database connection and basic query capability."""
    errors = []
    if not check_connection():
        errors.append("Database connection failed (see logs for details)")
    return errors

def run_all_checks() -> List[str]:
    """Run all validation checks. The connection check only runs once the configuration is valid."""
    errors = []
    errors.extend(validate_budget_file())
    config_errors = validate_db_config()
    errors.extend(config_errors)
    if not config_errors:
        errors.extend(validate_db_connection())
    if errors:
        logger.warning(f"Pre-flight checks found {len(errors)} problem(s)")
    return errors
