"""
Billed-hours reader for the reporting database.

One call = one connection = one query. The connection is closed on every
path; failures surface as ActualsConnectionError / ActualsQueryError (or
ActualsConfigError when no engine can be built). Nothing is retried here.
"""
from typing import List, Optional, Sequence
from sqlalchemy import case, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Select

from budgetrec.config import settings
from budgetrec.db import create_actuals_engine
from budgetrec.errors import ActualsConfigError, ActualsConnectionError, ActualsQueryError
from budgetrec.models.actuals import Employee, TimeEntry
from budgetrec.models.records import ActualsRecord
from budgetrec.logging import logger


def billed_hours_query(period_code: str, teams: Sequence[str]) -> Select:
    """
    Billable hours per employee and team for one period.

    Only the newest revision of each time entry counts (ROW_NUMBER over
    DW_ID, newest DW_Batch_Created first). Entries must have positive hours,
    belong to one of ``teams`` and have a date starting with the period code.
    """
    latest = (
        select(
            Employee.employee_name.label("employee_name"),
            Employee.team_id.label("team_id"),
            TimeEntry.hours.label("hours"),
            TimeEntry.is_billable.label("is_billable"),
            TimeEntry.entry_date.label("entry_date"),
            func.row_number().over(
                partition_by=TimeEntry.entry_id,
                order_by=TimeEntry.batch_created.desc(),
            ).label("row_num"),
        )
        .select_from(TimeEntry)
        .join(Employee, TimeEntry.employee_key == Employee.employee_key, isouter=True)
        .where(
            TimeEntry.hours > 0,
            Employee.team_id.in_(list(teams)),
        )
        .cte("latest_entries")
    )

    billable = func.sum(case((latest.c.is_billable == 1, latest.c.hours), else_=0))
    return (
        select(
            latest.c.employee_name,
            latest.c.team_id,
            billable.label("billable_hours"),
        )
        .where(
            latest.c.row_num == 1,
            latest.c.entry_date.like(f"{period_code}%"),
        )
        .group_by(latest.c.employee_name, latest.c.team_id)
        .order_by(latest.c.team_id, latest.c.employee_name)
    )


def fetch_billed_hours(
    period_code: str,
    teams: Optional[Sequence[str]] = None,
    engine: Optional[Engine] = None,
) -> List[ActualsRecord]:
    """Fetch ActualsRecords for a canonical period code."""
    teams = list(teams if teams is not None else settings.RECOGNIZED_TEAMS)
    if not teams:
        raise ActualsConfigError("No recognized teams configured for the actuals query")

    engine = engine or create_actuals_engine()
    stmt = billed_hours_query(period_code, teams)

    logger.info(f"Fetching billed hours for {period_code} (teams: {', '.join(teams)})")
    try:
        conn = engine.connect()
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        raise ActualsConnectionError(f"Database connection failed: {e}") from e

    with conn:
        try:
            rows = conn.execute(stmt).all()
        except SQLAlchemyError as e:
            logger.error(f"Billed hours query failed: {e}")
            raise ActualsQueryError(f"Query execution failed: {e}") from e

    records = [
        ActualsRecord(
            employee_full_name_raw=row.employee_name,
            team_storage_id=row.team_id,
            billable_hours=float(row.billable_hours or 0),
        )
        for row in rows
    ]
    logger.info(f"Query returned {len(records)} employee rows")
    return records


def check_connection(engine: Optional[Engine] = None) -> bool:
    """Run ``SELECT 1``. Returns False instead of raising."""
    try:
        engine = engine or create_actuals_engine()
        with engine.connect() as conn:
            ok = conn.execute(text("SELECT 1 AS test")).scalar() == 1
    except (SQLAlchemyError, ActualsConfigError) as e:
        logger.error(f"Database connection test failed: {e}")
        return False

    if ok:
        logger.info("Database connection test passed")
    else:
        logger.error("Database connection test failed - unexpected result")
    return ok
