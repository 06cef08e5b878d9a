"""
Budget plan-of-record reader.

File layout (semicolon separated, header row first):

    Team;Description;Employee;TaskID;202501;202502;...;202512
    CST III;Platform work;THN;T-100;120;110;...;95

Columns whose name starts with a 4-digit year are monthly hours. The file is
read from disk on every call; nothing is cached.
"""
import csv
import io
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd

from budgetrec.config import settings
from budgetrec.errors import BudgetSourceError
from budgetrec.models.records import BudgetRecord
from budgetrec.normalize.employee import initials_for_lookup
from budgetrec.logging import logger

DELIMITER = ";"
FIXED_COLUMNS = {
    "Team": "team",
    "Description": "description",
    "Employee": "employee",
    "TaskID": "task_id",
}
_MONTH_COLUMN_RE = re.compile(r"^\d{4}")
# Largest float that still casts to int64
_MAX_HOURS = float(np.iinfo(np.int64).max)

PathLike = Union[str, Path]


def is_month_column(name: str) -> bool:
    return bool(_MONTH_COLUMN_RE.match(name))


def _resolve_path(path: Optional[PathLike]) -> Path:
    return Path(path) if path is not None else Path(settings.BUDGET_CSV_PATH)


def _read_lines(file_path: Path) -> List[str]:
    """Non-blank lines with trailing carriage returns removed."""
    if not file_path.exists():
        raise BudgetSourceError(f"Budget file not found: {file_path}")
    try:
        text = file_path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise BudgetSourceError(f"Budget file unreadable: {file_path}: {e}") from e

    lines = [line.rstrip("\r") for line in text.split("\n")]
    return [line for line in lines if line.strip()]


def read_budget_frame(path: Optional[PathLike] = None) -> pd.DataFrame:
    """
    Load the budget file as a DataFrame of stripped strings.

    Every row must have exactly as many fields as the header; the file is
    rejected as a whole otherwise.
    """
    file_path = _resolve_path(path)
    lines = _read_lines(file_path)
    if not lines:
        raise BudgetSourceError(f"Budget file is empty: {file_path}")

    header = [h.strip() for h in lines[0].split(DELIMITER)]
    missing = [c for c in FIXED_COLUMNS if c not in header]
    if missing:
        raise BudgetSourceError(f"Budget file {file_path} is missing columns: {', '.join(missing)}")
    if len(set(header)) != len(header):
        raise BudgetSourceError(f"Budget file {file_path} has duplicate column names")

    for line_no, line in enumerate(lines[1:], start=2):
        field_count = len(line.split(DELIMITER))
        if field_count != len(header):
            raise BudgetSourceError(
                f"Budget file {file_path} line {line_no}: expected {len(header)} fields, found {field_count}"
            )

    try:
        df = pd.read_csv(
            io.StringIO("\n".join(lines)),
            sep=DELIMITER,
            dtype=str,
            keep_default_na=False,
            quoting=csv.QUOTE_NONE,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise BudgetSourceError(f"Error parsing budget file {file_path}: {e}") from e

    df.columns = header
    for column in header:
        df[column] = df[column].astype(str).str.strip()
    return df


def coerce_hours(values: pd.Series) -> pd.Series:
    """Blank, non-numeric, negative and out-of-range cells become 0; decimals are truncated."""
    numeric = pd.to_numeric(values, errors="coerce").astype(float)
    in_range = np.isfinite(numeric) & (numeric < _MAX_HOURS)
    return numeric.where(in_range, 0).clip(lower=0).astype("int64")


def parse_budget_frame(df: pd.DataFrame) -> List[BudgetRecord]:
    """Turn the raw frame into full-year BudgetRecords."""
    month_columns = [c for c in df.columns if is_month_column(c)]
    hours = pd.DataFrame({c: coerce_hours(df[c]) for c in month_columns}, index=df.index)

    records = []
    for idx, row in df.iterrows():
        monthly = {c: int(hours.at[idx, c]) for c in month_columns}
        records.append(BudgetRecord(
            team=row["Team"],
            description=row["Description"],
            employee=initials_for_lookup(row["Employee"]),
            task_id=row["TaskID"],
            monthly_hours=monthly,
            total_hours=sum(monthly.values()),
        ))
    return records


def load_budget(path: Optional[PathLike] = None) -> List[BudgetRecord]:
    """Read and parse the whole plan year."""
    records = parse_budget_frame(read_budget_frame(path))
    logger.info(f"Loaded {len(records)} budget records from {_resolve_path(path)}")
    return records


def select_period(records: List[BudgetRecord], period_code: str, team: Optional[str] = None) -> List[BudgetRecord]:
    """
    Scope records to one period.

    Records without the period's column are dropped, not zeroed. The team
    filter is an exact match on the display-form team stored in the file.
    ``total_hours`` becomes the period's hours; ``monthly_hours`` is kept whole.
    """
    scoped = []
    for record in records:
        if team and record.team != team:
            continue
        if period_code not in record.monthly_hours:
            continue
        scoped.append(record.model_copy(update={"total_hours": record.monthly_hours[period_code]}))
    return scoped


def load_budget_for_period(
    period_code: str,
    team: Optional[str] = None,
    path: Optional[PathLike] = None,
) -> List[BudgetRecord]:
    records = select_period(load_budget(path), period_code, team)
    logger.info(
        f"Budget for {period_code} ({team or 'all teams'}): {len(records)} records, "
        f"{sum(r.total_hours for r in records)} hours"
    )
    return records


def team_totals(records: List[BudgetRecord]) -> Dict[str, int]:
    """Budgeted hours per team, in first-seen order."""
    totals: Dict[str, int] = {}
    for record in records:
        totals[record.team] = totals.get(record.team, 0) + record.total_hours
    return totals


def records_for_employee(records: List[BudgetRecord], initials: str) -> List[BudgetRecord]:
    key = initials_for_lookup(initials)
    return [r for r in records if r.employee == key]
