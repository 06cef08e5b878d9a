"""
Calendar period parsing.

The canonical form is a 6-digit ``YYYYMM`` code. ``parse_period`` never
raises; it returns a ``PeriodParse`` and leaves the fallback decision to
``period_to_code``.
"""
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from budgetrec.errors import MalformedPeriodError
from budgetrec.logging import logger

MONTHS = {
    "january": "01", "february": "02", "march": "03", "april": "04",
    "may": "05", "june": "06", "july": "07", "august": "08",
    "september": "09", "october": "10", "november": "11", "december": "12",
}

_CODE_RE = re.compile(r"^\d{6}$")
_YEAR_RE = re.compile(r"^\d{4}$")


@dataclass(frozen=True)
class PeriodParse:
    """Outcome of parsing a period string: either ``code`` or ``error`` is set."""
    code: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.code is not None


def parse_period(text: str) -> PeriodParse:
    """Parse ``"202505"`` or ``"May 2025"`` (any case, any spacing)."""
    if not isinstance(text, str) or not text.strip():
        return PeriodParse(error="period is empty")

    normalized = text.strip()
    if _CODE_RE.match(normalized):
        return PeriodParse(code=normalized)

    parts = normalized.lower().split()
    if len(parts) != 2:
        return PeriodParse(error=f"expected 'Month YYYY' or 'YYYYMM', got {text!r}")

    month_name, year = parts
    month = MONTHS.get(month_name)
    if month is None:
        return PeriodParse(error=f"unknown month {month_name!r} in {text!r}")
    if not _YEAR_RE.match(year):
        return PeriodParse(error=f"year must have 4 digits in {text!r}")

    return PeriodParse(code=f"{year}{month}")


def current_period_code(today: Optional[date] = None) -> str:
    today = today or date.today()
    return today.strftime("%Y%m")


def period_to_code(text: str, strict: bool = False, today: Optional[date] = None) -> str:
    """
    Normalize a period to its canonical code.

    Unparseable input raises ``MalformedPeriodError`` when ``strict``;
    otherwise it logs a warning and resolves to the current month.
    """
    result = parse_period(text)
    if result.ok:
        return result.code

    if strict:
        raise MalformedPeriodError(f"Invalid period: {result.error}")

    fallback = current_period_code(today)
    logger.warning(f"Could not parse period {text!r} ({result.error}), defaulting to current month: {fallback}")
    return fallback


def period_label(code: str) -> str:
    """``"202505"`` -> ``"May 2025"``. Returns the code unchanged if it isn't a valid month."""
    month_names = {v: k.capitalize() for k, v in MONTHS.items()}
    name = month_names.get(code[4:]) if _CODE_RE.match(code or "") else None
    if name is None:
        return code
    return f"{name} {code[:4]}"
