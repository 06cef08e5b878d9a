"""
Employee identity parsing.

The database stores employees as 'THN - Thomas Nissen' (surrounding spaces
vary, the spaces around the hyphen are optional). The budget file only
carries the initials, so initials are the join key.
"""
import re

from pydantic import BaseModel, ConfigDict

from budgetrec.errors import MalformedEmployeeError

_INITIALS_RE = re.compile(r"^[A-Z]{2,4}$")


class EmployeeIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    initials: str
    full_name: str


def _split_raw(raw: str) -> tuple[str, str]:
    if not isinstance(raw, str) or not raw.strip():
        raise MalformedEmployeeError("Invalid employee name: must be a non-empty string")

    head, sep, tail = raw.strip().partition("-")
    if not sep:
        raise MalformedEmployeeError(f"Invalid employee name format: missing hyphen in {raw!r}")

    initials, full_name = head.strip(), tail.strip()
    if not initials:
        raise MalformedEmployeeError(f"Invalid employee name format: no initials found in {raw!r}")
    if not full_name:
        raise MalformedEmployeeError(f"Invalid employee name format: no full name found in {raw!r}")
    return initials, full_name


def initials_for_lookup(initials: str) -> str:
    """Canonical join key: trimmed, upper-cased."""
    return initials.strip().upper()


def display_full_name(full_name: str) -> str:
    return " ".join(word.capitalize() for word in full_name.split())


def employee_identity_from_raw(raw: str) -> EmployeeIdentity:
    """'thn - thomas nissen' -> EmployeeIdentity(initials='THN', full_name='Thomas Nissen')."""
    initials, full_name = _split_raw(raw)
    return EmployeeIdentity(
        initials=initials_for_lookup(initials),
        full_name=display_full_name(full_name),
    )


def is_valid_raw_employee(raw: str) -> bool:
    try:
        _split_raw(raw)
        return True
    except MalformedEmployeeError:
        return False


def is_valid_initials(initials: str) -> bool:
    """2-4 uppercase letters, nothing else."""
    if not isinstance(initials, str):
        return False
    return bool(_INITIALS_RE.match(initials.strip()))
