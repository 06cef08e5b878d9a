"""
Team name mapping between storage form ('CST3') and display form ('CST III').

Both directions raise MalformedTeamError outside the supported 1-20 range.
"""
import re

from budgetrec.errors import MalformedTeamError

MAX_TEAM_NUMBER = 20

ARABIC_TO_ROMAN = {
    1: "I", 2: "II", 3: "III", 4: "IV", 5: "V",
    6: "VI", 7: "VII", 8: "VIII", 9: "IX", 10: "X",
    11: "XI", 12: "XII", 13: "XIII", 14: "XIV", 15: "XV",
    16: "XVI", 17: "XVII", 18: "XVIII", 19: "XIX", 20: "XX",
}
ROMAN_TO_ARABIC = {roman: arabic for arabic, roman in ARABIC_TO_ROMAN.items()}

_STORAGE_RE = re.compile(r"^([A-Z]+)(\d+)$")


def to_roman(number: int) -> str:
    if isinstance(number, bool) or not isinstance(number, int) or number not in ARABIC_TO_ROMAN:
        raise MalformedTeamError(
            f"Arabic number {number!r} is not supported. Must be an integer between 1 and {MAX_TEAM_NUMBER}."
        )
    return ARABIC_TO_ROMAN[number]


def from_roman(roman: str) -> int:
    key = roman.strip().upper()
    if key not in ROMAN_TO_ARABIC:
        raise MalformedTeamError(f"Roman numeral {roman!r} is not supported.")
    return ROMAN_TO_ARABIC[key]


def team_display_to_storage(display: str) -> str:
    """'CST III' -> 'CST3'."""
    if not isinstance(display, str) or not display.strip():
        raise MalformedTeamError("Team name must be a non-empty string")

    parts = display.split()
    if len(parts) != 2:
        raise MalformedTeamError(
            f"Invalid team name format: {display!r}. Expected format: 'PREFIX ROMAN_NUMERAL'"
        )

    prefix, roman = parts
    try:
        number = from_roman(roman)
    except MalformedTeamError as e:
        raise MalformedTeamError(f"Invalid team name {display!r}: {e}") from e
    return f"{prefix}{number}"


def team_storage_to_display(storage: str) -> str:
    """'CST3' -> 'CST III'."""
    if not isinstance(storage, str) or not storage.strip():
        raise MalformedTeamError("Team name must be a non-empty string")

    match = _STORAGE_RE.match(storage.strip())
    if not match:
        raise MalformedTeamError(
            f"Invalid team name format: {storage!r}. Expected format: 'PREFIX{{NUMBER}}'"
        )

    prefix, digits = match.groups()
    try:
        roman = to_roman(int(digits))
    except MalformedTeamError as e:
        raise MalformedTeamError(f"Invalid team name {storage!r}: {e}") from e
    return f"{prefix} {roman}"


def normalize_team_filter(team: str) -> str:
    """Accept a team in either form (any case) and return its display form."""
    if not isinstance(team, str) or not team.strip():
        raise MalformedTeamError("Team name must be a non-empty string")

    team = team.strip().upper()
    if _STORAGE_RE.match(team):
        return team_storage_to_display(team)
    # Round trip validates and collapses internal whitespace
    return team_storage_to_display(team_display_to_storage(team))


def is_valid_storage_team(team: str) -> bool:
    try:
        team_storage_to_display(team)
        return True
    except MalformedTeamError:
        return False


def is_valid_display_team(team: str) -> bool:
    try:
        team_display_to_storage(team)
        return True
    except MalformedTeamError:
        return False
