"""
Typed failures raised by the reconciliation pipeline.

Malformed identifiers and unavailable sources propagate to the caller.
Join misses are not errors; they are reported in the summary diagnostics.
"""


class BudgetRecError(Exception):
    """Base class for every failure the pipeline reports."""


class MalformedIdentifierError(BudgetRecError, ValueError):
    """A period, team or employee string could not be normalized."""


class MalformedPeriodError(MalformedIdentifierError):
    pass


class MalformedTeamError(MalformedIdentifierError):
    pass


class MalformedEmployeeError(MalformedIdentifierError):
    pass


class SourceUnavailableError(BudgetRecError):
    """A data source could not be read. No partial results are produced."""


class BudgetSourceError(SourceUnavailableError):
    """Budget file missing, unreadable or structurally inconsistent."""


class ActualsSourceError(SourceUnavailableError):
    pass


class ActualsConfigError(ActualsSourceError):
    """Database settings missing or invalid."""


class ActualsConnectionError(ActualsSourceError):
    pass


class ActualsQueryError(ActualsSourceError):
    pass
