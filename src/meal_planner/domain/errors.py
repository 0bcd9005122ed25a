"""Error taxonomy shared by the planner services."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Category of a planner failure."""

    VALIDATION = "validation"
    TRANSIENT_UPSTREAM = "transient_upstream"
    PERMANENT_UPSTREAM = "permanent_upstream"
    PERSISTENCE = "persistence"
    AUTHENTICATION = "authentication"
    CONFIGURATION = "configuration"


class PlannerError(Exception):
    """Base error carrying a kind and a human-readable message."""

    kind: ErrorKind = ErrorKind.PERMANENT_UPSTREAM

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputValidationError(PlannerError):
    """Input rejected before any network call."""

    kind = ErrorKind.VALIDATION


class OperationInProgressError(InputValidationError):
    """Another AI operation is still running."""


class QuotaExceededError(PlannerError):
    """AI service kept rejecting calls for rate or quota reasons."""

    kind = ErrorKind.TRANSIENT_UPSTREAM


class UpstreamError(PlannerError):
    """AI service failed or returned an unusable document."""

    kind = ErrorKind.PERMANENT_UPSTREAM


class PersistenceError(PlannerError):
    """Account store read or write failed."""

    kind = ErrorKind.PERSISTENCE


class AuthenticationError(PlannerError):
    """Sign-in, sign-up or session failure."""

    kind = ErrorKind.AUTHENTICATION


class ConfigurationError(PlannerError):
    """A collaborator is unusable because its settings are missing."""

    kind = ErrorKind.CONFIGURATION
