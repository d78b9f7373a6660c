"""Exception hierarchy shared by the graph core, codecs and collaborator clients."""

from __future__ import annotations


class HealthSutraError(Exception):
    """Base class for all healthsutra errors."""


class GraphValidationError(HealthSutraError, ValueError):
    """A node or link failed validation; the graph was not changed."""


class ImportFormatError(HealthSutraError, ValueError):
    """An interchange file could not be imported as a whole."""


class ConfigError(HealthSutraError, ValueError):
    """Configuration file or environment value is invalid."""


class CollaboratorError(HealthSutraError):
    """A call to an external service failed (network error or non-2xx status)."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class CollaboratorUnavailable(CollaboratorError):
    """The external service answered 503; callers fall back to local mode."""

    def __init__(self, message: str = "Service unavailable") -> None:
        super().__init__(message, status=503)
