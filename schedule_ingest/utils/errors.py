"""
Custom Exception Classes
========================

Application-specific exceptions for the ingestion pipeline.

Fatal for a file: UnsupportedTypeError, ExtractionError, ScheduleExtractionError.
Retryable inside the schedule extractor: TransportError, ResponseValidationError.
Run-aborting: StorageError.
"""

from typing import Any


class ScheduleIngestError(Exception):
    """Base exception for the schedule ingestion pipeline."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnsupportedTypeError(ScheduleIngestError):
    """Raised when a declared content type has no extraction strategy."""

    def __init__(self, content_type: str, supported_types: list[str] | None = None) -> None:
        super().__init__(
            f"Unsupported file type: {content_type}",
            details={
                "content_type": content_type,
                "supported_types": supported_types or [],
            },
        )
        self.content_type = content_type


class ExtractionError(ScheduleIngestError):
    """
    Raised when a format strategy cannot turn a file into text.

    Parsing the same bytes again yields the same failure, so this is
    never retried.
    """

    def __init__(self, family: str, cause: BaseException | str) -> None:
        cause_text = str(cause) or type(cause).__name__
        super().__init__(
            f"{family} extraction failed: {cause_text}",
            details={"family": family, "cause": cause_text},
        )
        self.family = family
        self.cause = cause


class TransportError(ScheduleIngestError):
    """Raised when the remote completion call fails."""

    pass


class ResponseValidationError(ScheduleIngestError):
    """Raised when a completion response does not have the expected shape."""

    pass


class ScheduleExtractionError(ScheduleIngestError):
    """Raised when every schedule extraction attempt has failed."""

    def __init__(self, attempts: int, last_error: BaseException | None) -> None:
        reason = str(last_error) if last_error else "unknown error"
        super().__init__(
            f"Schedule extraction failed after {attempts} attempts: {reason}",
            details={
                "attempts": attempts,
                "last_error_type": type(last_error).__name__ if last_error else None,
            },
        )
        self.attempts = attempts
        self.last_error = last_error


class StorageError(ScheduleIngestError):
    """Raised when a repository write fails."""

    pass


class InvalidTransitionError(ScheduleIngestError):
    """Raised when a status change breaks the processing state machine."""

    pass


class ConfigurationError(ScheduleIngestError):
    """Raised when configuration is invalid."""

    pass
