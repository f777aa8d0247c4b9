"""
Exception hierarchy for the sharing backend.

Every error raised by the services inherits from SharingError so the API layer
can map them onto HTTP status codes in one place.
"""

from typing import Any, Optional


class SharingError(Exception):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class NotFoundError(SharingError):
    """A referenced row is absent or soft-deleted."""


class ValidationError(SharingError):
    """The request is well formed but not acceptable."""


class ConflictError(SharingError):
    """A uniqueness rule would be broken."""


class InvalidStateTransitionError(SharingError):
    pass


class StoreError(SharingError):
    """The relational store rejected or failed a unit of work."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        details = {"cause": type(cause).__name__} if cause is not None else None
        super().__init__(message, details)
        self.cause = cause
