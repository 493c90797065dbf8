"""
Domain exceptions.

Each carries the HTTP status it maps to so the exception handler in
``voiceowl.main`` can turn it into a JSON response without a lookup table.
"""

from typing import Iterable


class WorkflowError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(WorkflowError):
    """Malformed input."""

    status_code = 400


class NotFoundError(WorkflowError):
    """Unknown record id."""

    status_code = 404


class InvalidTransitionError(WorkflowError):
    """Requested status is not reachable from the current one."""

    status_code = 400

    def __init__(self, current: str, requested: str, allowed: Iterable[str]) -> None:
        self.current = current
        self.requested = requested
        self.allowed = list(allowed)
        valid = ", ".join(self.allowed) if self.allowed else "none"
        super().__init__(
            f"Invalid transition from {current} to {requested}. Valid transitions: {valid}"
        )


class StoreError(WorkflowError):
    """The transcript store failed to read or write."""

    status_code = 500


class ProducerError(WorkflowError):
    """A transcription producer failed."""

    status_code = 500
