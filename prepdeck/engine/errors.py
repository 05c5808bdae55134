"""
Error taxonomy for the assessment engine.

Only ``BankUnavailable`` and ``HistoryCorrupted`` ever reach callers of the
controller. Session errors are absorbed at the state machine boundary.
"""

from __future__ import annotations


class PrepDeckError(Exception):
    """Base class for all engine errors."""


class BankUnavailable(PrepDeckError):
    """The item bank failed or produced no usable items."""

    def __init__(self, message: str = "Item bank unavailable", *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class InvalidTransition(PrepDeckError):
    """An operation was attempted outside the state that permits it."""

    def __init__(self, operation: str, status: str):
        super().__init__(f"Cannot {operation} while session is {status}")
        self.operation = operation
        self.status = status


class SessionClosed(InvalidTransition):
    """A mutating call arrived after the session reached a terminal state."""


class TimerDesync(PrepDeckError):
    """A tick would have pushed remaining time below zero."""


class HistoryCorrupted(PrepDeckError):
    """A persisted history file could not be parsed."""
