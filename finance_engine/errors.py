"""Exceptions raised by the finance engine.

Every failure inside the engine is a deterministic consequence of its inputs,
so none of these errors is worth retrying. ``InvalidInput`` also derives from
``ValueError`` and ``NotFound`` from ``LookupError`` so callers that only know
the built-in hierarchy can still catch them.
"""

from __future__ import annotations


class FinanceError(Exception):
    """Base class for all engine errors."""


class InvalidInput(FinanceError, ValueError):
    """A record or argument failed validation before any computation ran."""


class NotFound(FinanceError, LookupError):
    """A goal or loan id is absent from the snapshot."""

    kind = "record"

    def __init__(self, record_id: object, reason: str = "") -> None:
        self.record_id = record_id
        message = f"{self.kind.capitalize()} not found: {record_id}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class LoanNotFound(NotFound):
    kind = "loan"


class GoalNotFound(NotFound):
    kind = "goal"
