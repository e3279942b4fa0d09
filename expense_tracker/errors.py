"""Exception types raised by the stores and the storage layer."""

from __future__ import annotations

from typing import Dict, Mapping, Optional


class ExpenseTrackerError(Exception):
    """Base class for all expense tracker errors."""


class ValidationError(ExpenseTrackerError, ValueError):
    """One or more fields of a candidate record are missing or invalid.

    ``errors`` maps each offending field to a human readable message so
    the dashboard can show the problem next to the matching input.
    """

    def __init__(self, errors: Mapping[str, str]):
        self.errors: Dict[str, str] = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Invalid or missing fields: {fields}")


class NotFoundError(ExpenseTrackerError, LookupError):
    """An update or lookup referenced an id or category that does not exist."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} '{key}' not found")


class PersistenceError(ExpenseTrackerError):
    """Reading or writing a durable storage document failed."""

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        super().__init__(message)
