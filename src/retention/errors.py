"""
Engine error taxonomy.

Raised at the point of detection and propagated unchanged; translating them
into user-facing output is the caller's job.
"""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for all tracker errors."""


class NotFoundError(TrackerError):
    """A skill or test id could not be resolved."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class UnauthorizedError(TrackerError):
    """Caller id does not own the record."""

    def __init__(self, kind: str, record_id: str, user_id: str):
        self.kind = kind
        self.record_id = record_id
        self.user_id = user_id
        super().__init__(f"Unauthorized: user {user_id} does not own {kind.lower()} {record_id}")


class AlreadyCompletedError(TrackerError):
    """A finished test was submitted again."""

    def __init__(self, test_id: str):
        self.test_id = test_id
        super().__init__(f"Test already completed: {test_id}")


class ValidationError(TrackerError):
    """Malformed input (answers map, total time, skill fields)."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))
