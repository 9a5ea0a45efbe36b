# Rev 0.1.0
"""Exceptions raised by the flowstate store.

Constraint violations are not wrapped: the store rolls the transaction back
and re-raises the driver's ``sqlite3.IntegrityError``.
"""
from __future__ import annotations


class FlowStateError(Exception):
    """Base exception for flowstate errors."""


class SchemaVersionError(FlowStateError):
    """The database was written by a build with migrations this build lacks."""

    def __init__(self, unknown: list[str]):
        self.unknown = unknown
        super().__init__(
            "Database schema is newer than this build; unknown migrations: " + ", ".join(unknown)
        )
