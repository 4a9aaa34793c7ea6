"""Errors raised by the SQLite attempt record store.

All of them derive from DatabaseError, so a login route can treat any
storage failure the same way. None are retried.
"""

from pathlib import Path
from typing import Optional, Tuple


class DatabaseError(Exception):
    """Attempt record storage failed."""


class DatabaseConnectionError(DatabaseError):
    """The attempts database file could not be opened."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot open attempts database {path}: {reason}")
        self.path = path
        self.reason = reason


class MigrationError(DatabaseError):
    """A schema migration script could not be read or applied."""

    def __init__(self, filename: str, version: int, reason: str):
        super().__init__(f"Migration {filename} failed: {reason}")
        self.filename = filename
        self.version = version
        self.reason = reason


class QueryError(DatabaseError):
    """A read or write of attempt_records failed, or the store is closed."""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        params: Tuple = (),
    ):
        super().__init__(message)
        self.query = query
        self.params = params

    @property
    def address(self) -> Optional[str]:
        """Address the failed statement was keyed on, if any."""
        return self.params[0] if self.params else None
