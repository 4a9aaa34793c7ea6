"""SQLite persistence for attempt records."""

from .exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    MigrationError,
    QueryError,
)
from .migrator import Migrator
from .repository import AttemptRepository

__all__ = [
    "AttemptRepository",
    "Migrator",
    "DatabaseError",
    "DatabaseConnectionError",
    "MigrationError",
    "QueryError",
]
