"""SQLite-backed attempt record store."""

from pathlib import Path
from typing import Any, List, Optional, Tuple

import aiosqlite
import structlog

from ...common.config import Config
from ..store import AttemptRecord, AttemptStore
from .exceptions import DatabaseConnectionError, QueryError
from .migrator import Migrator

logger = structlog.get_logger(__name__)

_UPSERT_SQL = """
    INSERT INTO attempt_records (address, failure_count, last_attempt_at, blocked_until)
    VALUES (?, ?, ?, ?)
    ON CONFLICT(address) DO UPDATE SET
        failure_count = excluded.failure_count,
        last_attempt_at = excluded.last_attempt_at,
        blocked_until = excluded.blocked_until
"""


class AttemptRepository(AttemptStore):
    """
    Persistent AttemptStore holding one aiosqlite connection.

    Every write is committed immediately, so a record saved by one login
    request is visible to the next even if the process dies in between.
    """

    def __init__(
        self,
        db_path: Path,
        enable_wal: bool = True,
        timeout: int = 30,
    ):
        """
        Initialize attempt repository.

        Args:
            db_path: Path to the SQLite database file
            enable_wal: Enable Write-Ahead Logging mode
            timeout: Seconds to wait on a locked database
        """
        self.db_path = db_path
        self.enable_wal = enable_wal
        self.timeout = timeout
        self._connection: Optional[aiosqlite.Connection] = None

    @classmethod
    async def from_config(cls, config: Config) -> "AttemptRepository":
        """
        Create, connect and migrate a repository.

        The database lives at ``config.get_database_path()``. If the schema
        cannot be brought up to date the connection is closed again before
        the error propagates.

        Returns:
            Connected AttemptRepository with the schema up to date

        Raises:
            DatabaseConnectionError: If the database cannot be opened
            MigrationError: If a migration fails
        """
        repo = cls(
            db_path=config.get_database_path(),
            enable_wal=config.storage.enable_wal_mode,
            timeout=config.storage.connection_timeout,
        )
        await repo.connect()
        try:
            await Migrator().run_migrations(repo._connection)
        except Exception:
            await repo.close()
            raise

        logger.info("repository_initialized", db_path=str(repo.db_path))
        return repo

    async def connect(self) -> None:
        """
        Open the database file, creating its directory if needed.

        Calling it on an open repository does nothing.

        Raises:
            DatabaseConnectionError: If SQLite cannot open the file
        """
        if self._connection is not None:
            return

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            connection = await aiosqlite.connect(str(self.db_path), timeout=self.timeout)
        except (OSError, aiosqlite.Error) as e:
            logger.error("database_connection_failed", db_path=str(self.db_path), error=str(e))
            raise DatabaseConnectionError(self.db_path, str(e)) from e

        connection.row_factory = aiosqlite.Row
        if self.enable_wal:
            try:
                await connection.execute("PRAGMA journal_mode = WAL")
            except aiosqlite.Error as e:
                await connection.close()
                logger.error("database_connection_failed", db_path=str(self.db_path), error=str(e))
                raise DatabaseConnectionError(self.db_path, str(e)) from e

        self._connection = connection
        logger.info("database_connected", db_path=str(self.db_path), wal_mode=self.enable_wal)

    async def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("database_closed", db_path=str(self.db_path))

    async def __aenter__(self) -> "AttemptRepository":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _execute(self, query: str, params: Tuple = (), commit: bool = False) -> aiosqlite.Cursor:
        if self._connection is None:
            raise QueryError("No active connection", query=query, params=params)

        try:
            cursor = await self._connection.execute(query, params)
            if commit:
                await self._connection.commit()
            return cursor
        except aiosqlite.Error as e:
            logger.error("query_failed", query=query.strip().split("\n")[0], error=str(e))
            if commit:
                await self._connection.rollback()
            raise QueryError(f"Query failed: {e}", query=query, params=params) from e

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> AttemptRecord:
        return AttemptRecord(
            address=row["address"],
            failure_count=row["failure_count"],
            last_attempt_at=row["last_attempt_at"],
            blocked_until=row["blocked_until"],
        )

    async def get(self, address: str) -> Optional[AttemptRecord]:
        cursor = await self._execute(
            "SELECT * FROM attempt_records WHERE address = ?",
            (address,),
        )
        row = await cursor.fetchone()
        return self._row_to_record(row) if row else None

    async def save(self, record: AttemptRecord) -> None:
        params = (
            record.address,
            record.failure_count,
            record.last_attempt_at,
            record.blocked_until,
        )
        await self._execute(_UPSERT_SQL, params, commit=True)

    async def list_records(self) -> List[AttemptRecord]:
        cursor = await self._execute("SELECT * FROM attempt_records ORDER BY address")
        rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]
