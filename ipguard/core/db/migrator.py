"""Schema migration runner for the attempts database."""

import hashlib
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Set, Tuple

import aiosqlite
import structlog

from .exceptions import MigrationError

logger = structlog.get_logger(__name__)

DEFAULT_MIGRATIONS_DIR = Path(__file__).parent / "migrations"


class Migrator:
    """
    Applies numbered ``NNN_description.sql`` files in version order.

    Applied versions are tracked in ``schema_migrations`` together with a
    SHA-256 checksum of the script, so re-running is a no-op.
    """

    def __init__(self, migrations_dir: Path = DEFAULT_MIGRATIONS_DIR):
        self.migrations_dir = migrations_dir

    async def run_migrations(self, db: aiosqlite.Connection) -> int:
        """
        Run all pending migrations on an open connection.

        Returns:
            Number of migrations applied

        Raises:
            MigrationError: If a migration cannot be read or executed
        """
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version INTEGER PRIMARY KEY,
                filename TEXT NOT NULL,
                checksum TEXT NOT NULL,
                applied_at TEXT NOT NULL
            )
            """
        )
        await db.commit()

        applied_versions = await self._get_applied_versions(db)
        pending = self._get_pending_migrations(applied_versions)

        if not pending:
            logger.debug("no_pending_migrations")
            return 0

        logger.info("migrations_pending", count=len(pending))

        for version, filename, sql, checksum in pending:
            try:
                await db.executescript(sql)
                await db.execute(
                    """
                    INSERT INTO schema_migrations (version, filename, checksum, applied_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (version, filename, checksum, datetime.now(timezone.utc).isoformat()),
                )
                await db.commit()
            except Exception as e:
                await db.rollback()
                logger.error(
                    "migration_failed",
                    version=version,
                    filename=filename,
                    error=str(e),
                )
                raise MigrationError(filename, version, str(e)) from e

            logger.info("migration_applied", version=version, filename=filename)

        return len(pending)

    async def _get_applied_versions(self, db: aiosqlite.Connection) -> Set[int]:
        cursor = await db.execute("SELECT version FROM schema_migrations")
        rows = await cursor.fetchall()
        return {row[0] for row in rows}

    def _get_pending_migrations(self, applied_versions: Set[int]) -> List[Tuple[int, str, str, str]]:
        """
        Collect migrations not yet applied.

        Returns:
            List of tuples: (version, filename, sql, checksum), sorted by version
        """
        if not self.migrations_dir.exists():
            logger.warning("migrations_dir_not_found", path=str(self.migrations_dir))
            return []

        pending = []
        for sql_file in sorted(self.migrations_dir.glob("*.sql")):
            # "001_attempt_records.sql" -> 1
            try:
                version = int(sql_file.stem.split("_")[0])
            except ValueError:
                logger.warning("migration_filename_invalid", filename=sql_file.name)
                continue

            if version in applied_versions:
                continue

            try:
                sql = sql_file.read_text(encoding="utf-8")
            except OSError as e:
                raise MigrationError(sql_file.name, version, f"unreadable: {e}") from e

            pending.append((version, sql_file.name, sql, hashlib.sha256(sql.encode()).hexdigest()))

        pending.sort(key=lambda x: x[0])
        return pending
