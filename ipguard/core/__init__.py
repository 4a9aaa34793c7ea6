"""Attempt record storage."""

from ..common.config import Config
from .db import AttemptRepository
from .store import AttemptRecord, AttemptStore, InMemoryAttemptStore


async def create_store(config: Config) -> AttemptStore:
    """
    Build the record store selected by ``config.storage.backend``.

    The sqlite backend is opened at ``config.get_database_path()`` and
    migrated before it is returned.
    """
    if config.storage.backend == "sqlite":
        return await AttemptRepository.from_config(config)
    return InMemoryAttemptStore()


__all__ = [
    "AttemptRecord",
    "AttemptStore",
    "InMemoryAttemptStore",
    "AttemptRepository",
    "create_store",
]
