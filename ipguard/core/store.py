"""Attempt record model and the keyed record store contract."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class AttemptRecord:
    """Failed-login state for one client address.

    Timestamps are epoch milliseconds. ``blocked_until`` is None while the
    address is not blocked.
    """

    address: str
    failure_count: int = 0
    last_attempt_at: int = 0
    blocked_until: Optional[int] = None


class AttemptStore(ABC):
    """
    Keyed store of AttemptRecords, one record per address.

    ``create`` and ``save`` both upsert by address. Backends must return
    copies from ``get`` so callers can mutate a record freely until they
    persist it.
    """

    @abstractmethod
    async def get(self, address: str) -> Optional[AttemptRecord]:
        """Return the record for address, or None if none exists."""

    @abstractmethod
    async def save(self, record: AttemptRecord) -> None:
        """Insert or replace the record keyed by record.address."""

    async def create(self, record: AttemptRecord) -> None:
        """Insert a new record (upsert semantics, same as save)."""
        await self.save(record)

    @abstractmethod
    async def list_records(self) -> List[AttemptRecord]:
        """Return every stored record ordered by address."""

    async def close(self) -> None:
        """Release any resources held by the store."""


class InMemoryAttemptStore(AttemptStore):
    """Process-local store backed by a dict.

    Intended to be driven from a single event loop; it takes no locks.
    """

    def __init__(self) -> None:
        self._records: Dict[str, AttemptRecord] = {}

    async def get(self, address: str) -> Optional[AttemptRecord]:
        record = self._records.get(address)
        return replace(record) if record is not None else None

    async def save(self, record: AttemptRecord) -> None:
        self._records[record.address] = replace(record)

    async def list_records(self) -> List[AttemptRecord]:
        return [replace(self._records[address]) for address in sorted(self._records)]

    def __len__(self) -> int:
        return len(self._records)
