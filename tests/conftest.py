"""Shared pytest fixtures for all tests."""

from pathlib import Path
from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio
import structlog

import ipguard
from ipguard.auth import ThrottleTracker
from ipguard.common.config import Config, StorageConfig
from ipguard.core.db import AttemptRepository
from ipguard.core.store import AttemptStore, InMemoryAttemptStore

START_MS = 1_700_000_000_000


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, start_ms: int = START_MS):
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float = 0, ms: int = 0) -> None:
        self.now_ms += int(seconds * 1000) + ms


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def sqlite_config(tmp_path: Path) -> Config:
    """Provide a config using the SQLite backend in a temp directory."""
    return Config(
        config_dir=tmp_path,
        storage=StorageConfig(
            backend="sqlite",
            enable_wal_mode=False,  # Disable WAL mode in tests to avoid lock issues
            connection_timeout=5,
        ),
    )


@pytest_asyncio.fixture
async def sqlite_repository(sqlite_config: Config) -> AsyncGenerator[AttemptRepository, None]:
    """Provide a migrated SQLite repository in a temp directory."""
    repo = await AttemptRepository.from_config(sqlite_config)
    yield repo
    await repo.close()


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def attempt_store(
    request: pytest.FixtureRequest, sqlite_config: Config
) -> AsyncGenerator[AttemptStore, None]:
    """Provide each store backend in turn."""
    if request.param == "memory":
        store: AttemptStore = InMemoryAttemptStore()
    else:
        store = await AttemptRepository.from_config(sqlite_config)
    yield store
    await store.close()


@pytest.fixture
def tracker(attempt_store: AttemptStore, fake_clock: FakeClock) -> ThrottleTracker:
    """Provide a tracker with threshold 5, window 300s, block 30s."""
    return ThrottleTracker(
        store=attempt_store,
        block_duration=30,
        max_failed_attempts=5,
        reset_window=300,
        clock=fake_clock,
    )


@pytest.fixture(autouse=True)
def reset_ipguard_state() -> Generator[None, None, None]:
    """Forget any configured tracker and bound log context between tests."""
    yield
    structlog.contextvars.clear_contextvars()
    ipguard._tracker = None
    ipguard._config = None
