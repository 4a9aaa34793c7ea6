"""Per-address failed-login throttling."""

import math
import time
from typing import Callable, Optional

import structlog

from ..common.config import ThrottleConfig
from ..core.store import AttemptRecord, AttemptStore, InMemoryAttemptStore
from .schemas import BlockStatus, FailureMessages, LoginFailureResult, RemainingAttempts

logger = structlog.get_logger(__name__)

BLOCKED_MESSAGE = "Too many failed attempts. Please try again in {seconds} seconds."
REMAINING_ATTEMPTS_MESSAGE = "Username or password is invalid. {remaining} attempts before being blocked"


def wall_clock_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class ThrottleTracker:
    """
    Counts failed logins per client address and blocks noisy addresses.

    An address moves through three states: clear (no record or a zero
    count), accumulating (count below the threshold) and blocked (count at
    or above the threshold with ``blocked_until`` in the future). Block
    expiry is lazy: an expired block is only cleared by the next
    ``is_blocked`` call.

    Every operation is a read-modify-write against the store with no
    locking. Two simultaneous failures for the same address may be counted
    once.

    Attributes:
        block_duration_ms: How long an address stays blocked
        max_failed_attempts: Failures that trigger a block (compared with >=)
        reset_window_ms: Idle time after which counting starts again at 1

    Example:
        >>> tracker = ThrottleTracker(InMemoryAttemptStore())
        >>> status = await tracker.is_blocked("192.168.1.1")
        >>> if status.blocked:
        ...     raise HTTPException(429, status.message)
        >>> # On failed login:
        >>> result = await tracker.handle_login_failure("192.168.1.1")
    """

    def __init__(
        self,
        store: Optional[AttemptStore] = None,
        block_duration: int = 30,
        max_failed_attempts: int = 5,
        reset_window: int = 300,
        clock: Callable[[], int] = wall_clock_ms,
    ):
        """
        Initialize the tracker.

        Args:
            store: Record store; defaults to a fresh in-memory store
            block_duration: Block length in seconds
            max_failed_attempts: Failures before blocking
            reset_window: Inactivity window in seconds
            clock: Callable returning the current epoch milliseconds
        """
        self.store = store if store is not None else InMemoryAttemptStore()
        self.block_duration_ms = block_duration * 1000
        self.max_failed_attempts = max_failed_attempts
        self.reset_window_ms = reset_window * 1000
        self._clock = clock

    @classmethod
    def from_config(
        cls,
        config: ThrottleConfig,
        store: AttemptStore,
        clock: Callable[[], int] = wall_clock_ms,
    ) -> "ThrottleTracker":
        return cls(
            store=store,
            block_duration=config.block_duration_seconds,
            max_failed_attempts=config.max_failed_attempts,
            reset_window=config.reset_window_seconds,
            clock=clock,
        )

    async def get_record(self, address: str) -> Optional[AttemptRecord]:
        """Return the stored record for address without changing it."""
        return await self.store.get(address)

    async def is_blocked(self, address: str) -> BlockStatus:
        """
        Check whether an address is currently blocked.

        An expired block is cleared and persisted here.

        Args:
            address: Client IP address

        Returns:
            BlockStatus with remaining seconds rounded up when blocked
        """
        record = await self.store.get(address)
        if record is None or record.failure_count < self.max_failed_attempts:
            return BlockStatus(blocked=False)

        now = self._clock()
        if record.blocked_until is None or record.blocked_until <= now:
            record.failure_count = 0
            record.blocked_until = None
            await self.store.save(record)
            logger.info("block_expired", ip_address=address)
            return BlockStatus(blocked=False)

        retry_after = math.ceil((record.blocked_until - now) / 1000)
        logger.warning(
            "login_throttled",
            ip_address=address,
            attempt_count=record.failure_count,
            retry_after=retry_after,
        )
        return BlockStatus(
            blocked=True,
            message=BLOCKED_MESSAGE.format(seconds=retry_after),
            retry_after=retry_after,
        )

    async def record_failure(self, address: str) -> RemainingAttempts:
        """
        Record a failed login attempt for an address.

        A failure arriving more than ``reset_window_ms`` after the previous
        one starts a fresh sequence at 1 and drops any stale block.

        Args:
            address: Client IP address

        Returns:
            RemainingAttempts, never negative
        """
        now = self._clock()
        record = await self.store.get(address)

        if record is None:
            record = AttemptRecord(address=address, failure_count=1, last_attempt_at=now)
            await self.store.create(record)
        else:
            if now - record.last_attempt_at > self.reset_window_ms:
                record.failure_count = 1
                record.blocked_until = None
                logger.debug("failure_window_reset", ip_address=address)
            else:
                record.failure_count += 1
            record.last_attempt_at = now
            await self.store.save(record)

        remaining = max(0, self.max_failed_attempts - record.failure_count)
        logger.info(
            "login_failure_recorded",
            ip_address=address,
            attempt_count=record.failure_count,
            max_attempts=self.max_failed_attempts,
        )
        return RemainingAttempts(
            remaining_attempts=remaining,
            remaining_attempts_message=REMAINING_ATTEMPTS_MESSAGE.format(remaining=remaining),
        )

    async def evaluate_block_threshold(self, address: str) -> BlockStatus:
        """
        Start a block if the address has reached the failure threshold.

        Args:
            address: Client IP address

        Returns:
            BlockStatus carrying the full block duration when a block starts
        """
        record = await self.store.get(address)
        if record is None or record.failure_count < self.max_failed_attempts:
            return BlockStatus(blocked=False)

        record.blocked_until = self._clock() + self.block_duration_ms
        await self.store.save(record)

        seconds = math.ceil(self.block_duration_ms / 1000)
        logger.warning(
            "address_blocked",
            ip_address=address,
            attempt_count=record.failure_count,
            block_seconds=seconds,
        )
        return BlockStatus(
            blocked=True,
            message=BLOCKED_MESSAGE.format(seconds=seconds),
            retry_after=seconds,
        )

    async def handle_login_failure(self, address: str) -> LoginFailureResult:
        """Record a failure, then check the threshold against the updated count."""
        remaining = await self.record_failure(address)
        status = await self.evaluate_block_threshold(address)

        return LoginFailureResult(
            blocked=status.blocked,
            retry_after=status.retry_after,
            messages=FailureMessages(
                block_duration_message=status.message,
                remaining_attempts_message=remaining.remaining_attempts_message,
            ),
        )

    async def handle_login_success(self, address: str) -> None:
        """
        Clear the failure state of an address after a successful login.

        Does nothing if the address has no record.
        """
        record = await self.store.get(address)
        if record is None:
            return

        record.failure_count = 0
        record.blocked_until = None
        record.last_attempt_at = self._clock()
        await self.store.save(record)
        logger.debug("login_success_reset", ip_address=address)
