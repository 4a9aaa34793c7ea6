"""Failed-login throttling for ipguard."""

from .schemas import (
    BlockStatus,
    FailureMessages,
    LoginFailureResult,
    RemainingAttempts,
)
from .throttle import ThrottleTracker, wall_clock_ms

__all__ = [
    # Tracker
    "ThrottleTracker",
    "wall_clock_ms",
    # Schemas
    "BlockStatus",
    "FailureMessages",
    "LoginFailureResult",
    "RemainingAttempts",
]
