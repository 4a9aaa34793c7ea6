"""Result models returned by the throttle tracker."""

from pydantic import BaseModel, Field


class BlockStatus(BaseModel):
    """Whether an address is currently blocked."""

    blocked: bool = Field(..., description="True while the address is blocked")
    message: str = Field(default="", description="User-facing block message, empty when not blocked")
    retry_after: int = Field(default=0, ge=0, description="Seconds until the block ends")


class RemainingAttempts(BaseModel):
    """Outcome of recording one failed login."""

    remaining_attempts: int = Field(..., ge=0, description="Failures left before a block")
    remaining_attempts_message: str = Field(..., description="User-facing remaining attempts message")


class FailureMessages(BaseModel):
    """Messages produced while handling a failed login."""

    block_duration_message: str = Field(default="", description="Block message, empty when not blocked")
    remaining_attempts_message: str = Field(..., description="Remaining attempts message")


class LoginFailureResult(BaseModel):
    """Combined result of recording a failure and checking the threshold."""

    blocked: bool
    retry_after: int = Field(default=0, ge=0)
    messages: FailureMessages
