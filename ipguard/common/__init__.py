"""Common utilities: configuration and logging."""

from .config import (
    Config,
    FileLoggingConfig,
    LoggingConfig,
    StorageConfig,
    ThrottleConfig,
)
from .logging_config import bind_client_address, setup_logging

__all__ = [
    "Config",
    "FileLoggingConfig",
    "LoggingConfig",
    "StorageConfig",
    "ThrottleConfig",
    "setup_logging",
    "bind_client_address",
]
