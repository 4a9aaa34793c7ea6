"""ipguard package initialization."""

from pathlib import Path
from typing import Optional

import structlog

from .auth import (
    BlockStatus,
    FailureMessages,
    LoginFailureResult,
    RemainingAttempts,
    ThrottleTracker,
)
from .common.config import (
    Config,
    FileLoggingConfig,
    LoggingConfig,
    StorageConfig,
    ThrottleConfig,
)
from .common.logging_config import setup_logging
from .core import (
    AttemptRecord,
    AttemptRepository,
    AttemptStore,
    InMemoryAttemptStore,
    create_store,
)
from .core.db import DatabaseConnectionError, DatabaseError, MigrationError, QueryError

__version__ = "0.1.0"
__all__ = [
    # Configuration
    "Config",
    "FileLoggingConfig",
    "LoggingConfig",
    "StorageConfig",
    "ThrottleConfig",
    "setup_logging",
    # Throttling
    "ThrottleTracker",
    "BlockStatus",
    "FailureMessages",
    "LoginFailureResult",
    "RemainingAttempts",
    # Storage
    "AttemptRecord",
    "AttemptStore",
    "InMemoryAttemptStore",
    "AttemptRepository",
    "create_store",
    # Errors
    "DatabaseError",
    "DatabaseConnectionError",
    "MigrationError",
    "QueryError",
    # Lifecycle
    "configure",
    "get_config",
    "get_tracker",
    "shutdown",
]

logger = structlog.get_logger(__name__)

# Global config and tracker state
_config: Optional[Config] = None
_tracker: Optional[ThrottleTracker] = None


async def configure(config_path: Optional[Path] = None, config: Optional[Config] = None) -> None:
    """
    Configure the ipguard package (async).

    Call once at application startup. Loads configuration, sets up logging,
    opens the record store and builds the process-wide ThrottleTracker.

    Config resolution order:
    - config argument
    - config_path argument
    - config.yaml in the default config_dir, then in the working directory
    - built-in defaults

    Args:
        config_path: Path to YAML configuration file
        config: Pre-loaded Config object (takes precedence over config_path)

    Example:
        >>> import ipguard
        >>> await ipguard.configure(config_path=Path("config.yaml"))
        >>> tracker = ipguard.get_tracker()
    """
    global _config, _tracker

    from ipguard.common.config import _get_default_config_dir

    if config is not None:
        _config = config
    elif config_path is not None:
        _config = Config.from_yaml(config_path)
    else:
        default_config_path = _get_default_config_dir() / "config.yaml"
        cwd_config_path = Path.cwd() / "config.yaml"

        if default_config_path.exists():
            _config = Config.from_yaml(default_config_path)
            config_path = default_config_path
        elif cwd_config_path.exists():
            _config = Config.from_yaml(cwd_config_path)
            config_path = cwd_config_path
        elif _config is None:
            _config = Config()

    _config.resolve_paths(create_dirs=True)
    setup_logging(_config.logging, log_file=_config.get_log_file_path())

    if _tracker is None:
        store = await create_store(_config)
        _tracker = ThrottleTracker.from_config(_config.throttle, store)

    logger.info(
        "ipguard_configured",
        version=__version__,
        config_path=str(config_path) if config_path else None,
        config_dir=str(_config.config_dir),
        storage_backend=_config.storage.backend,
        max_failed_attempts=_config.throttle.max_failed_attempts,
    )


def get_config() -> Config:
    """
    Get current configuration, initializing with defaults if needed.

    Returns:
        Current Config object
    """
    global _config
    if _config is None:
        # Does not build the tracker; that needs await configure()
        _config = Config()
        setup_logging(_config.logging)
    return _config


def get_tracker() -> ThrottleTracker:
    """
    Get the process-wide ThrottleTracker.

    Raises:
        RuntimeError: If configure() has not been awaited yet
    """
    if _tracker is None:
        raise RuntimeError("ipguard is not configured. Call await ipguard.configure() first.")
    return _tracker


async def shutdown() -> None:
    """Close the record store and forget the configured tracker."""
    global _config, _tracker

    if _tracker is not None:
        await _tracker.store.close()
        logger.info("ipguard_shutdown")

    _tracker = None
    _config = None
