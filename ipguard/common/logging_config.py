"""structlog setup for ipguard.

structlog events and standard library records (aiosqlite, fastapi) share
one set of root handlers: stderr always, plus a daily-rotated file when
file logging is enabled.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import List, Optional

import structlog

from .config import LoggingConfig

# Libraries that are noisy at INFO; LoggingConfig.third_party overrides these
QUIET_LIBRARIES = {
    "aiosqlite": "WARNING",
    "httpx": "WARNING",
}

LOG_RETENTION_DAYS = 7

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def _daily_file_handler(log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(log_file),
        when="midnight",
        backupCount=LOG_RETENTION_DAYS,
        encoding="utf-8",
    )
    # ipguard.log.2026-10-19
    handler.suffix = "%Y-%m-%d"
    return handler


def setup_logging(config: LoggingConfig, log_file: Optional[Path] = None) -> None:
    """
    Configure structlog and the root logger.

    Args:
        config: Validated LoggingConfig
        log_file: Destination of the rotated log, normally
            ``Config.get_log_file_path()``. Ignored unless
            ``config.file.enabled`` is set.

    Example:
        >>> setup_logging(config.logging, log_file=config.get_log_file_path())
    """
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if config.file.enabled and log_file is not None:
        handlers.append(_daily_file_handler(log_file))
    for handler in handlers:
        handler.setLevel(config.level)

    logging.basicConfig(level=config.level, format="%(message)s", handlers=handlers, force=True)

    for library, level in {**QUIET_LIBRARIES, **config.third_party}.items():
        logging.getLogger(library).setLevel(level)

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, _renderer(config.format)],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_client_address(address: str) -> None:
    """Attach ``ip_address`` to every event logged later in this context."""
    structlog.contextvars.bind_contextvars(ip_address=address)
