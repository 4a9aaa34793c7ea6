"""Configuration models using Pydantic for validation."""

import os
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _normalize_level(level: str) -> str:
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of {VALID_LOG_LEVELS}")
    return level_upper


class FileLoggingConfig(BaseModel):
    """Configuration for file-based logging.

    File logging uses daily rotation with 7-day retention.
    Log files are stored as ipguard.log in config_dir, rotated daily
    with format ipguard.log.YYYY-MM-DD.
    """

    enabled: bool = Field(
        default=False,
        description="Enable file logging (logs to ipguard.log in config_dir)",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    format: str = Field(
        default="json",
        description="Log format: json or text",
    )
    file: FileLoggingConfig = Field(
        default_factory=FileLoggingConfig,
        description="File logging configuration",
    )
    third_party: Dict[str, str] = Field(
        default_factory=dict,
        description="Log levels for third-party libraries (advanced)",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        return _normalize_level(v)

    @field_validator("third_party")
    @classmethod
    def validate_third_party(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Validate per-library log level overrides."""
        return {library: _normalize_level(level) for library, level in v.items()}

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["json", "text"]
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid format: {v}. Must be one of {valid_formats}")
        return v_lower


class ThrottleConfig(BaseModel):
    """Configuration for failed-login throttling.

    Durations are expressed in seconds here and converted to milliseconds
    by the tracker.
    """

    block_duration_seconds: int = Field(
        default=30,
        ge=1,
        description="How long an address stays blocked once the threshold is reached",
    )
    max_failed_attempts: int = Field(
        default=5,
        ge=1,
        description="Failed attempts before an address is blocked",
    )
    reset_window_seconds: int = Field(
        default=300,
        ge=1,
        description="Idle time after which the failure count starts a fresh sequence",
    )


class StorageConfig(BaseModel):
    """Configuration for the attempt record store."""

    backend: str = Field(
        default="memory",
        description="Record store backend: memory or sqlite",
    )
    enable_wal_mode: bool = Field(
        default=True,
        description="Enable SQLite Write-Ahead Logging (sqlite backend only)",
    )
    connection_timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="SQLite connection timeout in seconds",
    )

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate storage backend."""
        valid_backends = ["memory", "sqlite"]
        v_lower = v.lower()
        if v_lower not in valid_backends:
            raise ValueError(f"Invalid backend: {v}. Must be one of {valid_backends}")
        return v_lower


def _get_default_config_dir() -> Path:
    """
    Get default config directory based on environment.

    Priority:
    1. IPGUARD_CONFIG_DIR environment variable
    2. /config if IPGUARD_DOCKER=1
    3. $HOME/.ipguard otherwise

    Returns:
        Path to config directory
    """
    env_config_dir = os.environ.get("IPGUARD_CONFIG_DIR")
    if env_config_dir:
        return Path(env_config_dir)

    if os.environ.get("IPGUARD_DOCKER") == "1":
        return Path("/config")

    return Path.home() / ".ipguard"


class Config(BaseModel):
    """Main configuration class for ipguard.

    Environment Variables:
    - IPGUARD_CONFIG_DIR: Override config_dir
    - IPGUARD_DOCKER=1: Use Docker default (/config)

    The SQLite database and log file live in config_dir.
    """

    config_dir: Optional[Path] = Field(
        default=None,
        description="Configuration directory (database, logs). Resolved from IPGUARD_CONFIG_DIR or defaults.",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    throttle: ThrottleConfig = Field(
        default_factory=ThrottleConfig,
        description="Failed-login throttling configuration",
    )
    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Attempt record store configuration",
    )

    DEFAULT_DATABASE_PATH: ClassVar[str] = "ipguard.db"
    DEFAULT_LOG_FILE: ClassVar[str] = "ipguard.log"

    def resolve_paths(self, create_dirs: bool = True) -> "Config":
        """
        Resolve config_dir from environment or defaults.

        Args:
            create_dirs: If True, create config_dir if it doesn't exist

        Returns:
            Self with resolved paths (for chaining)

        Example:
            >>> config = Config.from_yaml(Path("config.yaml")).resolve_paths()
        """
        if self.config_dir is None:
            object.__setattr__(self, "config_dir", _get_default_config_dir())

        if create_dirs:
            self.config_dir.mkdir(parents=True, exist_ok=True)

        return self

    def get_database_path(self) -> Path:
        """Get absolute database path, resolved against config_dir."""
        config_dir = self.config_dir or _get_default_config_dir()
        return config_dir / self.DEFAULT_DATABASE_PATH

    def get_log_file_path(self) -> Path:
        """Get absolute log file path, resolved against config_dir."""
        config_dir = self.config_dir or _get_default_config_dir()
        return config_dir / self.DEFAULT_LOG_FILE

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config object with validated configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML is invalid
            pydantic.ValidationError: If configuration is invalid
        """
        with open(path, "r", encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml_string(cls, yaml_string: str) -> "Config":
        """
        Load configuration from YAML string.

        Example:
            >>> config = Config.from_yaml_string("throttle:\\n  max_failed_attempts: 3")
        """
        data = yaml.safe_load(yaml_string)
        return cls.model_validate(data or {})
