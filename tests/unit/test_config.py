"""Unit tests for configuration loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from ipguard.common.config import (
    Config,
    LoggingConfig,
    StorageConfig,
    ThrottleConfig,
)


class TestThrottleConfig:
    """Tests for ThrottleConfig model."""

    def test_default_values(self):
        """Test default throttle values."""
        config = ThrottleConfig()
        assert config.block_duration_seconds == 30
        assert config.max_failed_attempts == 5
        assert config.reset_window_seconds == 300

    def test_validation_constraints(self):
        """Test that zero or negative throttle values are rejected."""
        with pytest.raises(ValidationError):
            ThrottleConfig(max_failed_attempts=0)

        with pytest.raises(ValidationError):
            ThrottleConfig(block_duration_seconds=0)

        with pytest.raises(ValidationError):
            ThrottleConfig(reset_window_seconds=-5)


class TestStorageConfig:
    """Tests for StorageConfig model."""

    def test_default_backend(self):
        """Test that the in-memory backend is the default."""
        assert StorageConfig().backend == "memory"

    def test_backend_case_insensitive(self):
        """Test that backend names are normalized to lowercase."""
        assert StorageConfig(backend="SQLite").backend == "sqlite"

    def test_invalid_backend(self):
        """Test that unknown backends are rejected."""
        with pytest.raises(ValidationError):
            StorageConfig(backend="redis")


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_default_values(self):
        """Test default logging values."""
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.format == "json"
        assert config.file.enabled is False
        assert config.third_party == {}

    def test_level_normalized(self):
        """Test that log levels are normalized to uppercase."""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_level(self):
        """Test that unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="VERBOSE")

    def test_invalid_format(self):
        """Test that unknown log formats are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")

    def test_third_party_levels_normalized(self):
        """Test that per-library levels are normalized to uppercase."""
        config = LoggingConfig(third_party={"aiosqlite": "debug", "httpx": "Error"})
        assert config.third_party == {"aiosqlite": "DEBUG", "httpx": "ERROR"}

    def test_invalid_third_party_level(self):
        """Test that an unknown per-library level is rejected."""
        with pytest.raises(ValidationError, match="Invalid log level: LOUD"):
            LoggingConfig(third_party={"httpx": "LOUD"})


class TestConfig:
    """Tests for the main Config model."""

    def test_from_yaml_string(self):
        """Test loading nested sections from a YAML string."""
        config = Config.from_yaml_string(
            """
throttle:
  block_duration_seconds: 60
  max_failed_attempts: 3
storage:
  backend: sqlite
logging:
  level: warning
  format: text
  third_party:
    aiosqlite: info
"""
        )
        assert config.throttle.block_duration_seconds == 60
        assert config.throttle.max_failed_attempts == 3
        assert config.throttle.reset_window_seconds == 300
        assert config.storage.backend == "sqlite"
        assert config.logging.level == "WARNING"
        assert config.logging.third_party == {"aiosqlite": "INFO"}

    def test_from_empty_yaml_string(self):
        """Test that an empty document yields defaults."""
        config = Config.from_yaml_string("")
        assert config.throttle == ThrottleConfig()

    def test_from_yaml_file(self, tmp_path: Path):
        """Test loading configuration from a YAML file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("throttle:\n  max_failed_attempts: 7\n")

        config = Config.from_yaml(config_file)
        assert config.throttle.max_failed_attempts == 7

    def test_loading_writes_nothing(self, tmp_path: Path, capsys: pytest.CaptureFixture):
        """Test that loading and resolving config prints nothing before logging is set up."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(f"config_dir: {tmp_path}\n")

        Config.from_yaml(config_file).resolve_paths(create_dirs=True)

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_from_yaml_missing_file(self, tmp_path: Path):
        """Test that a missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            Config.from_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml_values(self):
        """Test that invalid values in YAML raise ValidationError."""
        with pytest.raises(ValidationError):
            Config.from_yaml_string("throttle:\n  max_failed_attempts: 0\n")

    def test_invalid_third_party_level_in_yaml(self):
        """Test that a bad per-library level fails at load time."""
        with pytest.raises(ValidationError):
            Config.from_yaml_string("logging:\n  third_party:\n    aiosqlite: chatty\n")

    def test_resolve_paths_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        """Test that IPGUARD_CONFIG_DIR sets config_dir and the file paths under it."""
        target = tmp_path / "guard"
        monkeypatch.setenv("IPGUARD_CONFIG_DIR", str(target))

        config = Config().resolve_paths(create_dirs=True)

        assert config.config_dir == target
        assert target.is_dir()
        assert config.get_database_path() == target / "ipguard.db"
        assert config.get_log_file_path() == target / "ipguard.log"

    def test_resolve_paths_docker_default(self, monkeypatch: pytest.MonkeyPatch):
        """Test that IPGUARD_DOCKER=1 selects /config."""
        monkeypatch.delenv("IPGUARD_CONFIG_DIR", raising=False)
        monkeypatch.setenv("IPGUARD_DOCKER", "1")

        config = Config().resolve_paths(create_dirs=False)
        assert config.config_dir == Path("/config")

    def test_explicit_config_dir_kept(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        """Test that an explicit config_dir wins over the environment."""
        monkeypatch.setenv("IPGUARD_CONFIG_DIR", "/somewhere/else")

        config = Config(config_dir=tmp_path).resolve_paths(create_dirs=False)
        assert config.config_dir == tmp_path
