"""Tests for environment-driven configuration."""

import logging

import pytest

from podcast_history.config import Config


@pytest.fixture
def env_file(tmp_path):
    path = tmp_path / ".env"
    path.write_text("")
    return str(path)


class TestConfig:
    """Tests for Config defaults and overrides."""

    def test_defaults(self, env_file):
        config = Config(env_file=env_file)
        assert config.LOG_LEVEL == "INFO"
        assert config.FEED_USER_AGENT == "PodcastHistory/1.0"
        assert config.STATE_STORE_TEMP_DIR is None

    def test_environment_overrides(self, env_file, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("FEED_USER_AGENT", "Custom/2.0")
        monkeypatch.setenv("STATE_STORE_TEMP_DIR", str(tmp_path))

        config = Config(env_file=env_file)

        assert config.LOG_LEVEL == "DEBUG"
        assert config.FEED_USER_AGENT == "Custom/2.0"
        assert config.STATE_STORE_TEMP_DIR == str(tmp_path)

    def test_values_from_env_file(self, tmp_path, monkeypatch):
        # Registered so the value load_dotenv sets is removed afterwards
        monkeypatch.setenv("FEED_USER_AGENT", "placeholder")
        monkeypatch.delenv("FEED_USER_AGENT")
        path = tmp_path / "custom.env"
        path.write_text("FEED_USER_AGENT=FromFile/1.0\n")

        config = Config(env_file=str(path))

        assert config.FEED_USER_AGENT == "FromFile/1.0"

    def test_missing_temp_dir_rejected(self, env_file, tmp_path, monkeypatch):
        monkeypatch.setenv("STATE_STORE_TEMP_DIR", str(tmp_path / "nope"))
        with pytest.raises(ValueError):
            Config(env_file=env_file)


class TestLogLevel:
    """Tests for resolving the effective log level."""

    def test_configured_level(self, env_file, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        assert Config(env_file=env_file).log_level() == logging.WARNING

    def test_override_wins(self, env_file):
        assert Config(env_file=env_file).log_level("DEBUG") == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, env_file):
        assert Config(env_file=env_file).log_level("LOUD") == logging.INFO
