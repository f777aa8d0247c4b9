import logging

import pytest

from sharing.config import Settings
from sharing.log import LOGGER_NAME, configure_logging, get_logger


class TestSettings:
    def test_database_url_is_required(self, monkeypatch, tmp_path):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ValueError):
            Settings()

    def test_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("DATABASE_URL", "sqlite:///wallet.db")
        monkeypatch.setenv("PORT", "9001")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings()

        assert settings.database_url == "sqlite:///wallet.db"
        assert settings.port == 9001
        assert settings.log_level == "DEBUG"
        assert settings.api_prefix == "/api/v1"

    def test_unknown_log_level_is_rejected(self):
        with pytest.raises(ValueError):
            Settings(database_url="sqlite://", log_level="LOUD")


class TestLogging:
    def test_configure_is_idempotent(self):
        configure_logging("INFO")
        logger = configure_logging(logging.DEBUG)

        assert logger.name == LOGGER_NAME
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

    def test_handler_is_shared_across_calls(self):
        first = configure_logging("INFO").handlers[0]
        second = configure_logging("WARNING").handlers[0]

        assert first is second
        assert get_logger().level == logging.WARNING

    def test_child_loggers(self):
        assert get_logger("wallet").name == f"{LOGGER_NAME}.wallet"
        assert get_logger().name == LOGGER_NAME
