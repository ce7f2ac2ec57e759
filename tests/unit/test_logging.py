"""Tests for logging setup."""

import logging
import logging.handlers

import pytest
from rich.logging import RichHandler

from insightvault.core.config import AppConfig, LoggingConfig, SecurityConfig, Settings
from insightvault.core.logging import get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_development_uses_rich_console():
    setup_logging(Settings(app=AppConfig(environment="development")))

    root = logging.getLogger()
    assert any(isinstance(h, RichHandler) for h in root.handlers)
    assert root.level == logging.INFO


def test_production_uses_plain_stream():
    setup_logging(Settings(
        app=AppConfig(environment="production"),
        security=SecurityConfig(secret_key="prod-secret"),
        logging=LoggingConfig(level="DEBUG"),
    ))

    root = logging.getLogger()
    assert not any(isinstance(h, RichHandler) for h in root.handlers)
    assert root.level == logging.DEBUG


def test_cli_mode_only_warnings():
    setup_logging(Settings(app=AppConfig(environment="test")), cli_mode=True)

    assert logging.getLogger().level == logging.WARNING


def test_file_handler(tmp_path):
    log_file = tmp_path / "insightvault.log"
    setup_logging(Settings(app=AppConfig(environment="test"), logging=LoggingConfig(file=str(log_file))))

    handlers = logging.getLogger().handlers
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in handlers)


def test_unknown_level_falls_back_to_info():
    setup_logging(Settings(app=AppConfig(environment="test"), logging=LoggingConfig(level="LOUD")))

    assert logging.getLogger().level == logging.INFO


def test_noisy_loggers_quieted():
    setup_logging(Settings(app=AppConfig(environment="test")))

    assert logging.getLogger("pymongo").level == logging.WARNING
    assert get_logger("insightvault.test") is not None
