"""Tests for structlog configuration driven by procguard settings."""

import json
import logging

import pytest
import structlog

from procguard.config import create_config_manager
from procguard.config.settings import settings
from procguard.utils.logger import configure_structlog, get_logger


@pytest.fixture
def restore_logging():
    """Put the root logger, structlog and the global settings back afterwards."""
    handlers = logging.root.handlers[:]
    level = logging.root.level
    yield
    logging.root.handlers = handlers
    logging.root.setLevel(level)
    structlog.reset_defaults()
    settings.attach(None)


def _last_json_line(text: str) -> dict:
    lines = [line for line in text.splitlines() if line.strip()]
    return json.loads(lines[-1])


def test_configured_level_and_format_are_applied(restore_logging, temp_config_dir, capsys):
    """log_level and log_format from the config file drive the root logger."""
    (temp_config_dir / "config.json").write_text(
        json.dumps({"log_level": "debug", "log_format": "json"})
    )
    manager = create_config_manager(temp_config_dir)
    manager.initialize()
    settings.attach(manager)

    configure_structlog()
    logging.getLogger("procguard.tests").debug("hello")

    assert logging.root.level == logging.DEBUG
    record = _last_json_line(capsys.readouterr().err)
    assert record["event"] == "hello"
    assert record["level"] == "debug"


def test_structlog_events_use_configured_renderer(restore_logging, temp_config_dir, capsys):
    (temp_config_dir / "config.json").write_text(json.dumps({"log_format": "json"}))
    manager = create_config_manager(temp_config_dir)
    manager.initialize()
    settings.attach(manager)

    configure_structlog()
    get_logger("tests.renderer").info("Process started", pid=42)

    record = _last_json_line(capsys.readouterr().err)
    assert record["event"] == "Process started"
    assert record["pid"] == 42
    assert record["logger"] == "procguard.tests.renderer"


def test_environment_variables_apply_without_manager(restore_logging, monkeypatch):
    monkeypatch.setenv("PROCGUARD_LOG_LEVEL", "ERROR")

    configure_structlog()

    assert logging.root.level == logging.ERROR


def test_explicit_arguments_win_over_settings(restore_logging, temp_config_dir, capsys):
    (temp_config_dir / "config.json").write_text(
        json.dumps({"log_level": "DEBUG", "log_format": "json"})
    )
    manager = create_config_manager(temp_config_dir)
    manager.initialize()
    settings.attach(manager)

    configure_structlog(log_format="pretty", log_colors=False, level="WARNING")
    logging.getLogger("procguard.tests").warning("plain")

    assert logging.root.level == logging.WARNING
    err = capsys.readouterr().err
    assert "plain" in err
    assert not err.lstrip().startswith("{")


def test_defaults_without_config(restore_logging):
    configure_structlog()

    assert logging.root.level == logging.INFO
