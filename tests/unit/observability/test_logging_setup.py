"""Tests for logging configuration."""

import json
import logging
import logging.handlers

import pytest
from pythonjsonlogger.json import JsonFormatter

from ivrflow.observability import setup_logging


@pytest.fixture(autouse=True)
def restore_ivrflow_logger():
    """Undo setup_logging so later tests see default propagation."""
    logger = logging.getLogger("ivrflow")
    root = logging.getLogger()
    saved = (logger.level, logger.propagate, list(logger.handlers))
    saved_root = (root.level, list(root.handlers))
    yield
    for handler in logger.handlers:
        if handler not in saved[2]:
            handler.close()
    logger.setLevel(saved[0])
    logger.propagate = saved[1]
    logger.handlers[:] = saved[2]
    root.setLevel(saved_root[0])
    root.handlers[:] = saved_root[1]


def test_setup_logging_configures_package_logger():
    setup_logging("DEBUG")

    logger = logging.getLogger("ivrflow")
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert any(isinstance(h, logging.StreamHandler) for h in logger.handlers)


def test_child_loggers_inherit_level():
    setup_logging("WARNING")

    assert logging.getLogger("ivrflow.compiler.builder").getEffectiveLevel() == logging.WARNING


def test_file_handler_writes_json(tmp_path):
    """Test the file handler writes one JSON object per record."""
    # Arrange
    log_file = tmp_path / "ivrflow.log"

    # Act
    setup_logging("INFO", log_file=str(log_file))
    logging.getLogger("ivrflow.test").info("compiled")

    # Assert
    handlers = logging.getLogger("ivrflow").handlers
    file_handlers = [h for h in handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert isinstance(file_handlers[0].formatter, JsonFormatter)
    file_handlers[0].flush()
    record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[0])
    assert record["message"] == "compiled"
    assert record["name"] == "ivrflow.test"
    assert record["levelname"] == "INFO"


def test_console_handler_stays_plain_text():
    setup_logging("INFO")

    console = logging.getLogger("ivrflow").handlers[0]
    assert not isinstance(console.formatter, JsonFormatter)
