"""Tests for the JSON logger."""

import json
import logging
import sys
import os
from logging.handlers import RotatingFileHandler

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.logger import BotLogger, _JsonFormatter, _build_handlers


def _record(msg: str = "Polling for updates", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="botapi", level=logging.WARNING, pathname=__file__, lineno=1,
        msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def test_standard_fields(self) -> None:
        entry = json.loads(_JsonFormatter().format(_record()))
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "botapi"
        assert entry["message"] == "Polling for updates"
        assert "timestamp" in entry

    def test_extra_fields_merged(self) -> None:
        entry = json.loads(_JsonFormatter().format(_record(offset=42, api_endpoint="getUpdates")))
        assert entry["offset"] == 42
        assert entry["api_endpoint"] == "getUpdates"

    def test_exception_included(self) -> None:
        try:
            raise ConnectionError("down")
        except ConnectionError:
            record = _record()
            record.exc_info = sys.exc_info()
        entry = json.loads(_JsonFormatter().format(record))
        assert "ConnectionError: down" in entry["exc_info"]


class TestBotLogger:
    def test_singleton(self) -> None:
        assert BotLogger.get_logger() is BotLogger.get_logger()
        assert BotLogger.get_logger().name == "botapi"

    def test_set_level(self) -> None:
        logger = BotLogger.get_logger()
        original = logger.level
        try:
            BotLogger.set_level(logging.DEBUG)
            assert logger.level == logging.DEBUG
            assert all(h.level == logging.DEBUG for h in logger.handlers)
        finally:
            BotLogger.set_level(original)


class TestBuildHandlers:
    def test_console_and_rotating_file(self, tmp_path) -> None:
        handlers = _build_handlers(logging.DEBUG, str(tmp_path / "logs"), "bot.log", 1024, 2)
        assert len(handlers) == 2
        rotating = handlers[1]
        assert isinstance(rotating, RotatingFileHandler)
        assert rotating.baseFilename == str(tmp_path / "logs" / "bot.log")
        assert rotating.maxBytes == 1024
        assert rotating.backupCount == 2
        assert all(h.level == logging.DEBUG for h in handlers)
        assert all(isinstance(h.formatter, _JsonFormatter) for h in handlers)
        rotating.close()

    def test_empty_log_dir_means_console_only(self) -> None:
        handlers = _build_handlers(logging.INFO, "", "bot.log", 1024, 2)
        assert len(handlers) == 1
        assert type(handlers[0]) is logging.StreamHandler
