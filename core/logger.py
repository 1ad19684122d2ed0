"""Process-wide JSON logging for the SDK and the runner.

Adapted from the bot's original JSON logger: one shared ``botapi`` logger,
one JSON object per line.  Records go to stdout and, unless
``BOTAPI_LOG_DIR`` is set to an empty string, to a size-rotated
``botapi.log`` in that directory (``logs`` by default).
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import List, Optional


class _JsonFormatter(logging.Formatter):
    """Render a record as one line of JSON.

    Context passed through ``extra`` becomes top-level keys next to the
    fixed ones, e.g.::

        logger.warning("Failed to get updates, retrying",
                       extra={"offset": 42, "retry_in": 3.0})

    gives ``{"timestamp": ..., "level": "WARNING", ..., "offset": 42, "retry_in": 3.0}``.
    """

    # Attributes every LogRecord carries; anything else came from ``extra``.
    _BUILTIN_ATTRS: frozenset[str] = frozenset(vars(logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None,
    )))

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func_name": record.funcName,
        }
        entry.update(
            (key, value) for key, value in vars(record).items()
            if key not in self._BUILTIN_ATTRS and key not in entry
        )
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _build_handlers(level: int, log_dir: str, log_file: str, max_bytes: int, backups: int) -> List[logging.Handler]:
    """Console handler, plus a rotating file handler when *log_dir* is set."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(RotatingFileHandler(
            os.path.join(log_dir, log_file),
            maxBytes=max_bytes,
            backupCount=backups,
            encoding="utf-8",
        ))

    formatter = _JsonFormatter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


class BotLogger:
    """Owner of the shared ``botapi`` logger.

    Modules grab it once at import time::

        logger = BotLogger.get_logger()
        logger.info("Polling started", extra={"offset": 0})
    """

    _instance: Optional["BotLogger"] = None
    _logger: Optional[logging.Logger] = None

    _LOGGER_NAME: str = "botapi"
    _LOG_DIR: str = os.environ.get("BOTAPI_LOG_DIR", "logs")
    _LOG_FILE: str = "botapi.log"
    _MAX_BYTES: int = 5 * 1024 * 1024
    _BACKUP_COUNT: int = 5

    def __new__(cls, level: int = logging.INFO) -> "BotLogger":
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._logger = cls._configure(level)
            cls._instance = instance
        return cls._instance

    @classmethod
    def _configure(cls, level: int) -> logging.Logger:
        logger = logging.getLogger(cls._LOGGER_NAME)
        logger.setLevel(level)
        # Handlers survive a module reload; attach them once.
        if not logger.handlers:
            for handler in _build_handlers(level, cls._LOG_DIR, cls._LOG_FILE, cls._MAX_BYTES, cls._BACKUP_COUNT):
                logger.addHandler(handler)
        return logger

    @staticmethod
    def get_logger(level: int = logging.INFO) -> logging.Logger:
        """Return the shared logger; *level* only counts on the first call."""
        instance = BotLogger(level)
        assert instance._logger is not None
        return instance._logger

    @staticmethod
    def set_level(level: int) -> None:
        """Apply *level* to the shared logger and each of its handlers."""
        logger = BotLogger.get_logger()
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

    def cleanup(self) -> None:
        """Flush, close and detach every handler (used at shutdown)."""
        if self._logger is None:
            return
        for handler in list(self._logger.handlers):
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)
