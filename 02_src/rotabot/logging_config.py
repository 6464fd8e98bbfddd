"""JSON logging for the bot process."""

import json
import logging
import logging.config
import logging.handlers
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from .config import DEFAULT_LOG_PATH

REDACTED = "<redacted>"


class JSONFormatter(logging.Formatter):
    """One JSON object per line; secrets are masked in message and traceback."""

    def __init__(self, redact: Iterable[str] = ()):
        super().__init__()
        self._secrets = [s for s in redact if s]

    def _mask(self, value: str) -> str:
        for secret in self._secrets:
            value = value.replace(secret, REDACTED)
        return value

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": self._mask(record.getMessage()),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            entry["exception"] = self._mask(self.formatException(record.exc_info))

        # user id, command, step... passed via extra={"context": ...}
        if hasattr(record, "context"):
            entry["context"] = record.context

        return self._mask(json.dumps(entry, default=str, ensure_ascii=False))


def logging_config(
    log_level: str = "INFO",
    log_file: str | Path | None = None,
    redact: Iterable[str] = (),
) -> dict:
    """Build the ``dictConfig`` mapping: rotating JSON file plus stdout."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "rotabot.logging_config.JSONFormatter",
                "redact": list(redact),
            },
        },
        "handlers": {
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": str(log_file or DEFAULT_LOG_PATH),
                "maxBytes": 10 * 1024 * 1024,  # 10 MB
                "backupCount": 5,
                "formatter": "json",
                "encoding": "utf-8",
            },
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            # httpx logs every request URL, and Bot API URLs embed the token
            "httpx": {"level": "WARNING"},
        },
        "root": {
            "level": log_level.upper(),
            "handlers": ["file", "console"],
        },
    }


def setup_logging(
    log_level: str = "INFO",
    log_file: str | Path | None = None,
    redact: Iterable[str] = (),
) -> None:
    """
    Configure process-wide logging.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        log_file: Defaults to 04_logs/app.log.
        redact: Strings (the bot token) that must never reach a log line.
    """
    Path(log_file or DEFAULT_LOG_PATH).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(logging_config(log_level, log_file, redact))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
