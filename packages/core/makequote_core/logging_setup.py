"""JSON line logging for the CLI and crash capture for long benchmark runs."""

from __future__ import annotations

import faulthandler
import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import config_root

_LOGGER_NAME = "makequote"
_LOG_FILE = "makequote.log"
_FAULT_FILE = "fault.log"
# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def log_dir(base: Path | None = None) -> Path:
    path = (base or config_root()) / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _RESERVED and not k.startswith("_")}


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, and all extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts_utc": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            **_extra_fields(record),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(keep_files: int = 7, console: bool = True, directory: Path | None = None) -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(log_dir(directory) / _LOG_FILE),
        when="midnight",
        backupCount=max(2, keep_files),
        encoding="utf-8",
    )
    file_handler.setFormatter(JsonFormatter())
    handlers: list[logging.Handler] = [file_handler]
    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        handlers.append(console_handler)

    logger.setLevel(logging.INFO)
    for handler in handlers:
        logger.addHandler(handler)
    logger.info("logging configured", extra={"event": "logging_configured", "log_file": file_handler.baseFilename})
    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


def install_crash_hooks(directory: Path | None = None) -> Path:
    """Log uncaught exceptions and dump native tracebacks from FreeType or Pillow to ``fault.log``."""
    logger = get_logger()

    def _log_uncaught(exc_type, exc_value, exc_tb) -> None:
        logger.critical(
            f"uncaught {exc_type.__name__}: {exc_value}",
            exc_info=(exc_type, exc_value, exc_tb),
            extra={"event": "uncaught_exception"},
        )

    sys.excepthook = _log_uncaught
    fault_path = log_dir(directory) / _FAULT_FILE
    faulthandler.enable(file=fault_path.open("a", encoding="utf-8"))
    logger.info("crash hooks installed", extra={"event": "crash_hooks_installed", "fault_log": str(fault_path)})
    return fault_path
