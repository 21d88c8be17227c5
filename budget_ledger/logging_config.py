"""
Structured Logging Configuration Module

JSON log lines for ledger operations. Records carry optional structured
fields (budget code, action, resource, extra) set through ``log_action``.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional


ROOT_LOGGER_NAME = "budget_ledger"

STRUCTURED_FIELDS = ("budget_code", "action", "resource", "extra")

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record; empty structured fields are omitted"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json",
                  log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger. Calling it again replaces the handler.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        fmt: "json" for structured lines, anything else for plain text
        log_file: Append to this file instead of writing to stderr
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False
    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Logger for ``name`` inside the package namespace"""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_action(logger: logging.Logger, level: str, message: str,
               budget_code: Optional[str] = None, action: Optional[str] = None,
               resource: Optional[str] = None, extra: Optional[dict] = None):
    """
    Emit ``message`` with structured fields attached.

    Args:
        logger: Logger to emit on
        level: "debug", "info", "warning", "error" or "critical"
        message: Human-readable text
        budget_code: Budget the action belongs to
        action: Short action name, e.g. "transfer"
        resource: Affected entity, e.g. "bank:<id>"
        extra: Any further key/value details
    """
    levelno = logging.getLevelName(level.upper())
    if not logger.isEnabledFor(levelno):
        return

    record = logger.makeRecord(logger.name, levelno, __name__, 0, message, (), None)
    fields = {"budget_code": budget_code, "action": action, "resource": resource, "extra": extra}
    for field, value in fields.items():
        if value:
            setattr(record, field, value)

    logger.handle(record)
