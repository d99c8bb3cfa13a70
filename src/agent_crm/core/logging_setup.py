"""Logging configuration with RRN redaction."""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

from agent_crm.core.config import LoggingConfig

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_LOG_FILE_SIZE = 10 * 1024 * 1024
BACKUP_COUNT = 5

RRN_IN_TEXT_PATTERN = re.compile(r"\b(\d{6})-?([1-8])\d{6}\b")

_logging_configured = False


class ResidentIdRedactingFormatter(logging.Formatter):
    """Formatter that masks anything shaped like an RRN before it is written."""

    def format(self, record: logging.LogRecord) -> str:
        return RRN_IN_TEXT_PATTERN.sub(r"\1-\2******", super().format(record))


def configure_logging(config: LoggingConfig) -> None:
    """Install console and rotating file handlers on the package logger.

    Safe to call repeatedly; handlers from an earlier call are replaced.
    """
    global _logging_configured

    numeric_level = getattr(logging, config.level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {config.level}")

    package_logger = logging.getLogger("agent_crm")
    if _logging_configured:
        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
            handler.close()
    package_logger.setLevel(logging.DEBUG)

    formatter = ResidentIdRedactingFormatter(DEFAULT_LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if config.file:
        log_file = Path(config.file)
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=str(log_file),
                maxBytes=MAX_LOG_FILE_SIZE,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as error:
            package_logger.warning("Failed to open log file %s: %s. Logging to console only.", log_file, error)
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)

    _logging_configured = True
