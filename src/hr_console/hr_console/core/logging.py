from __future__ import annotations

import logging
import sys
from datetime import datetime

# "hr_console" when installed, the dotted source path when imported from the repo root
PACKAGE_LOGGER = __name__.rsplit(".", 2)[0]


class ConsoleFormatter(logging.Formatter):
    """One readable line per record: time | level | logger | message."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        message = f"{timestamp} | {record.levelname:8} | {record.name} | {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def configure_logging(level: str = "INFO", *, extra_loggers: tuple[str, ...] = ()) -> None:
    """Attach a single stderr handler to the package logger (idempotent)."""

    numeric_level = getattr(logging, str(level).upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ConsoleFormatter())
    handler.setLevel(numeric_level)

    for name in (PACKAGE_LOGGER, *extra_loggers):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.addHandler(handler)
        logger.setLevel(numeric_level)
        logger.propagate = False

    # mysql-connector is chatty at DEBUG
    logging.getLogger("mysql.connector").setLevel(logging.WARNING)
