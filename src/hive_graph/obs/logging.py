"""Structured logging configuration."""

from __future__ import annotations

import logging
import os
import sys


class StructuredFormatter(logging.Formatter):
    """Formats records as `key=value` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, object] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        trace_id = getattr(record, "trace_id", None)
        if trace_id is not None:
            fields["trace_id"] = trace_id

        line = " ".join(f"{key}={value}" for key, value in fields.items())
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def get_logger(name: str) -> logging.Logger:
    """Return a logger with a stdout handler attached once.

    Level is DEBUG when `HIVE_GRAPH_ENV=dev`, INFO otherwise.
    """

    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        env = os.getenv("HIVE_GRAPH_ENV", "prod")
        logger.setLevel(logging.DEBUG if env == "dev" else logging.INFO)
    return logger
