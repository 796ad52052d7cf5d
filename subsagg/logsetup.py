"""A logger that writes key=value text lines.

Extra attributes are passed as ``extra={"attrs": {...}}`` and written after the message.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import TextIO

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
}


def _quote(text: str) -> str:
    if text == "" or any(c.isspace() or c in '"=' or not c.isprintable() for c in text):
        return json.dumps(text, ensure_ascii=False)
    return text


class _TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="milliseconds")
        parts = [
            f"time={timestamp}",
            f"level={_LEVEL_NAMES.get(record.levelno, record.levelname)}",
            f"msg={_quote(record.getMessage())}",
        ]
        attrs = getattr(record, "attrs", None) or {}
        parts.extend(f"{key}={_quote(str(value))}" for key, value in attrs.items())
        if record.exc_info:
            parts.append(f"err={_quote(self.formatException(record.exc_info))}")
        return " ".join(parts)


def new_text_logger(stream: TextIO, level: str) -> logging.Logger:
    """Create a logger writing to stream; level is debug, info, warn or error."""
    try:
        threshold = _LEVELS[level]
    except KeyError:
        raise ValueError("invalid logging level provided") from None
    logger = logging.Logger("subsagg", threshold)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(_TextFormatter())
    logger.addHandler(handler)
    return logger