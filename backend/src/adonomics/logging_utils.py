"""Logging setup for the API process and operator scripts."""

from __future__ import annotations

import logging
from typing import Any

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Idempotently configure the root logger with a consistent formatter."""
    global _configured
    root = logging.getLogger()
    root.setLevel(level.upper())
    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    _configured = True


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    """Log an event line with key=value pairs."""
    kv_pairs = " ".join(f"{key}={value}" for key, value in fields.items())
    logger.info("%s %s", event, kv_pairs.strip())
