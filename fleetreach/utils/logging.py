"""
Project-wide logging setup for fleetreach.

Provides a simple, consistent console logger with optional JSON output.
Controlled via environment variables:
- FLEETREACH_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: WARNING)
- FLEETREACH_LOG_FORMAT: text|json (default: text)
"""
from __future__ import annotations

import logging
import os
from typing import Optional

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _get_level() -> int:
    level = os.getenv("FLEETREACH_LOG_LEVEL", "WARNING").upper()
    return getattr(logging, level, logging.WARNING)


def _build_formatter() -> logging.Formatter:
    fmt = os.getenv("FLEETREACH_LOG_FORMAT", "text").lower()
    if fmt == "json":
        try:
            from pythonjsonlogger import jsonlogger  # type: ignore
        except ImportError:
            logging.getLogger(__name__).warning(
                "FLEETREACH_LOG_FORMAT=json requested but python-json-logger is not installed"
            )
        else:
            return jsonlogger.JsonFormatter(
                fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={"levelname": "level", "name": "logger"},
            )
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    force: bool = False,
    *,
    level: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Configure root logging for console output (stderr).

    If a handler is already present and force is False, this is a no-op.
    An explicit level wins over FLEETREACH_LOG_LEVEL.
    """
    target_logger = logger or logging.getLogger()
    if target_logger.handlers and not force:
        return

    if force:
        for h in list(target_logger.handlers):
            target_logger.removeHandler(h)

    if level is not None:
        log_level = getattr(logging, level.upper(), logging.WARNING)
    else:
        log_level = _get_level()
    target_logger.setLevel(log_level)

    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter())
    target_logger.addHandler(handler)
