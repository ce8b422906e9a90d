# hashmark/logging/logger.py
"""
Logger factory for hashmark.

All modules call get_logger(__name__). Loggers live under the "hashmark"
namespace and share a single stderr handler attached to the package logger,
so operator diagnostics never mix with command output on stdout.
"""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER_NAME = "hashmark"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DEFAULT_DATEFMT = "%H:%M:%S"

_configured = False


def _ensure_handler() -> logging.Logger:
    global _configured

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not _configured:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, DEFAULT_DATEFMT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        root.propagate = False
        _configured = True
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger under the hashmark namespace.

    Names outside the namespace (e.g. "tests.foo") are nested under it.
    """
    _ensure_handler()
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(level: str | int = "INFO") -> None:
    """Set the level of the package logger (e.g. "DEBUG", "WARNING")."""
    root = _ensure_handler()
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    root.setLevel(level)


__all__ = ["get_logger", "configure_logging", "ROOT_LOGGER_NAME"]
