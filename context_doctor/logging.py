"""Logging setup for context-doctor commands."""

from __future__ import annotations

import logging

_LOGGER_NAME = "context_doctor"


def configure_logging(*, verbose: bool = False) -> logging.Logger:
    """Configure the package logger with a single stderr handler."""
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked repeatedly.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[context-doctor] %(levelname)s %(message)s"))
    logger.addHandler(handler)

    return logger


__all__ = ["configure_logging"]
