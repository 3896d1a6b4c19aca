"""Log level handling for the ``featurebook`` logger hierarchy."""

from __future__ import annotations

import logging

PACKAGE_LOGGER = "featurebook"


def resolve_level(level: int | str) -> int:
    """Translate ``"debug"``/``"INFO"``/``10`` style values into a logging level."""

    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if isinstance(resolved, int):
        return resolved
    raise ValueError(f"unknown log level: {level!r}")


def configure_logging(level: int | str = "INFO") -> logging.Logger:
    """Apply ``level`` to the package logger without touching the root logger."""

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(resolve_level(level))
    return logger


__all__ = ["PACKAGE_LOGGER", "configure_logging", "resolve_level"]
