"""Logging setup shared by the HTTP server and the preview window."""

from __future__ import annotations

import logging
import os

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%H:%M:%S"


def configure_logging(
    *,
    level: str | None = None,
    format: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
) -> logging.Logger:
    """Set up root handlers and the ``particle_engine`` logger level.

    ``level`` wins over ``PARTICLE_ENGINE_LOG_LEVEL``; INFO when neither is set.
    Returns the package logger so callers can align other loggers with it.
    """
    resolved = (level or os.getenv("PARTICLE_ENGINE_LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(level=resolved, format=format, datefmt=datefmt)

    package_logger = logging.getLogger("particle_engine")
    package_logger.setLevel(resolved)
    package_logger.debug("Logging configured at %s", resolved)
    return package_logger
