"""Observability utilities: logging setup.

This module configures standard logging and `structlog` so that callers who
prefer structured loggers get the same level filtering as the stdlib loggers
used inside the package.
"""

from __future__ import annotations

import logging

import structlog

PACKAGE_LOGGER = "memory_cache"


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Parameters
    ----------
    level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".

    Behavior
    --------
    - Initializes Python's logging with the requested level.
    - Applies the level to the package logger, so eviction and sweep events
      show up at DEBUG.
    - Configures structlog with a filtering bound logger at the same level.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format=("%(asctime)s %(levelname)s %(name)s - %(message)s"),
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(numeric_level)

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
    )
