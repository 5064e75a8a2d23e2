"""Logging configuration for the command line."""

from __future__ import annotations

import logging
import sys


def log_level_for(verbosity: int, debug: bool) -> int:
    """Map CLI flags to a logging level."""
    if debug:
        return logging.DEBUG
    if verbosity >= 3:
        return logging.INFO
    return logging.ERROR


def setup_logging(level: int = logging.ERROR) -> None:
    """Configure logging to stderr."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
