"""Logging helpers."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def configure_logging(debug: bool = False) -> None:
    """Configure application logging once for CLI usage."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
    # elastic_transport logs every request at INFO.
    logging.getLogger("elastic_transport").setLevel(logging.NOTSET if debug else logging.WARNING)


def get_logger() -> logging.Logger:
    """Return the module logger used across the package."""
    return logging.getLogger("leak_extractor")
