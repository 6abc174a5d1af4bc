"""Logging configuration for the ``nebula`` logger tree."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler

from nebula.config import APP_NAME, Settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """Configure the ``nebula`` logger once; later calls return it unchanged."""
    settings = settings or Settings()
    logger = logging.getLogger(APP_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(settings.log_level.upper())
    logger.propagate = False
    fmt = logging.Formatter(LOG_FORMAT)

    ch = logging.StreamHandler(sys.stderr)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            settings.log_file, maxBytes=2 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    logger.debug("Logging initialized. log_file=%s", settings.log_file)
    return logger
