"""Logging configuration shared by the API and the CLI."""

from __future__ import annotations

import logging
import sys

from wishlist_backend.config import settings

_FORMAT = "[ %(asctime)s ] : %(levelname)s : %(name)s : %(message)s"


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach a stdout handler to the ``wishlist_backend`` logger.

    Calling this more than once only updates the level; handlers are never
    duplicated.
    """
    logger = logging.getLogger("wishlist_backend")
    logger.setLevel(level or settings.log_level)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    return logger
