"""Logging setup utilities."""
from __future__ import annotations

import logging
import os
from typing import Optional

PACKAGE_LOGGER = 'iataplaces'

# httpx and httpcore log every request at INFO; keep them at WARNING.
NOISY_LOGGERS = ('httpx', 'httpcore')


def configure_logging(level: Optional[int] = None) -> logging.Logger:
    """Set up console logging for the iataplaces CLI.

    ``IATAPLACES_DEBUG=true`` switches the package logger to DEBUG unless
    an explicit ``level`` is given.
    """
    if level is None:
        debug_mode = os.getenv('IATAPLACES_DEBUG', 'false').lower() == 'true'
        level = logging.DEBUG if debug_mode else logging.INFO

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s'
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    return logger
