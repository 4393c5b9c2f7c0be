# SPDX-License-Identifier: GPL-3.0-only
"""Logging setup shared by every module."""

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return

    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    _configured = True


def get_logger(name: str = None) -> logging.Logger:
    """Return a logger configured with the application format.

    Args:
        name: Logger name, usually ``__name__``.

    Returns:
        Configured logger.
    """
    _configure_root()
    return logging.getLogger(name)
