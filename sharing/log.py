"""Logging for the aa_sharing logger tree (``aa_sharing.api``, ``aa_sharing.wallet``, ...)."""

import logging
from typing import Optional, Union

LOGGER_NAME = "aa_sharing"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_handler: Optional[logging.Handler] = None


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Attach the package handler once and set the level; repeat calls only change the level."""
    global _handler

    logger = logging.getLogger(LOGGER_NAME)
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # app factories in tests call this repeatedly
    logger.handlers = [_handler]
    logger.setLevel(level)
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)
