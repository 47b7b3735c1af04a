"""Logging setup for applications embedding imgcompress."""

import logging
import sys

LOGGER_NAME = "imgcompress"


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure and return the package logger.

    Idempotent: calling it again only updates the level, so repeated imports
    (e.g. in tests) do not stack handlers.
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if any(getattr(h, "_imgcompress", False) for h in logger.handlers):
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
    )

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    stream_handler._imgcompress = True

    logger.addHandler(stream_handler)
    logger.propagate = False

    return logger
