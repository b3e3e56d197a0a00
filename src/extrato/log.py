"""Logging setup for the ``extrato`` package.

Library modules call ``get_logger(__name__)`` and never attach handlers. The
CLI calls ``configure_logging`` once at startup, which attaches a single
``RichHandler`` writing to stderr.
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

PKG_LOGGER_NAME = "extrato"
LEVEL_ENV_VAR = "EXTRATO_LOG_LEVEL"

_configured = False


def parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if level is None:
        level = os.getenv(LEVEL_ENV_VAR)
    if isinstance(level, str):
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
    return logging.WARNING


def configure_logging(level: int | str | None = None) -> None:
    """Attach the stderr handler to the package logger. Later calls only adjust the level."""
    global _configured
    logger = logging.getLogger(PKG_LOGGER_NAME)
    logger.setLevel(parse_level(level))
    if _configured:
        return

    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(PKG_LOGGER_NAME)
    if not _configured and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
