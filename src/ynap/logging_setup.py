"""Logging configuration for the ``ynap`` package.

Library modules only call ``get_logger(__name__)``. The CLI calls
``configure_logging`` once at startup to attach a single stderr handler.
"""
import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "ynap"
_CONFIGURED = False
_HANDLER: logging.StreamHandler | None = None


def _level_from_name(level: str) -> int | None:
    level = level.strip().upper()
    if level.isdigit():
        return int(level)
    numeric = getattr(logging, level, None)
    return numeric if isinstance(numeric, int) else None


def parse_level(level: int | str | None) -> int:
    """Resolve ``level``; fall back to ``YNAP_LOG_LEVEL``, then WARNING."""
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        numeric = _level_from_name(level)
        if numeric is not None:
            return numeric
    env_val = os.getenv("YNAP_LOG_LEVEL")
    if env_val:
        numeric = _level_from_name(env_val)
        if numeric is not None:
            return numeric
    return logging.WARNING


class _StderrHandler(logging.StreamHandler):
    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value):
        pass


def configure_logging(level: int | str | None = None, *, stream: IO[str] | None = None) -> None:
    """Attach one StreamHandler to the ``ynap`` logger.

    Without ``stream`` the handler writes to whatever ``sys.stderr`` is at
    emit time. Later calls adjust the level; passing ``stream`` replaces the
    handler.
    """
    global _CONFIGURED, _HANDLER
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    logger.setLevel(parse_level(level))
    if _CONFIGURED and stream is None:
        return

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler) or h is _HANDLER:
            logger.removeHandler(h)

    _HANDLER = logging.StreamHandler(stream) if stream is not None else _StderrHandler()
    _HANDLER.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(_HANDLER)
    logger.propagate = False
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
