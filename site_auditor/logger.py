# === FILE: site_auditor/logger.py ===
"""Logging setup for **SiteAuditor**.

All modules write through one project logger (``SiteAuditor``) or one of its
children (``SiteAuditor.crawler``, ``SiteAuditor.psi`` ...)::

    from site_auditor.logger import logger, get_logger
    logger.info("Starting whole site audit for %s", url)
    log = get_logger("crawler")

Handlers live on the project logger only; children propagate to it, so a
single :func:`configure` call (the CLI does it from ``--log-*`` options)
controls every component.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, TextIO, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteAuditor"

# aiohttp logs every redirect and connection reset at DEBUG/INFO
_NOISY_LOGGERS: Final[tuple[str, ...]] = ("aiohttp.client", "aiohttp.internal", "aiohttp.access")

_LevelT = Union[int, str]


def _stream_handler(stream: TextIO, fmt: str) -> logging.StreamHandler:
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _file_handler(file: Path | str, fmt: str) -> RotatingFileHandler:
    path = Path(file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def get_logger(component: str | None = None) -> logging.Logger:
    """Project logger, or its child ``SiteAuditor.<component>``."""
    if not component:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{component}")


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    stream: TextIO | None = None,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the project logger.

    Parameters
    ----------
    level
        Numeric or textual level, e.g. ``"DEBUG"``. aiohttp's own loggers
        never go below WARNING.
    log_file
        Optional logfile (rotated at 5 MiB, 3 backups).
    log_format
        Format string for :class:`logging.Formatter`.
    stream
        Console stream, stdout by default.
    replace_handlers
        Close and drop handlers installed by a previous call.
    """
    lg = get_logger()
    lg.setLevel(level)

    if replace_handlers:
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()

    lg.addHandler(_stream_handler(stream or sys.stdout, log_format))
    if log_file is not None:
        lg.addHandler(_file_handler(log_file, log_format))
    lg.propagate = False

    threshold = max(lg.level, logging.WARNING)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(threshold)
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Shortcut used by the CLI: always replaces existing handlers."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


logger: logging.Logger = init_logging()

__all__ = ["logger", "get_logger", "configure", "init_logging", "DEFAULT_FORMAT", "LOGGER_NAME"]
