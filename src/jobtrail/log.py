"""Logging setup for the jobtrail package.

Only the ``jobtrail`` logger is configured, never the root logger, so an
embedding application keeps control of its own handlers. Records go to stderr
so command output on stdout stays clean.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import date
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "jobtrail"

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_HANDLER_TAG = "_jobtrail_handler"
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a jobtrail module, configuring the package on first use."""
    if not _configured:
        configure_logging()
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def _level(value: Optional[str]) -> int:
    name = (value or os.environ.get("JOBTRAIL_LOG_LEVEL") or "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: Optional[str] = None, log_dir: Optional[str] = None) -> logging.Logger:
    """(Re)install the package handlers.

    ``level`` and ``log_dir`` fall back to ``JOBTRAIL_LOG_LEVEL`` and
    ``JOBTRAIL_LOG_DIR``. Calling this again replaces the handlers installed by
    an earlier call.
    """
    global _configured
    _configured = True

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(_level(level))
    for handler in [h for h in logger.handlers if getattr(h, _HANDLER_TAG, False)]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    setattr(console, _HANDLER_TAG, True)
    logger.addHandler(console)

    directory = log_dir if log_dir is not None else os.environ.get("JOBTRAIL_LOG_DIR", "").strip()
    if directory:
        try:
            path = Path(directory)
            path.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path / f"jobtrail_{date.today().isoformat()}.log", encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not open log directory %s: %s", directory, exc)
        else:
            file_handler.setFormatter(formatter)
            setattr(file_handler, _HANDLER_TAG, True)
            logger.addHandler(file_handler)
    return logger
