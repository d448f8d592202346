"""
Structured logging for the insights service.

Every module grabs its logger via ``get_logger(__name__)``; handlers are
attached once per logger name.  Records still propagate, so pytest's
caplog and any root handler see them too.
"""
from __future__ import annotations

import logging
import sys

from src.core.config import get_settings

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: str | None) -> int:
    name = (level or get_settings().log_level).upper()
    return getattr(logging, name, logging.INFO)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(_resolve_level(level))
    return logger
