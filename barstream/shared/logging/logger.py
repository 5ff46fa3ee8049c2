"""
BarStream – Logging configuration
==================================
Configura logging legible para desarrollo. Todos los loggers del motor
cuelgan del namespace `barstream.` para poder filtrarlos en bloque.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional


def setup_logging(level: int | str = logging.INFO, stream: Optional[IO[str]] = None) -> None:
    """Configura el root logger una sola vez al arranque."""
    fmt = (
        "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
    )
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))

    root = logging.getLogger()
    # Evitar handlers duplicados si se llama más de una vez
    if not root.handlers:
        root.addHandler(handler)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Fábrica de loggers con namespace prefijado."""
    return logging.getLogger(f"barstream.{name}")
