"""
Centralized logging configuration.

Provides consistent logging setup for the API process.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional


def setup_logging(level: Optional[int | str] = None, json_format: Optional[bool] = None) -> None:
    """Configure root logger with consistent formatting.

    Args:
        level: Logging level. Defaults to LOG_LEVEL from the environment (INFO).
        json_format: If True, emit JSON-like log lines. Defaults to LOG_JSON.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    if json_format is None:
        json_format = os.getenv("LOG_JSON", "").strip().lower() in {"1", "true", "yes"}

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if json_format:
        formatter = logging.Formatter(
            '{"timestamp":"%(asctime)s","level":"%(levelname)s",'
            '"module":"%(name)s","message":"%(message)s"}',
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(name)-32s] %(levelname)-7s %(message)s",
            datefmt="%H:%M:%S",
        )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)
