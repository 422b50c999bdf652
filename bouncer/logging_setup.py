"""Logging configuration for the command-line entry point."""
from __future__ import annotations

import logging
import sys

_NOISY_LOGGERS = ("aiohttp", "websocket", "substrateinterface", "web3", "urllib3")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging to stderr and quiet chatty third-party loggers."""
    numeric = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric, int):
        numeric = logging.INFO

    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
