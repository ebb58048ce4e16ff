"""Logging configuration for the CLI entry points."""
from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class ConsoleHandler(logging.StreamHandler):
    """stderr handler installed by ``configure_logging``."""


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging; unknown level names fall back to INFO.

    Repeated calls replace the previously installed console handler and
    leave handlers added by anything else in place.
    """
    numeric = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric, int):
        numeric = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, ConsoleHandler):
            root.removeHandler(handler)

    handler = ConsoleHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(numeric)

    # aiohttp is chatty at DEBUG
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
