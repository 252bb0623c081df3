"""Logging setup shared by every entry point."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging.

    Falls back to INFO when level is missing or not a valid level name.
    Modules log with extra={...}; the format above only prints the message.
    """
    resolved = getattr(logging, (level or "INFO").upper(), None)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logging.basicConfig(format=LOG_FORMAT, level=resolved, force=True)
