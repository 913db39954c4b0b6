"""Process-wide logging setup for exports and the CLI."""
from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Send export logs to stderr at ``level``.

    ``LOG_LEVEL`` is used when no level is passed and ``INFO`` when neither is
    set. Calling it again after handlers exist has no effect.
    """

    logging.basicConfig(level=(level or os.getenv("LOG_LEVEL") or "INFO").upper(), format=LOG_FORMAT)
