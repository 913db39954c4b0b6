"""Shared utility functions for the billing export package."""
import logging
import os
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

logger = logging.getLogger(__name__)

_PROHIBITED_CHARACTERS = ('"', "'", "/", "\\", "&")


def get_config_value(key: str, default: str = "") -> str:
    """Get a configuration value from the environment."""
    return os.getenv(key, default)


def load_env_file(path: Path) -> None:
    """Copy ``KEY=value`` lines from ``path`` into ``os.environ``.

    Blank lines, ``#`` comments and keys that are already set are skipped;
    surrounding quotes are removed from values. A missing file is ignored.
    """
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.debug("Could not read env file %s: %s", path, exc)
        return

    for line in lines:
        key, separator, value = line.strip().partition("=")
        key = key.strip()
        if not separator or not key or key.startswith("#"):
            continue
        os.environ.setdefault(key, value.strip().strip("\"'"))


def round_money(value: float) -> float:
    """Round half away from zero to two decimals."""
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_number(value: float) -> str:
    """Format an amount with a dot separator and exactly two decimals."""
    return f"{round_money(value) + 0.0:.2f}"


def sanitize_text(value: str) -> str:
    """Strip characters the Plus-Minus importer rejects."""
    for character in _PROHIBITED_CHARACTERS:
        value = value.replace(character, "")
    return value


def iso_date(value: str) -> str:
    """Return the ``YYYY-MM-DD`` part of an ISO timestamp without timezone shifting."""
    return value[:10] if value else ""
