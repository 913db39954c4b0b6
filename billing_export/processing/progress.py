"""Progress reporting for long running exports.

The pipeline only knows the ``ProgressReporter`` protocol. The file adapter
writes the latest state to a small JSON file that a separate process can
poll; the file is overwritten on every update and removed when the export
ends.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_FILE = Path("data/export_progress.json")


class ProgressReporter(Protocol):
    def report(self, step: int, total: int, message: str) -> None:
        ...


class NullProgressReporter:
    """Discard progress updates."""

    def report(self, step: int, total: int, message: str) -> None:
        return None


class FileProgressReporter:
    """Persist the latest progress record as JSON for pollers."""

    def __init__(self, path: Path = DEFAULT_PROGRESS_FILE) -> None:
        self.path = path

    def report(self, step: int, total: int, message: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"step": step, "total": total, "message": message}
        self.path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        logger.info("[%d/%d] %s", step, total, message)

    def close(self) -> None:
        if self.path.exists():
            self.path.unlink()

    def __enter__(self) -> "FileProgressReporter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def read_progress(path: Path = DEFAULT_PROGRESS_FILE) -> Optional[Dict[str, Any]]:
    """Return the current progress record, or ``None`` when no export is running."""

    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except ValueError:
        # A poll can land mid-write.
        logger.debug("Progress file %s is being rewritten", path)
        return None
