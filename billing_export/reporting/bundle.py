"""Pack generated report files into a single ZIP archive."""
from __future__ import annotations

import logging
import re
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Iterable, Tuple

from billing_export.core.errors import ArchiveError
from billing_export.reporting.sinks import ensure_output_dir

logger = logging.getLogger(__name__)

BundleEntry = Tuple[Path, str]


def sanitize_filename(value: str) -> str:
    cleaned = re.sub(r"[^\w\-]+", "_", value.strip(), flags=re.UNICODE).strip("_")
    return cleaned or "export"


def bundle_filename(organization: str, start: datetime, end: datetime, timestamp: int) -> str:
    """``{organization}_{start}_{end}_{unix timestamp}.zip``"""

    return "{}_{}_{}_{}.zip".format(
        sanitize_filename(organization),
        start.strftime("%Y-%m-%d"),
        end.strftime("%Y-%m-%d"),
        timestamp,
    )


def build_bundle(output_path: Path, entries: Iterable[BundleEntry]) -> Path:
    """Write ``entries`` into ``output_path`` and delete the sources.

    Sources that no longer exist are skipped.
    """

    included = []
    try:
        ensure_output_dir(output_path)
        with zipfile.ZipFile(output_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for source, name in entries:
                if not source.exists():
                    logger.warning("Skipping missing bundle entry %s", source)
                    continue
                archive.write(source, arcname=name)
                included.append(source)
    except (OSError, zipfile.BadZipFile) as exc:
        raise ArchiveError(f"Could not create archive {output_path}: {exc}") from exc

    for source in included:
        source.unlink()
    logger.info("Bundled %d files into %s", len(included), output_path)
    return output_path
