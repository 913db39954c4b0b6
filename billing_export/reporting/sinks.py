"""Writers that serialize report rows to CSV and Excel files."""
from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from billing_export.core.models import Cell

LEGACY_ENCODING = "cp1251"
HEADER_FILL = "FFE0E0E0"
MAX_COLUMN_WIDTH = 80


def ensure_output_dir(output_path: Path) -> None:
    """Create parent folders for sink outputs when missing."""

    output_path.parent.mkdir(parents=True, exist_ok=True)


def write_csv(
    rows: Iterable[Sequence[Cell]], output_path: Path, headers: Optional[Sequence[str]] = None
) -> Path:
    """Write rows as UTF-8, comma separated CSV with standard quoting."""

    ensure_output_dir(output_path)
    with output_path.open("w", newline="", encoding="utf-8") as csvfile:
        writer = csv.writer(csvfile)
        if headers:
            writer.writerow(headers)
        writer.writerows(rows)
    return output_path


def _legacy_cell(value: Cell) -> Cell:
    if not isinstance(value, str):
        return value
    return " ".join(value.replace(";", "").splitlines())


def to_legacy_csv(rows: Iterable[Sequence[Cell]], headers: Optional[Sequence[str]] = None) -> bytes:
    """Render rows for the accounting import tool.

    Semicolon separated, without any double quotes, CRLF line endings and
    Windows-1251 encoded. Characters missing from the code page become ``?``.
    Semicolons and line breaks inside a value are dropped so every row keeps
    its column count.
    """

    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", lineterminator="\n")
    if headers:
        writer.writerow(headers)
    writer.writerows([_legacy_cell(value) for value in row] for row in rows)
    content = buffer.getvalue().replace('"', "").replace("\n", "\r\n")
    return content.encode(LEGACY_ENCODING, errors="replace")


def write_legacy_csv(
    rows: Iterable[Sequence[Cell]], output_path: Path, headers: Optional[Sequence[str]] = None
) -> Path:
    ensure_output_dir(output_path)
    output_path.write_bytes(to_legacy_csv(rows, headers))
    return output_path


def write_excel(
    rows: Iterable[Sequence[Cell]],
    output_path: Path,
    headers: Sequence[str],
    sheet_title: str = "Sheet1",
) -> Path:
    """Write rows to an Excel workbook with a styled header and sized columns."""

    ensure_output_dir(output_path)
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_title

    sheet.append(list(headers))
    bold = Font(bold=True)
    fill = PatternFill(fill_type="solid", start_color=HEADER_FILL, end_color=HEADER_FILL)
    for cell in sheet[1]:
        cell.font = bold
        cell.fill = fill

    widths: List[int] = [len(str(header)) for header in headers]
    for row in rows:
        sheet.append(list(row))
        for index, value in enumerate(row):
            length = len(str(value))
            if index >= len(widths):
                widths.append(length)
            elif length > widths[index]:
                widths[index] = length

    for index, width in enumerate(widths, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = min(width + 2, MAX_COLUMN_WIDTH)

    workbook.save(output_path)
    return output_path
