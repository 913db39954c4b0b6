"""Exception types raised by the export pipeline."""
from __future__ import annotations


class ExportError(Exception):
    """Base class for failures that abort an export run."""


class ExportConfigError(ExportError, ValueError):
    """Invalid or missing configuration detected before any data is fetched."""


class ApiError(ExportError):
    """The CRM API could not be reached or returned an error response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ArchiveError(ExportError):
    """The export bundle could not be written."""
