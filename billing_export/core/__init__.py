"""Core building blocks for the billing export package."""
from billing_export.core.errors import ApiError, ArchiveError, ExportConfigError, ExportError
from billing_export.core.logging import configure_logging
from billing_export.core.models import Document, DocumentType, LineItem, Payment, PaymentType
from billing_export.core.periods import PERIOD_CHOICES, resolve_period

__all__ = [
    "ApiError",
    "ArchiveError",
    "ExportConfigError",
    "ExportError",
    "configure_logging",
    "Document",
    "DocumentType",
    "LineItem",
    "Payment",
    "PaymentType",
    "PERIOD_CHOICES",
    "resolve_period",
]
