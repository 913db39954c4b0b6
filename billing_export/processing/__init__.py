"""Turning billing records into report rows."""
from billing_export.processing.gaps import find_missing_numbers
from billing_export.processing.labels import LabelConfig, LabelMap, build_label_map
from billing_export.processing.payments import PaymentRowBuilder
from billing_export.processing.pipeline import ExportOptions, run_export
from billing_export.processing.sales import SalesRowBuilder

__all__ = [
    "find_missing_numbers",
    "LabelConfig",
    "LabelMap",
    "build_label_map",
    "PaymentRowBuilder",
    "ExportOptions",
    "run_export",
    "SalesRowBuilder",
]
