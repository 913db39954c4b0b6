"""Billing exports: payments, Plus-Minus sales and controls reports from UCRM."""
from billing_export.core import (
    ExportConfigError,
    ExportError,
    configure_logging,
    resolve_period,
)
from billing_export.processing import (
    ExportOptions,
    LabelConfig,
    LabelMap,
    PaymentRowBuilder,
    SalesRowBuilder,
    build_label_map,
    find_missing_numbers,
    run_export,
)
from billing_export.reporting import build_bundle, write_csv, write_excel, write_legacy_csv

__all__ = [
    "ExportConfigError",
    "ExportError",
    "ExportOptions",
    "LabelConfig",
    "LabelMap",
    "PaymentRowBuilder",
    "SalesRowBuilder",
    "build_bundle",
    "build_label_map",
    "configure_logging",
    "find_missing_numbers",
    "resolve_period",
    "run_export",
    "write_csv",
    "write_excel",
    "write_legacy_csv",
]
