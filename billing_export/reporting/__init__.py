"""Export destinations for report rows."""
from billing_export.reporting.bundle import build_bundle, bundle_filename
from billing_export.reporting.sinks import write_csv, write_excel, write_legacy_csv

__all__ = ["build_bundle", "bundle_filename", "write_csv", "write_excel", "write_legacy_csv"]
