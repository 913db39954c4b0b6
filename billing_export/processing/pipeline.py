"""Export pipeline: fetch records, build report rows and bundle the files."""
from __future__ import annotations

import logging
import tempfile
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from billing_export.core.errors import ExportConfigError
from billing_export.core.models import Document, DocumentType, ExportData
from billing_export.core.periods import PERIOD_CHOICES, resolve_period
from billing_export.core.utils import get_config_value
from billing_export.ingestion.loader import (
    LookupCache,
    download_document_pdf,
    enrich_payments,
    load_export_data,
)
from billing_export.processing.controls import CONTROL_HEADERS, build_control_rows
from billing_export.processing.gaps import find_missing_numbers
from billing_export.processing.labels import (
    DEFAULT_LABEL_FILE,
    LabelConfig,
    build_label_map,
    load_label_config,
)
from billing_export.processing.payments import PAYMENTS_HEADERS, PaymentRowBuilder
from billing_export.processing.progress import NullProgressReporter, ProgressReporter
from billing_export.processing.sales import CASH_METHOD_ID, SALES_HEADERS, SalesRowBuilder
from billing_export.reporting.bundle import BundleEntry, build_bundle, bundle_filename, sanitize_filename
from billing_export.reporting.sinks import write_csv, write_excel, write_legacy_csv

logger = logging.getLogger(__name__)

PAYMENT_FORMATS = ("csv", "xlsx")


@dataclass
class ExportOptions:
    organization_id: Optional[int]
    period: str = "current_month"
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    output_dir: Path = Path("output")
    include_pdfs: bool = False
    label_file: Path = field(
        default_factory=lambda: Path(get_config_value("LABEL_MAPPING_FILE", str(DEFAULT_LABEL_FILE)))
    )
    cash_method_id: str = field(
        default_factory=lambda: get_config_value("UCRM_CASH_METHOD_ID", CASH_METHOD_ID)
    )


@dataclass
class ExportResult:
    bundle_path: Path
    start: datetime
    end: datetime
    payment_rows: int = 0
    sales_rows: int = 0
    missing_numbers: List[str] = field(default_factory=list)


def validate_options(options: ExportOptions) -> None:
    """Reject unusable options before anything is fetched."""

    if not options.organization_id:
        raise ExportConfigError("An organization must be selected")
    if options.period and options.period not in PERIOD_CHOICES:
        logger.warning("Unknown period %r, using current_month", options.period)


def _organization_name(data: ExportData, organization_id: int) -> str:
    for organization in data.organizations:
        if organization.id == organization_id:
            return organization.name
    return str(organization_id)


def _pdf_entries(api: Any, documents: List[Document], work_dir: Path) -> List[BundleEntry]:
    entries: List[BundleEntry] = []
    for document in documents:
        folder = "invoices" if document.document_type == DocumentType.INVOICE else "credit-notes"
        content = download_document_pdf(api, document)
        if content is None:
            continue
        name = f"{sanitize_filename(document.number or str(document.id))}.pdf"
        path = work_dir / folder / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        entries.append((path, f"{folder}/{name}"))
    return entries


def run_export(
    api: Any,
    options: ExportOptions,
    progress: Optional[ProgressReporter] = None,
    label_config: Optional[LabelConfig] = None,
    now: Optional[datetime] = None,
) -> ExportResult:
    """Run a full export and return where the bundle was written."""

    progress = progress or NullProgressReporter()
    total = 9 if options.include_pdfs else 8
    try:
        validate_options(options)
        start, end = resolve_period(options.period, options.date_from, options.date_to, now=now)
        logger.info(
            "Export started for organization %s, %s to %s",
            options.organization_id,
            start.strftime("%Y-%m-%d"),
            end.strftime("%Y-%m-%d"),
        )
        progress.report(1, total, "Loading label mapping")
        config = label_config if label_config is not None else load_label_config(options.label_file)

        progress.report(2, total, "Fetching payments and documents")
        data = load_export_data(api, options.organization_id, start, end)
        organization = _organization_name(data, options.organization_id)

        progress.report(3, total, "Resolving invoices covered by payments")
        cache = LookupCache(api)
        details = enrich_payments(data.payments, cache)

        with tempfile.TemporaryDirectory(prefix="billing_export_") as tmp:
            work_dir = Path(tmp)

            progress.report(4, total, "Building payments report")
            payment_rows = PaymentRowBuilder(data.clients, data.methods, data.organizations).build_rows(
                data.payments, details
            )
            write_legacy_csv(payment_rows, work_dir / "payments.csv", PAYMENTS_HEADERS)
            write_excel(payment_rows, work_dir / "payments.xlsx", PAYMENTS_HEADERS, "Payments")

            progress.report(5, total, "Building sales report")
            label_map = build_label_map(config, data.service_plans, data.client_services)
            sales = SalesRowBuilder(label_map, cache, cash_method_id=options.cash_method_id)
            documents = list(data.invoices) + list(data.credit_notes)
            sales_rows = sales.build_rows(documents)
            write_legacy_csv(sales_rows, work_dir / "sales.csv")
            write_excel(sales_rows, work_dir / "sales.xlsx", SALES_HEADERS, "Sales")

            progress.report(6, total, "Building controls summary")
            control_rows = build_control_rows(
                organization,
                start,
                end,
                data.payments,
                data.invoices,
                data.credit_notes,
                payment_rows,
                sales_rows,
            )
            write_excel(control_rows, work_dir / "controls.xlsx", CONTROL_HEADERS, "Controls")

            entries: List[BundleEntry] = [
                (work_dir / "payments.csv", "payments.csv"),
                (work_dir / "payments.xlsx", "payments.xlsx"),
                (work_dir / "sales.csv", "sales.csv"),
                (work_dir / "sales.xlsx", "sales.xlsx"),
                (work_dir / "controls.xlsx", "controls.xlsx"),
            ]
            step = 7
            if options.include_pdfs:
                progress.report(step, total, "Downloading document PDFs")
                entries.extend(_pdf_entries(api, [d for d in documents if not d.proforma], work_dir))
                step += 1

            progress.report(step, total, "Creating archive")
            timestamp = int(now.timestamp()) if now else int(time.time())
            bundle_path = options.output_dir / bundle_filename(organization, start, end, timestamp)
            build_bundle(bundle_path, entries)

        progress.report(total, total, "Export complete")
    except Exception:
        logger.exception("Export failed")
        raise

    logger.info("Wrote export bundle to %s", bundle_path)
    return ExportResult(
        bundle_path=bundle_path,
        start=start,
        end=end,
        payment_rows=len(payment_rows),
        sales_rows=len(sales_rows),
        missing_numbers=find_missing_numbers(d.number for d in data.invoices if not d.proforma),
    )


def export_payments(
    api: Any,
    options: ExportOptions,
    fmt: str = "csv",
    now: Optional[datetime] = None,
) -> Path:
    """Write only the payments report (UTF-8 CSV or XLSX) for download."""

    try:
        if fmt not in PAYMENT_FORMATS:
            raise ExportConfigError(
                f"Unsupported format {fmt!r}; choose one of {', '.join(PAYMENT_FORMATS)}"
            )
        validate_options(options)
        start, end = resolve_period(options.period, options.date_from, options.date_to, now=now)
        data = load_export_data(api, options.organization_id, start, end)
        details = enrich_payments(data.payments, LookupCache(api))
        builder = PaymentRowBuilder(data.clients, data.methods, data.organizations)
        rows = builder.build_rows(data.payments, details)

        output_path = options.output_dir / "payments-with-invoices-{}-to-{}.{}".format(
            start.strftime("%Y-%m-%d"), end.strftime("%Y-%m-%d"), fmt
        )
        if fmt == "xlsx":
            write_excel(rows, output_path, PAYMENTS_HEADERS, "Payments")
        else:
            write_csv(rows, output_path, PAYMENTS_HEADERS)
    except Exception:
        logger.exception("Payments export failed")
        raise

    logger.info("Wrote %d payment rows to %s", len(rows), output_path)
    return output_path
