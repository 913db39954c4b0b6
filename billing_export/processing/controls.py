"""Control totals that let a bookkeeper sanity-check an export before import."""
import logging
from datetime import datetime
from typing import Iterable, List, Sequence, Tuple

from billing_export.core.models import Cell, Document, Payment
from billing_export.core.utils import format_number
from billing_export.processing.gaps import find_missing_numbers, split_number

logger = logging.getLogger(__name__)

CONTROL_HEADERS = ["Check", "Value"]

# Index of the "value" column in sales rows.
_SALES_VALUE_COLUMN = 15


def _numbering_key(number: str) -> Tuple[int, str, int]:
    parsed = split_number(number or "")
    if parsed is None:
        return 1, number or "", 0
    prefix, value, _ = parsed
    return 0, prefix, value


def _sales_value_total(sales_rows: Iterable[Sequence[Cell]]) -> float:
    total = 0.0
    for row in sales_rows:
        try:
            total += float(row[_SALES_VALUE_COLUMN] or 0)
        except (TypeError, ValueError):
            continue
    return total


def build_control_rows(
    organization: str,
    start: datetime,
    end: datetime,
    payments: Sequence[Payment],
    invoices: Sequence[Document],
    credit_notes: Sequence[Document],
    payment_rows: Sequence[Sequence[Cell]] = (),
    sales_rows: Sequence[Sequence[Cell]] = (),
) -> List[List[Cell]]:
    """Summarize counts, totals and numbering gaps for the controls sheet."""

    final_invoices = [invoice for invoice in invoices if not invoice.proforma]
    proforma_count = len(invoices) - len(final_invoices)
    numbers = [invoice.number for invoice in final_invoices]
    missing = find_missing_numbers(numbers)
    if missing:
        logger.warning("Invoice numbering has %d gaps: %s", len(missing), ", ".join(missing))

    documents = final_invoices + list(credit_notes)
    expected_untaxed = sum(
        document.total_untaxed if document.items else document.total - document.total_tax_amount
        for document in documents
    )
    sales_total = _sales_value_total(sales_rows)
    ordered = sorted(numbers, key=_numbering_key)

    return [
        ["Organization", organization],
        ["Period start", start.strftime("%Y-%m-%d")],
        ["Period end", end.strftime("%Y-%m-%d")],
        ["Payments", len(payments)],
        ["Payments without invoices", sum(1 for payment in payments if not payment.covers)],
        ["Payment rows", len(payment_rows)],
        ["Payments total", format_number(sum(payment.amount for payment in payments))],
        ["Invoices", len(final_invoices)],
        ["Proforma invoices skipped", proforma_count],
        ["Invoices total", format_number(sum(invoice.total for invoice in final_invoices))],
        ["Invoices VAT", format_number(sum(invoice.total_tax_amount for invoice in final_invoices))],
        ["Credit notes", len(credit_notes)],
        ["Credit notes total", format_number(sum(note.total for note in credit_notes))],
        ["Sales rows", len(sales_rows)],
        ["Sales value total", format_number(sales_total)],
        ["Sales value difference", format_number(sales_total - expected_untaxed)],
        ["First invoice number", ordered[0] if ordered else ""],
        ["Last invoice number", ordered[-1] if ordered else ""],
        ["Missing invoice numbers", len(missing)],
        ["Missing invoice list", ", ".join(missing)],
    ]
