"""Plus-Minus sales report rows built from invoices and credit notes.

Each line item becomes one row. Document totals (gross, VAT, paid) are only
written on the first row of a document, which is how the Plus-Minus importer
recognises where a new document starts. Line values are rescaled so that the
rows of a document add up to its untaxed total after discounts.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from billing_export.core.models import Cell, Document, LineItem, PaymentType
from billing_export.core.utils import format_number, round_money, sanitize_text
from billing_export.processing.labels import LabelMap

logger = logging.getLogger(__name__)

SALES_HEADERS = [
    "Вид. Документ",
    "Дата",
    "Номер",
    "Партньор",
    "ЕИК",
    "ИН по ДДС",
    "Склад",
    "Вид",
    "Група",
    "Подгрупа",
    "Наименование",
    "Код",
    "Мярка",
    "Количество",
    "Ед. Цена",
    "Стойност",
    "ДДС Вид",
    "Вид плащане",
    "Обща стойност с ДДС",
    "ДДС (документ)",
    "Платено",
]

KIND_GOODS = "СТОКИ"
KIND_SERVICES = "УСЛУГИ"
UNIT_PIECES = "бр."
VAT_CLASS = "ДДС20"
GENERIC_SERVICE_LABEL = "Услуга"

# UCRM built-in "Cash" payment method.
CASH_METHOD_ID = "6efe0fa8-36b2-4dd1-b049-427bffc7d369"


def format_document_date(value: str) -> str:
    """Convert an ISO date or timestamp to ``DD.MM.YYYY``.

    Values whose date part does not split into three numeric parts are
    returned unchanged.
    """

    if not value:
        return ""
    parts = value[:10].split("-")
    if len(parts) != 3:
        return value
    try:
        return f"{int(parts[2]):02d}.{int(parts[1]):02d}.{parts[0]}"
    except ValueError:
        return value


def _format_quantity(value: float) -> Cell:
    return int(value) if float(value).is_integer() else value


def redistribute(totals: Sequence[float], untaxed_total: float, subtotal: float) -> List[float]:
    """Scale line totals by ``untaxed_total / subtotal``.

    Every line is rounded to cents except the last, which takes the remainder
    so the lines always add up to ``untaxed_total``.
    """

    ratio = untaxed_total / subtotal if subtotal != 0 else 1.0
    values: List[float] = []
    running = 0.0
    for index, raw_total in enumerate(totals):
        if index == len(totals) - 1:
            value = round_money(untaxed_total - running)
        else:
            value = round_money(raw_total * ratio)
            running += value
        values.append(value)
    return values


class SalesRowBuilder:
    """Expand invoices and credit notes into Plus-Minus rows."""

    def __init__(
        self,
        label_map: Optional[LabelMap] = None,
        payments: Any = None,
        cash_method_id: str = CASH_METHOD_ID,
        card_method_ids: Iterable[str] = (),
    ) -> None:
        self.label_map = label_map or LabelMap()
        self.payments = payments
        self.cash_method_id = cash_method_id
        # No card method is mapped by default; card payments report as bank transfers.
        self.card_method_ids = frozenset(card_method_ids)

    def payment_type(self, document: Document) -> PaymentType:
        """Classify the document by the method of the payment on its first cover."""

        if not document.payment_covers or self.payments is None:
            return PaymentType.BANK_TRANSFER
        payment_id = document.payment_covers[0].payment_id
        if payment_id is None:
            return PaymentType.BANK_TRANSFER
        payment = self.payments.payment(payment_id)
        if payment is None:
            return PaymentType.BANK_TRANSFER
        if payment.method_id == self.cash_method_id:
            return PaymentType.CASH
        if payment.method_id in self.card_method_ids:
            return PaymentType.CARD
        return PaymentType.BANK_TRANSFER

    def _label(self, item: LineItem) -> str:
        mapped = self.label_map.resolve(item)
        if mapped is not None:
            return mapped
        return sanitize_text(item.label)

    def _item_cells(self, item: LineItem, value: float) -> Tuple[Cell, ...]:
        """Cells 8-16 (kind .. value) for one line item."""

        label = self._label(item)
        if not item.is_product:
            return (KIND_SERVICES, "", "", label, "", "", "", "", format_number(value))

        code = item.service_id if item.service_id is not None else item.id
        unit_price = value / item.quantity if item.quantity != 0 else 0.0
        return (
            KIND_GOODS,
            "",
            "",
            label,
            "" if code is None else str(code),
            UNIT_PIECES,
            _format_quantity(item.quantity),
            format_number(unit_price),
            format_number(value),
        )

    def rows_for(self, document: Document) -> List[List[Cell]]:
        """Return the Plus-Minus rows of one document."""

        head: List[Cell] = [
            int(document.document_type),
            format_document_date(document.created_date),
            document.number,
            sanitize_text(document.partner_name),
            document.client_company_registration_number,
            document.client_company_tax_id,
            "",
        ]
        payment_type = int(self.payment_type(document))
        totals = [
            format_number(document.total),
            format_number(document.total_tax_amount),
            format_number(document.paid_amount),
        ]

        if not document.items:
            value = document.total - document.total_tax_amount
            item_cells: Sequence[Cell] = (
                KIND_SERVICES, "", "", GENERIC_SERVICE_LABEL, "", "", "", "", format_number(value),
            )
            return [head + list(item_cells) + [VAT_CLASS, payment_type] + totals]

        values = redistribute(
            [item.total for item in document.items], document.total_untaxed, document.subtotal
        )
        rows: List[List[Cell]] = []
        for index, (item, value) in enumerate(zip(document.items, values)):
            document_cells = totals if index == 0 else ["", "", ""]
            rows.append(head + list(self._item_cells(item, value)) + [VAT_CLASS, payment_type] + document_cells)
        return rows

    def build_rows(self, documents: Iterable[Document]) -> List[List[Cell]]:
        """Rows for every document, skipping proforma invoices."""

        rows: List[List[Cell]] = []
        for document in documents:
            if document.proforma:
                logger.debug("Skipping proforma invoice %s", document.number)
                continue
            rows.extend(self.rows_for(document))
        return rows
