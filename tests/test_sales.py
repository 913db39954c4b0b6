"""Plus-Minus sales rows for invoices and credit notes."""
import random
from decimal import Decimal

import pytest

from billing_export.core.models import Document, DocumentType, LineItem, Payment, PaymentCover, PaymentType
from billing_export.processing.labels import LabelMap
from billing_export.processing.sales import (
    CASH_METHOD_ID,
    SALES_HEADERS,
    SalesRowBuilder,
    format_document_date,
    redistribute,
)


class StubPayments:
    def __init__(self, payments):
        self.payments = payments
        self.requested = []

    def payment(self, payment_id):
        self.requested.append(payment_id)
        return self.payments.get(payment_id)


def _invoice(**overrides) -> Document:
    values = dict(
        id=1,
        number="A001",
        created_date="2024-03-07T10:00:00Z",
        client_first_name="Ivan",
        client_last_name="Petrov",
        total=64.8,
        total_tax_amount=10.8,
        subtotal=60.0,
        total_untaxed=54.0,
        items=(
            LineItem(id=1, type="service", label="Fiber 100", quantity=1, total=50.0, service_id=500),
            LineItem(id=2, type="product", label="Router", quantity=2, total=10.0),
        ),
        payment_covers=(PaymentCover(amount=30.0, payment_id=100), PaymentCover(amount=34.8, payment_id=101)),
    )
    values.update(overrides)
    return Document(**values)


def test_rows_have_header_length_and_document_fields_only_on_first_row():
    rows = SalesRowBuilder().rows_for(_invoice())

    assert len(rows) == 2
    assert all(len(row) == len(SALES_HEADERS) == 21 for row in rows)
    assert rows[0][18:] == ["64.80", "10.80", "64.80"]
    assert rows[1][18:] == ["", "", ""]
    assert rows[0][:7] == [1, "07.03.2024", "A001", "Ivan Petrov", "", "", ""]
    assert rows[1][:7] == rows[0][:7]


def test_discount_is_spread_proportionally():
    rows = SalesRowBuilder().rows_for(_invoice())

    service, product = rows
    assert service[7:16] == ["УСЛУГИ", "", "", "Fiber 100", "", "", "", "", "45.00"]
    assert product[7:16] == ["СТОКИ", "", "", "Router", "2", "бр.", 2, "4.50", "9.00"]
    assert service[16] == "ДДС20"


def test_last_item_absorbs_rounding_remainder():
    items = tuple(LineItem(id=i, total=10.0) for i in range(3))
    document = _invoice(items=items, subtotal=30.0, total_untaxed=20.0, total=24.0, total_tax_amount=4.0)

    values = [row[15] for row in SalesRowBuilder().rows_for(document)]

    assert values == ["6.67", "6.67", "6.66"]


@pytest.mark.parametrize("seed", range(25))
def test_redistributed_values_always_sum_to_untaxed_total(seed):
    rng = random.Random(seed)
    totals = [round(rng.uniform(0.01, 500), 2) for _ in range(rng.randint(1, 12))]
    subtotal = round(sum(totals), 2)
    untaxed = round(subtotal * rng.uniform(0.3, 1.0), 2)

    values = redistribute(totals, untaxed, subtotal)

    assert len(values) == len(totals)
    assert sum(Decimal(str(value)) for value in values) == Decimal(str(untaxed))


def test_zero_subtotal_keeps_raw_totals():
    assert redistribute([5.0, 5.0], 10.0, 0.0) == [5.0, 5.0]


def test_document_without_items_gets_one_generic_service_row():
    document = _invoice(items=(), total=120.0, total_tax_amount=20.0, payment_covers=())

    rows = SalesRowBuilder().rows_for(document)

    assert len(rows) == 1
    assert rows[0][7:16] == ["УСЛУГИ", "", "", "Услуга", "", "", "", "", "100.00"]
    assert rows[0][17:] == [2, "120.00", "20.00", "0.00"]


def test_credit_note_uses_document_type_three():
    note = _invoice(document_type=DocumentType.CREDIT_NOTE, items=(LineItem(total=-10.0),), subtotal=-10.0,
                    total_untaxed=-10.0, total=-12.0, total_tax_amount=-2.0, payment_covers=())

    rows = SalesRowBuilder().rows_for(note)

    assert rows[0][0] == 3
    assert rows[0][15] == "-10.00"


def test_partner_name_is_sanitized_and_prefers_company():
    document = _invoice(client_company_name='Firm & Co "Ltd" / Sofia\\', client_company_tax_id="BG1")

    row = SalesRowBuilder().rows_for(document)[0]

    assert row[3] == "Firm  Co Ltd  Sofia"
    assert row[5] == "BG1"


def test_mapped_label_overrides_item_label():
    label_map = LabelMap(service_labels={500: "Интернет услуги"})

    rows = SalesRowBuilder(label_map).rows_for(_invoice())

    assert rows[0][10] == "Интернет услуги"
    assert rows[1][10] == "Router"


def test_cash_payment_detected_from_first_cover():
    payments = StubPayments({100: Payment(id=100, method_id=CASH_METHOD_ID), 101: Payment(id=101, method_id="bank")})
    builder = SalesRowBuilder(payments=payments)

    assert builder.payment_type(_invoice()) == PaymentType.CASH
    assert payments.requested == [100]


def test_payment_type_falls_back_to_bank_transfer():
    payments = StubPayments({100: Payment(id=100, method_id="bank")})
    builder = SalesRowBuilder(payments=payments)

    assert builder.payment_type(_invoice()) == PaymentType.BANK_TRANSFER
    assert builder.payment_type(_invoice(payment_covers=())) == PaymentType.BANK_TRANSFER
    assert builder.payment_type(_invoice(payment_covers=(PaymentCover(amount=1.0),))) == PaymentType.BANK_TRANSFER
    assert builder.payment_type(_invoice(payment_covers=(PaymentCover(amount=1.0, payment_id=404),))) == (
        PaymentType.BANK_TRANSFER
    )


def test_card_methods_can_be_configured():
    payments = StubPayments({100: Payment(id=100, method_id="card")})
    builder = SalesRowBuilder(payments=payments, card_method_ids=["card"])

    assert builder.payment_type(_invoice()) == PaymentType.CARD


def test_proforma_invoices_are_skipped():
    rows = SalesRowBuilder().build_rows([_invoice(proforma=True), _invoice(id=2, number="A002")])

    assert {row[2] for row in rows} == {"A002"}


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-03-07T10:00:00Z", "07.03.2024"),
        ("2024-3-7", "07.03.2024"),
        ("07/03/2024", "07/03/2024"),
        ("", ""),
    ],
)
def test_format_document_date(raw, expected):
    assert format_document_date(raw) == expected
