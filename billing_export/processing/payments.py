"""Payments report rows: one row per invoice a payment covers."""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from billing_export.core.models import (
    Cell,
    Client,
    InvoiceDetail,
    Organization,
    Payment,
    PaymentMethod,
)
from billing_export.core.utils import iso_date

PAYMENTS_HEADERS = [
    "Organization",
    "Payment ID",
    "Provider Payment ID",
    "Payment Date",
    "Client ID",
    "Client Type",
    "Client Name",
    "Company ID (EIK)",
    "VAT ID",
    "Personal ID",
    "Payment Method",
    "Currency",
    "Total Payment Amount",
    "Credit Amount",
    "Invoice Number",
    "Invoice Date",
    "Invoice Total",
    "Invoice Status",
    "Amount Applied to Invoice",
    "Note",
]

UNKNOWN_METHOD = "Unknown"


class PaymentRowBuilder:
    """Expand payments into rows of the payments report."""

    def __init__(
        self,
        clients: Iterable[Client],
        methods: Iterable[PaymentMethod],
        organizations: Iterable[Organization] = (),
    ) -> None:
        self.clients: Dict[int, Client] = {client.id: client for client in clients}
        self.methods: Dict[str, str] = {method.id: method.name for method in methods}
        self.organizations: Dict[int, str] = {org.id: org.name for org in organizations}

    def _base_row(self, payment: Payment) -> List[Cell]:
        client: Optional[Client] = self.clients.get(payment.client_id) if payment.client_id is not None else None
        organization = ""
        if client is not None and client.organization_id is not None:
            organization = self.organizations.get(client.organization_id, "")

        return [
            organization,
            payment.id,
            payment.provider_payment_id,
            iso_date(payment.created_date),
            payment.client_id if payment.client_id is not None else "",
            client.type_label if client else "",
            client.display_name if client else "",
            client.company_registration_number if client else "",
            client.company_tax_id if client else "",
            client.user_ident if client else "",
            self.methods.get(payment.method_id, UNKNOWN_METHOD),
            payment.currency_code,
            payment.amount,
            payment.credit_amount,
        ]

    def rows_for(self, payment: Payment, details: Sequence[InvoiceDetail] = ()) -> List[List[Cell]]:
        """Return one row per invoice detail, or a single credit row without invoice fields."""

        base = self._base_row(payment)
        if not details:
            return [base + ["", "", "", "", "", payment.note]]
        return [
            base
            + [
                detail.number,
                detail.date,
                detail.total,
                detail.status,
                detail.amount_covered,
                payment.note,
            ]
            for detail in details
        ]

    def build_rows(
        self, payments: Iterable[Payment], details: Mapping[int, Sequence[InvoiceDetail]]
    ) -> List[List[Cell]]:
        rows: List[List[Cell]] = []
        for payment in payments:
            rows.extend(self.rows_for(payment, details.get(payment.id, ())))
        return rows
