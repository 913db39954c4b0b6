"""Fetch and normalize the records needed for one export run."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from billing_export.core.errors import ApiError
from billing_export.core.models import (
    Client,
    ClientService,
    Document,
    DocumentType,
    ExportData,
    InvoiceDetail,
    Organization,
    Payment,
    PaymentMethod,
    ServicePlan,
    Surcharge,
)

logger = logging.getLogger(__name__)


@dataclass
class LookupCache:
    """Per-run memo of single-entity lookups.

    Failed lookups are stored as ``None`` so a deleted invoice or payment is
    requested at most once per run.
    """

    api: Any
    invoices: Dict[int, Optional[Dict[str, Any]]] = field(default_factory=dict)
    payments: Dict[int, Optional[Payment]] = field(default_factory=dict)

    def invoice(self, invoice_id: int) -> Optional[Dict[str, Any]]:
        if invoice_id not in self.invoices:
            try:
                body = self.api.get(f"invoices/{invoice_id}")
            except ApiError as exc:
                logger.warning("Could not fetch invoice %s: %s", invoice_id, exc)
                body = None
            if body is not None and not isinstance(body, dict):
                logger.warning("Invoice %s response is not an object, ignoring it", invoice_id)
                body = None
            self.invoices[invoice_id] = body
        return self.invoices[invoice_id]

    def payment(self, payment_id: int) -> Optional[Payment]:
        if payment_id not in self.payments:
            try:
                self.payments[payment_id] = Payment.from_api(self.api.get(f"payments/{payment_id}"))
            except (ApiError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Could not fetch payment %s: %s", payment_id, exc)
                self.payments[payment_id] = None
        return self.payments[payment_id]


def query_parameters(start: datetime, end: datetime, organization_id: Optional[int] = None) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "createdDateFrom": start.strftime("%Y-%m-%d"),
        "createdDateTo": end.strftime("%Y-%m-%d"),
    }
    if organization_id is not None:
        params["organizationId"] = organization_id
    return params


def _parse_all(raw_records: Iterable[Dict[str, Any]], parser, kind: str) -> list:
    parsed = []
    for raw in raw_records or []:
        try:
            parsed.append(parser(raw))
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed %s record: %r", kind, raw.get("id") if isinstance(raw, dict) else raw)
    return parsed


def filter_payments_by_clients(payments: Iterable[Payment], client_ids: Iterable[int]) -> List[Payment]:
    allowed = set(client_ids)
    return [payment for payment in payments if payment.client_id in allowed]


def enrich_payments(payments: Iterable[Payment], cache: LookupCache) -> Dict[int, List[InvoiceDetail]]:
    """Resolve every payment cover into invoice details, keyed by payment id.

    Covers without an invoice (credit note or refund covers) are skipped; an
    invoice that can no longer be fetched degrades to empty fields.
    """

    details: Dict[int, List[InvoiceDetail]] = {}
    for payment in payments:
        resolved: List[InvoiceDetail] = []
        for cover in payment.covers:
            if cover.invoice_id is None:
                continue
            invoice = cache.invoice(cover.invoice_id)
            resolved.append(InvoiceDetail.from_invoice(cover.invoice_id, cover.amount, invoice))
        details[payment.id] = resolved
    return details


def load_export_data(
    api: Any, organization_id: int, start: datetime, end: datetime
) -> ExportData:
    """Fetch payments, documents and reference data for one organization and range."""

    period = query_parameters(start, end)
    scoped = query_parameters(start, end, organization_id)

    logger.info("Fetching payments from %s to %s", period["createdDateFrom"], period["createdDateTo"])
    payments = _parse_all(api.get("payments", period), Payment.from_api, "payment")
    logger.info("Found %d payments", len(payments))

    clients = _parse_all(api.get("clients"), Client.from_api, "client")
    organization_clients = [client.id for client in clients if client.organization_id == organization_id]
    payments = filter_payments_by_clients(payments, organization_clients)
    logger.info("After organization filter: %d payments", len(payments))

    invoices = _parse_all(
        api.get("invoices", scoped),
        lambda raw: Document.from_api(raw, DocumentType.INVOICE),
        "invoice",
    )
    credit_notes = _parse_all(
        api.get("credit-notes", scoped),
        lambda raw: Document.from_api(raw, DocumentType.CREDIT_NOTE),
        "credit note",
    )
    logger.info("Found %d invoices and %d credit notes", len(invoices), len(credit_notes))

    data = ExportData(
        payments=payments,
        invoices=invoices,
        credit_notes=credit_notes,
        clients=clients,
        methods=_parse_all(api.get("payment-methods"), PaymentMethod.from_api, "payment method"),
        organizations=_parse_all(api.get("organizations"), Organization.from_api, "organization"),
        service_plans=_parse_all(api.get("service-plans"), ServicePlan.from_api, "service plan"),
        client_services=_parse_all(api.get("clients/services"), ClientService.from_api, "client service"),
        surcharges=_parse_all(api.get("surcharges"), Surcharge.from_api, "surcharge"),
    )
    logger.info(
        "Reference data: %d clients, %d methods, %d organizations",
        len(data.clients),
        len(data.methods),
        len(data.organizations),
    )
    return data


def download_document_pdf(api: Any, document: Document) -> Optional[bytes]:
    """Return the PDF of a document, or ``None`` when it cannot be fetched."""

    resource = "invoices" if document.document_type == DocumentType.INVOICE else "credit-notes"
    try:
        return api.get_bytes(f"{resource}/{document.id}/pdf")
    except ApiError as exc:
        logger.warning("Could not download PDF for %s %s: %s", resource, document.number or document.id, exc)
        return None
