"""Pytest configuration and a canned UCRM dataset for export tests."""
import copy
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

# Ensure repository root is on sys.path for module resolution
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from billing_export.core.errors import ApiError
from billing_export.processing.sales import CASH_METHOD_ID

BANK_METHOD_ID = "4145b5f5-3bbc-45e3-8fc5-9cda970c62fb"

INVOICE_1000 = {
    "id": 1000,
    "number": "A001",
    "createdDate": "2024-03-07T10:00:00+0200",
    "clientId": 10,
    "clientFirstName": "Ivan",
    "clientLastName": "Petrov",
    "clientCompanyName": None,
    "total": 64.8,
    "totalTaxAmount": 10.8,
    "subtotal": 60.0,
    "totalUntaxed": 54.0,
    "status": 3,
    "proforma": False,
    "organizationId": 1,
    "items": [
        {"id": 1, "type": "service", "label": "Fiber 100", "quantity": 1, "price": 50, "total": 50, "serviceId": 500},
        {"id": 2, "type": "product", "label": "Router", "quantity": 2, "price": 5, "total": 10},
    ],
    "paymentCovers": [{"paymentId": 100, "amount": 64.8}],
}

INVOICE_1001 = {
    "id": 1001,
    "number": "A003",
    "createdDate": "2024-03-09T08:30:00+0200",
    "clientId": 11,
    "clientCompanyName": "Firm & Co \"Ltd\"",
    "clientCompanyRegistrationNumber": "123456789",
    "clientCompanyTaxId": "BG123456789",
    "total": 120.0,
    "totalTaxAmount": 20.0,
    "subtotal": 100.0,
    "totalUntaxed": 100.0,
    "status": 2,
    "proforma": False,
    "organizationId": 1,
    "items": [],
    "paymentCovers": [{"paymentId": 103, "amount": 50.0}],
}

INVOICE_PROFORMA = {
    "id": 1002,
    "number": "A005",
    "createdDate": "2024-03-10T08:30:00+0200",
    "clientId": 11,
    "clientCompanyName": "Firm & Co",
    "total": 12.0,
    "totalTaxAmount": 2.0,
    "subtotal": 10.0,
    "totalUntaxed": 10.0,
    "status": 1,
    "proforma": True,
    "organizationId": 1,
    "items": [{"id": 9, "type": "service", "label": "Install", "quantity": 1, "total": 10}],
    "paymentCovers": [],
}

CREDIT_NOTE_2000 = {
    "id": 2000,
    "number": "CN001",
    "createdDate": "2024-03-12T12:00:00+0200",
    "clientId": 10,
    "clientFirstName": "Ivan",
    "clientLastName": "Petrov",
    "total": -12.0,
    "totalTaxAmount": -2.0,
    "subtotal": -10.0,
    "totalUntaxed": -10.0,
    "items": [{"id": 3, "type": "service", "label": "Refund / outage", "quantity": 1, "total": -10}],
    "paymentCovers": [],
}

PAYMENT_100 = {
    "id": 100,
    "clientId": 10,
    "createdDate": "2024-03-07T10:00:00+0200",
    "currencyCode": "BGN",
    "amount": 64.8,
    "creditAmount": 0,
    "methodId": CASH_METHOD_ID,
    "note": "paid at office",
    "providerPaymentId": None,
    "paymentCovers": [{"invoiceId": 1000, "amount": 64.8}],
}

PAYMENT_101 = {
    "id": 101,
    "clientId": 11,
    "createdDate": "2024-03-08T09:00:00+0200",
    "currencyCode": "BGN",
    "amount": 100.0,
    "creditAmount": 100.0,
    "methodId": BANK_METHOD_ID,
    "note": "",
    "paymentCovers": [],
}

PAYMENT_102 = {
    "id": 102,
    "clientId": 20,
    "createdDate": "2024-03-08T09:00:00+0200",
    "currencyCode": "BGN",
    "amount": 5.0,
    "methodId": BANK_METHOD_ID,
    "paymentCovers": [],
}

PAYMENT_103 = {
    "id": 103,
    "clientId": 11,
    "createdDate": "2024-03-09T11:00:00+0200",
    "currencyCode": "BGN",
    "amount": 60.0,
    "creditAmount": 0,
    "methodId": BANK_METHOD_ID,
    "providerPaymentId": "PP-1",
    "paymentCovers": [{"invoiceId": 1001, "amount": 50.0}, {"invoiceId": 9999, "amount": 10.0}],
}

CLIENTS = [
    {"id": 10, "clientType": 1, "firstName": "Ivan", "lastName": "Petrov", "userIdent": "8001010000", "organizationId": 1},
    {
        "id": 11,
        "clientType": 2,
        "firstName": "Maria",
        "lastName": "Ivanova",
        "companyName": "Firm & Co",
        "companyRegistrationNumber": "123456789",
        "companyTaxId": "BG123456789",
        "organizationId": 1,
    },
    {"id": 20, "clientType": 1, "firstName": "Other", "lastName": "Client", "organizationId": 2},
]


def build_responses() -> Dict[str, Any]:
    return {
        "payments": [PAYMENT_100, PAYMENT_101, PAYMENT_102, PAYMENT_103],
        "payments/100": PAYMENT_100,
        "payments/103": PAYMENT_103,
        "invoices": [INVOICE_1000, INVOICE_1001, INVOICE_PROFORMA],
        "invoices/1000": INVOICE_1000,
        "invoices/1001": INVOICE_1001,
        "credit-notes": [CREDIT_NOTE_2000],
        "clients": CLIENTS,
        "payment-methods": [
            {"id": CASH_METHOD_ID, "name": "Cash"},
            {"id": BANK_METHOD_ID, "name": "Bank transfer"},
        ],
        "organizations": [{"id": 1, "name": "Acme Net Ltd."}, {"id": 2, "name": "Other Org"}],
        "service-plans": [
            {"id": 5, "name": "Fiber 100", "servicePlanType": "Internet"},
            {"id": 6, "name": "IPTV", "servicePlanType": "General"},
        ],
        "clients/services": [{"id": 500, "servicePlanId": 5}, {"id": 501, "servicePlanId": 6}],
        "surcharges": [{"id": 700, "name": "Static IP"}],
        "invoices/1000/pdf": b"%PDF-1.4 invoice A001",
        "invoices/1001/pdf": b"%PDF-1.4 invoice A003",
        "credit-notes/2000/pdf": b"%PDF-1.4 credit note CN001",
    }


class FakeCrmApi:
    """In-memory stand-in for ``CrmApi`` that records every request."""

    def __init__(self, responses: Optional[Dict[str, Any]] = None) -> None:
        self.responses = responses if responses is not None else build_responses()
        self.calls: List[Tuple[str, Optional[Dict[str, Any]]]] = []

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        self.calls.append((path, params))
        if path not in self.responses:
            raise ApiError(f"GET {path} failed with status 404", status_code=404)
        return copy.deepcopy(self.responses[path])

    def get_bytes(self, path: str) -> bytes:
        self.calls.append((path, None))
        if path not in self.responses:
            raise ApiError(f"GET {path} failed with status 404", status_code=404)
        return self.responses[path]

    def count(self, path: str) -> int:
        return sum(1 for called, _ in self.calls if called == path)


@pytest.fixture
def fake_api() -> FakeCrmApi:
    return FakeCrmApi()


@pytest.fixture
def label_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point label settings at a temporary file."""

    path = tmp_path / "label_mapping.json"
    monkeypatch.setenv("LABEL_MAPPING_FILE", str(path))
    return path


@pytest.fixture
def progress_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "progress.json"
    monkeypatch.setenv("EXPORT_PROGRESS_FILE", str(path))
    return path
