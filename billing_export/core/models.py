"""Data models for billing records fetched from the CRM."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Tuple, Union

Cell = Union[str, int, float]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _amount(value: Any) -> float:
    if value in (None, ""):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _optional_id(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class ClientType(IntEnum):
    RESIDENTIAL = 1
    COMMERCIAL = 2


class DocumentType(IntEnum):
    """Plus-Minus document type codes."""

    INVOICE = 1
    CREDIT_NOTE = 3


class PaymentType(IntEnum):
    """Plus-Minus payment type codes."""

    CASH = 1
    BANK_TRANSFER = 2
    CARD = 4


class InvoiceStatus(IntEnum):
    UNKNOWN = -1
    DRAFT = 0
    UNPAID = 1
    PARTIALLY_PAID = 2
    PAID = 3
    VOID = 4

    @classmethod
    def parse(cls, code: Any) -> "InvoiceStatus":
        try:
            return cls(int(code))
        except (TypeError, ValueError):
            return cls.UNKNOWN


_STATUS_LABELS = {
    InvoiceStatus.DRAFT: "Draft",
    InvoiceStatus.UNPAID: "Unpaid",
    InvoiceStatus.PARTIALLY_PAID: "Partially paid",
    InvoiceStatus.PAID: "Paid",
    InvoiceStatus.VOID: "Void",
    InvoiceStatus.UNKNOWN: "Unknown",
}


def format_invoice_status(code: Any) -> str:
    """Return the human readable label for an invoice status code."""

    return _STATUS_LABELS[InvoiceStatus.parse(code)]


class ItemKind(str, Enum):
    PRODUCT = "product"
    SERVICE = "service"


@dataclass(frozen=True)
class Client:
    id: int
    client_type: Optional[int] = None
    first_name: str = ""
    last_name: str = ""
    company_name: Optional[str] = None
    company_registration_number: str = ""
    company_tax_id: str = ""
    user_ident: str = ""
    organization_id: Optional[int] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Client":
        return cls(
            id=int(data["id"]),
            client_type=_optional_id(data.get("clientType")),
            first_name=_text(data.get("firstName")),
            last_name=_text(data.get("lastName")),
            company_name=data.get("companyName"),
            company_registration_number=_text(data.get("companyRegistrationNumber")),
            company_tax_id=_text(data.get("companyTaxId")),
            user_ident=_text(data.get("userIdent")),
            organization_id=_optional_id(data.get("organizationId")),
        )

    @property
    def personal_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self) -> str:
        """Residential clients go by their personal name, everyone else by company."""

        if self.client_type == ClientType.RESIDENTIAL:
            return self.personal_name
        if self.company_name is not None:
            return self.company_name
        return self.personal_name

    @property
    def type_label(self) -> str:
        if self.client_type == ClientType.RESIDENTIAL:
            return "Private Person"
        if self.client_type == ClientType.COMMERCIAL:
            return "Company"
        return "Unknown"


@dataclass(frozen=True)
class PaymentCover:
    amount: float = 0.0
    invoice_id: Optional[int] = None
    credit_note_id: Optional[int] = None
    payment_id: Optional[int] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PaymentCover":
        return cls(
            amount=_amount(data.get("amount")),
            invoice_id=_optional_id(data.get("invoiceId")),
            credit_note_id=_optional_id(data.get("creditNoteId")),
            payment_id=_optional_id(data.get("paymentId")),
        )


@dataclass(frozen=True)
class Payment:
    id: int
    client_id: Optional[int] = None
    created_date: str = ""
    currency_code: str = ""
    amount: float = 0.0
    credit_amount: float = 0.0
    method_id: str = ""
    note: str = ""
    provider_payment_id: str = ""
    covers: Tuple[PaymentCover, ...] = ()

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Payment":
        return cls(
            id=int(data["id"]),
            client_id=_optional_id(data.get("clientId")),
            created_date=_text(data.get("createdDate")),
            currency_code=_text(data.get("currencyCode")),
            amount=_amount(data.get("amount")),
            credit_amount=_amount(data.get("creditAmount")),
            method_id=_text(data.get("methodId")),
            note=_text(data.get("note")),
            provider_payment_id=_text(data.get("providerPaymentId")),
            covers=tuple(PaymentCover.from_api(cover) for cover in data.get("paymentCovers") or []),
        )


@dataclass(frozen=True)
class InvoiceDetail:
    """Invoice metadata resolved for one payment cover."""

    invoice_id: int
    amount_covered: float
    number: str = ""
    date: str = ""
    total: float = 0.0
    status: str = "Unknown"

    @classmethod
    def from_invoice(cls, invoice_id: int, amount_covered: float, invoice: Any) -> "InvoiceDetail":
        """Build the detail from an invoice body; anything unusable leaves the fields empty."""

        if not isinstance(invoice, dict):
            invoice = {}
        return cls(
            invoice_id=invoice_id,
            amount_covered=amount_covered,
            number=_text(invoice.get("number")),
            date=_text(invoice.get("createdDate"))[:10],
            total=_amount(invoice.get("total")),
            status=format_invoice_status(invoice.get("status")),
        )


@dataclass(frozen=True)
class LineItem:
    id: Optional[int] = None
    type: str = ItemKind.SERVICE.value
    label: str = ""
    quantity: float = 1.0
    price: float = 0.0
    total: float = 0.0
    service_id: Optional[int] = None
    service_surcharge_id: Optional[int] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "LineItem":
        quantity = data.get("quantity")
        return cls(
            id=_optional_id(data.get("id")),
            type=_text(data.get("type")) or ItemKind.SERVICE.value,
            label=_text(data.get("label")),
            quantity=1.0 if quantity is None else _amount(quantity),
            price=_amount(data.get("price")),
            total=_amount(data.get("total")),
            service_id=_optional_id(data.get("serviceId")),
            service_surcharge_id=_optional_id(data.get("serviceSurchargeId")),
        )

    @property
    def is_product(self) -> bool:
        return self.type == ItemKind.PRODUCT.value


@dataclass(frozen=True)
class Document:
    """An invoice or a credit note together with its items and payment covers."""

    id: int
    document_type: DocumentType = DocumentType.INVOICE
    number: str = ""
    created_date: str = ""
    client_id: Optional[int] = None
    client_first_name: str = ""
    client_last_name: str = ""
    client_company_name: str = ""
    client_company_registration_number: str = ""
    client_company_tax_id: str = ""
    total: float = 0.0
    total_tax_amount: float = 0.0
    subtotal: float = 0.0
    total_untaxed: float = 0.0
    status: InvoiceStatus = InvoiceStatus.UNKNOWN
    proforma: bool = False
    organization_id: Optional[int] = None
    items: Tuple[LineItem, ...] = ()
    payment_covers: Tuple[PaymentCover, ...] = ()

    @classmethod
    def from_api(
        cls, data: Dict[str, Any], document_type: DocumentType = DocumentType.INVOICE
    ) -> "Document":
        subtotal = _amount(data.get("subtotal"))
        untaxed = data.get("totalUntaxed")
        return cls(
            id=int(data["id"]),
            document_type=document_type,
            number=_text(data.get("number")),
            created_date=_text(data.get("createdDate")),
            client_id=_optional_id(data.get("clientId")),
            client_first_name=_text(data.get("clientFirstName")),
            client_last_name=_text(data.get("clientLastName")),
            client_company_name=_text(data.get("clientCompanyName")),
            client_company_registration_number=_text(data.get("clientCompanyRegistrationNumber")),
            client_company_tax_id=_text(data.get("clientCompanyTaxId")),
            total=_amount(data.get("total")),
            total_tax_amount=_amount(data.get("totalTaxAmount")),
            subtotal=subtotal,
            total_untaxed=subtotal if untaxed is None else _amount(untaxed),
            status=InvoiceStatus.parse(data.get("status")),
            proforma=bool(data.get("proforma")),
            organization_id=_optional_id(data.get("organizationId")),
            items=tuple(LineItem.from_api(item) for item in data.get("items") or []),
            payment_covers=tuple(
                PaymentCover.from_api(cover) for cover in data.get("paymentCovers") or []
            ),
        )

    @property
    def partner_name(self) -> str:
        if self.client_company_name:
            return self.client_company_name
        return f"{self.client_first_name} {self.client_last_name}".strip()

    @property
    def paid_amount(self) -> float:
        return sum(cover.amount for cover in self.payment_covers)


@dataclass(frozen=True)
class PaymentMethod:
    id: str
    name: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PaymentMethod":
        return cls(id=_text(data.get("id")), name=_text(data.get("name")))


@dataclass(frozen=True)
class Organization:
    id: int
    name: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Organization":
        return cls(id=int(data["id"]), name=_text(data.get("name")))


@dataclass(frozen=True)
class ServicePlan:
    id: int
    name: str = ""
    plan_type: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ServicePlan":
        return cls(
            id=int(data["id"]),
            name=_text(data.get("name")),
            plan_type=_text(data.get("servicePlanType")),
        )

    @property
    def is_internet(self) -> bool:
        return self.plan_type.lower() == "internet"


@dataclass(frozen=True)
class ClientService:
    """A client's instance of a service plan; invoice items link to these."""

    id: int
    service_plan_id: Optional[int] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ClientService":
        return cls(id=int(data["id"]), service_plan_id=_optional_id(data.get("servicePlanId")))


@dataclass(frozen=True)
class Surcharge:
    id: int
    name: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Surcharge":
        return cls(id=int(data["id"]), name=_text(data.get("name")))


@dataclass
class ExportData:
    """Everything fetched from the CRM for one export run."""

    payments: list = field(default_factory=list)
    invoices: list = field(default_factory=list)
    credit_notes: list = field(default_factory=list)
    clients: list = field(default_factory=list)
    methods: list = field(default_factory=list)
    organizations: list = field(default_factory=list)
    service_plans: list = field(default_factory=list)
    client_services: list = field(default_factory=list)
    surcharges: list = field(default_factory=list)
