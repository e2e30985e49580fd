"""
models/billing.py
-----------------
Records exchanged with the UNG billing API.
The bot never stores these; they only travel between the API client
and the handlers that format them for the user.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional


def _float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass
class Client:
    id: int
    name: str
    email: str = ""
    address: str = ""
    tax_id: str = ""

    @classmethod
    def from_dict(cls, raw: dict) -> "Client":
        return cls(
            id=int(raw["id"]),
            name=raw.get("name") or "",
            email=raw.get("email") or "",
            address=raw.get("address") or "",
            tax_id=raw.get("tax_id") or "",
        )


@dataclass
class Company:
    id: int
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    tax_id: str = ""

    @classmethod
    def from_dict(cls, raw: dict) -> "Company":
        return cls(
            id=int(raw["id"]),
            name=raw.get("name") or "",
            email=raw.get("email") or "",
            phone=raw.get("phone") or "",
            address=raw.get("address") or "",
            tax_id=raw.get("tax_id") or "",
        )


@dataclass
class Contract:
    id: int
    client_id: int
    name: str
    type: str
    rate: float = 0.0
    status: str = ""

    @classmethod
    def from_dict(cls, raw: dict) -> "Contract":
        return cls(
            id=int(raw["id"]),
            client_id=int(raw.get("client_id") or 0),
            name=raw.get("name") or "",
            type=raw.get("type") or "",
            rate=_float(raw.get("rate")),
            status=raw.get("status") or "",
        )


@dataclass
class Expense:
    id: int
    description: str
    amount: float
    category: str = ""
    vendor: str = ""
    date: str = ""

    @classmethod
    def from_dict(cls, raw: dict) -> "Expense":
        return cls(
            id=int(raw["id"]),
            description=raw.get("description") or "",
            amount=_float(raw.get("amount")),
            category=raw.get("category") or "",
            vendor=raw.get("vendor") or "",
            date=raw.get("date") or "",
        )


@dataclass
class Invoice:
    """
    An invoice as returned by the API.

    Attributes:
        id: API primary key.
        invoice_num: Human facing number, e.g. 'INV-2024-001'.
        amount: Invoice total.
        currency: ISO currency code.
        status: 'pending', 'paid', 'overdue', ...
        due_date: ISO date string.
    """
    id: int
    invoice_num: str
    amount: float
    currency: str = "USD"
    status: str = ""
    due_date: str = ""

    @classmethod
    def from_dict(cls, raw: dict) -> "Invoice":
        return cls(
            id=int(raw["id"]),
            invoice_num=raw.get("invoice_num") or "",
            amount=_float(raw.get("amount")),
            currency=raw.get("currency") or "USD",
            status=raw.get("status") or "",
            due_date=raw.get("due_date") or "",
        )


@dataclass
class TrackingSession:
    """A time-tracking entry; `duration` is in hours."""
    id: int
    project_id: int = 0
    start_time: str = ""
    end_time: str = ""
    duration: float = 0.0
    notes: str = ""
    active: bool = False

    @classmethod
    def from_dict(cls, raw: dict) -> "TrackingSession":
        return cls(
            id=int(raw["id"]),
            project_id=int(raw.get("project_id") or 0),
            start_time=raw.get("start_time") or "",
            end_time=raw.get("end_time") or "",
            duration=_float(raw.get("duration")),
            notes=raw.get("notes") or "",
            active=bool(raw.get("active")),
        )


@dataclass
class SearchHit:
    type: str
    id: int
    title: str
    subtitle: str = ""

    @classmethod
    def from_dict(cls, raw: dict) -> "SearchHit":
        return cls(
            type=raw.get("type") or "",
            id=int(raw.get("id") or 0),
            title=raw.get("title") or "",
            subtitle=raw.get("subtitle") or "",
        )


@dataclass
class SearchResults:
    query: str
    hits: list = field(default_factory=list)
    counts: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict) -> "SearchResults":
        return cls(
            query=raw.get("query") or "",
            hits=[SearchHit.from_dict(item) for item in raw.get("results") or []],
            counts={str(k): int(v) for k, v in (raw.get("counts") or {}).items()},
        )


# ── Create requests ───────────────────────────────────────


def _drop_empty(payload: dict) -> dict:
    return {k: v for k, v in payload.items() if v not in (None, "")}


def _number(value: Decimal) -> float:
    """
    JSON number for a parsed amount. Parsed amounts are whole cents below
    a billion, so the float prints back as exactly the same digits.
    """
    return float(value)


@dataclass
class ClientCreateRequest:
    name: str
    email: str
    address: Optional[str] = None
    tax_id: Optional[str] = None

    def to_payload(self) -> dict:
        return _drop_empty({
            "name": self.name,
            "email": self.email,
            "address": self.address,
            "tax_id": self.tax_id,
        })


@dataclass
class CompanyCreateRequest:
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = None

    def to_payload(self) -> dict:
        return _drop_empty({
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "tax_id": self.tax_id,
        })


@dataclass
class ContractCreateRequest:
    client_id: int
    name: str
    type: str
    rate: Decimal

    def to_payload(self) -> dict:
        return {
            "client_id": self.client_id,
            "name": self.name,
            "type": self.type,
            "rate": _number(self.rate),
        }


@dataclass
class ExpenseCreateRequest:
    description: str
    amount: Decimal
    category: str
    vendor: Optional[str] = None

    def to_payload(self) -> dict:
        return _drop_empty({
            "description": self.description,
            "amount": _number(self.amount),
            "category": self.category,
            "vendor": self.vendor,
        })


@dataclass
class InvoiceCreateRequest:
    """
    Answers collected by the invoice wizard.

    The API expects an absolute due date, so `to_payload` turns the
    chosen day count into an ISO date relative to `today`.
    """
    client_id: int
    amount: Decimal
    description: str
    due_days: int
    currency: str = "USD"
    today: date = field(default_factory=date.today)

    @property
    def due_date(self) -> date:
        return self.today + timedelta(days=self.due_days)

    def to_payload(self) -> dict:
        return {
            "client_id": self.client_id,
            "amount": _number(self.amount),
            "currency": self.currency,
            "description": self.description,
            "due_date": self.due_date.isoformat(),
        }


@dataclass
class TrackingCreateRequest:
    """
    A manual time entry. The API wants a time range, so the entry is
    placed to end at `now` and start `hours` earlier.
    """
    contract_id: int
    hours: Decimal
    project_name: Optional[str] = None
    notes: Optional[str] = None
    billable: bool = True
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_payload(self) -> dict:
        start = self.now - timedelta(hours=float(self.hours))
        return {
            "contract_id": self.contract_id,
            "project_name": self.project_name or "",
            "start_time": start.isoformat(timespec="seconds"),
            "end_time": self.now.isoformat(timespec="seconds"),
            "hours": _number(self.hours),
            "billable": self.billable,
            "notes": self.notes or "",
        }
