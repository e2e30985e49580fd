"""
models/drafts.py
----------------
Typed scratch records for each wizard.

Every wizard owns exactly one draft type; a step may only write the
field it is responsible for, so re-sending an answer overwrites that
field instead of piling up duplicates.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union


@dataclass(frozen=True)
class InvoiceDraft:
    client_id: Optional[int] = None
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    due_days: Optional[int] = None


@dataclass(frozen=True)
class ClientDraft:
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = None


@dataclass(frozen=True)
class CompanyDraft:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = None


@dataclass(frozen=True)
class ContractDraft:
    client_id: Optional[int] = None
    name: Optional[str] = None
    type: Optional[str] = None
    rate: Optional[Decimal] = None


@dataclass(frozen=True)
class ExpenseDraft:
    description: Optional[str] = None
    amount: Optional[Decimal] = None
    category: Optional[str] = None
    vendor: Optional[str] = None


@dataclass(frozen=True)
class TimeLogDraft:
    contract_id: Optional[int] = None
    hours: Optional[Decimal] = None
    project_name: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class SearchDraft:
    query: Optional[str] = None


Draft = Union[
    InvoiceDraft, ClientDraft, CompanyDraft, ContractDraft, ExpenseDraft, TimeLogDraft, SearchDraft,
]

