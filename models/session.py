"""
models/session.py
-----------------
Conversation state for one Telegram user.

A Session is immutable: every wizard step builds a new Session with
`advance()` and hands it to the SessionStore in a single `put`, so a
half-finished handler can never leave a partially updated record behind.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from models.drafts import (
    ClientDraft,
    CompanyDraft,
    ContractDraft,
    Draft,
    ExpenseDraft,
    InvoiceDraft,
    SearchDraft,
    TimeLogDraft,
)


class Command(str, Enum):
    """Slash commands understood by the command router."""

    START = "start"
    HELP = "help"
    CANCEL = "cancel"
    SKIP = "skip"
    LOGIN = "login"
    LOGOUT = "logout"
    INVOICE = "invoice"
    INVOICES = "invoices"
    CLIENT = "client"
    CLIENTS = "clients"
    COMPANY = "company"
    COMPANIES = "companies"
    CONTRACT = "contract"
    CONTRACTS = "contracts"
    EXPENSE = "expense"
    EXPENSES = "expenses"
    TRACK = "track"
    STOP = "stop"
    TRACKING = "tracking"
    LOG = "log"
    SEARCH = "search"


class Wizard(str, Enum):
    """Multi-step flows a user can be in."""

    INVOICE = "invoice"
    CLIENT = "client"
    COMPANY = "company"
    CONTRACT = "contract"
    EXPENSE = "expense"
    TIME_LOG = "time_log"
    SEARCH = "search"


class SessionState(str, Enum):
    """One tag per wizard step. NONE means no active conversation."""

    NONE = "none"

    # Invoice creation
    INVOICE_SELECT_CLIENT = "invoice_select_client"
    INVOICE_AMOUNT = "invoice_amount"
    INVOICE_DESCRIPTION = "invoice_description"
    INVOICE_DUE_DATE = "invoice_due_date"

    # Client creation
    CLIENT_CREATE_NAME = "client_create_name"
    CLIENT_CREATE_EMAIL = "client_create_email"
    CLIENT_CREATE_ADDRESS = "client_create_address"
    CLIENT_CREATE_TAX_ID = "client_create_tax_id"

    # Company creation
    COMPANY_CREATE_NAME = "company_create_name"
    COMPANY_CREATE_EMAIL = "company_create_email"
    COMPANY_CREATE_PHONE = "company_create_phone"
    COMPANY_CREATE_ADDRESS = "company_create_address"
    COMPANY_CREATE_TAX_ID = "company_create_tax_id"

    # Contract creation
    CONTRACT_SELECT_CLIENT = "contract_select_client"
    CONTRACT_NAME = "contract_name"
    CONTRACT_TYPE = "contract_type"
    CONTRACT_RATE = "contract_rate"

    # Expense creation
    EXPENSE_DESCRIPTION = "expense_description"
    EXPENSE_AMOUNT = "expense_amount"
    EXPENSE_CATEGORY = "expense_category"
    EXPENSE_VENDOR = "expense_vendor"

    # Manual time entry
    TRACK_LOG_SELECT_CONTRACT = "track_log_select_contract"
    TRACK_LOG_HOURS = "track_log_hours"
    TRACK_LOG_PROJECT = "track_log_project"
    TRACK_LOG_NOTES = "track_log_notes"

    # Search
    SEARCH_QUERY = "search_query"


DRAFT_TYPES: dict = {
    Wizard.INVOICE: InvoiceDraft,
    Wizard.CLIENT: ClientDraft,
    Wizard.COMPANY: CompanyDraft,
    Wizard.CONTRACT: ContractDraft,
    Wizard.EXPENSE: ExpenseDraft,
    Wizard.TIME_LOG: TimeLogDraft,
    Wizard.SEARCH: SearchDraft,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Session:
    """
    Per-user conversation record.

    Attributes:
        user_id: Telegram user ID (one Session per user at most).
        state: Current wizard step, or SessionState.NONE.
        wizard: Which wizard `data` belongs to (None when idle).
        data: The wizard's draft record accumulating answers.
        updated_at: Stamped by the store on every write.
    """
    user_id: int
    state: SessionState = SessionState.NONE
    wizard: Optional[Wizard] = None
    data: Optional[Draft] = None
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if self.wizard is None:
            if self.data is not None or self.state is not SessionState.NONE:
                raise ValueError("an idle session carries no wizard data")
            return
        expected = DRAFT_TYPES[self.wizard]
        if not isinstance(self.data, expected):
            raise TypeError(
                f"{self.wizard.value} wizard expects {expected.__name__}, "
                f"got {type(self.data).__name__}"
            )

    @property
    def is_active(self) -> bool:
        return self.state is not SessionState.NONE

    def advance(self, state: SessionState, data: Draft) -> "Session":
        """Return a copy moved to `state` with the updated draft."""
        return replace(self, state=state, data=data)

    def touched(self, when: datetime) -> "Session":
        return replace(self, updated_at=when)
