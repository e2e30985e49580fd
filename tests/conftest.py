"""Shared fixtures: a recording transport, a scripted API and a wired bot."""

import pytest

from bot.context import build_context
from bot.transport import TransportError
from models.billing import Client, Company, Contract, Expense, Invoice, SearchResults, TrackingSession
from models.user import AuthenticatedUser
from factories import USER_ID


class FakeTransport:
    """Records everything the bot sends instead of talking to Telegram."""

    def __init__(self):
        self.sent = []
        self.acks = []
        self.deleted = []
        self.fail_sends = False

    async def send_message(self, chat_id, reply):
        if self.fail_sends:
            raise TransportError("network down")
        self.sent.append((chat_id, reply))

    async def answer_callback(self, callback_id, text=""):
        self.acks.append((callback_id, text))

    async def delete_message(self, chat_id, message_id):
        self.deleted.append((chat_id, message_id))

    @property
    def texts(self):
        return [reply.text for _, reply in self.sent]

    @property
    def last(self):
        return self.sent[-1][1]


class FakeApiClient:
    """In-memory stand-in for ApiClient. Set `error` to make the next calls fail."""

    def __init__(self):
        self.clients = [Client(id=42, name="Acme Corp", email="billing@acme.test")]
        self.companies = []
        self.contracts = []
        self.expenses = []
        self.invoices = []
        self.tracking = []
        self.search_results = SearchResults(query="")
        self.searches = []
        self.created = []
        self.logins = []
        self.error = None
        self.token = "tok-123"

    def _check(self):
        if self.error is not None:
            raise self.error

    async def aclose(self):
        pass

    async def login(self, email, password):
        self.logins.append((email, password))
        self._check()
        return self.token

    async def list_clients(self, token):
        self._check()
        return list(self.clients)

    async def list_companies(self, token):
        self._check()
        return list(self.companies)

    async def list_contracts(self, token):
        self._check()
        return list(self.contracts)

    async def list_expenses(self, token):
        self._check()
        return list(self.expenses)

    async def list_invoices(self, token):
        self._check()
        return list(self.invoices)

    async def create_client(self, token, request):
        self._check()
        self.created.append(("client", token, request))
        return Client(id=100, name=request.name, email=request.email,
                      address=request.address or "", tax_id=request.tax_id or "")

    async def create_company(self, token, request):
        self._check()
        self.created.append(("company", token, request))
        return Company(id=200, name=request.name, email=request.email,
                       phone=request.phone or "", address=request.address or "",
                       tax_id=request.tax_id or "")

    async def create_contract(self, token, request):
        self._check()
        self.created.append(("contract", token, request))
        return Contract(id=300, client_id=request.client_id, name=request.name,
                        type=request.type, rate=float(request.rate), status="active")

    async def create_expense(self, token, request):
        self._check()
        self.created.append(("expense", token, request))
        return Expense(id=400, description=request.description, amount=float(request.amount),
                       category=request.category, vendor=request.vendor or "", date="2026-10-19")

    async def create_invoice(self, token, request):
        self._check()
        self.created.append(("invoice", token, request))
        return Invoice(id=500, invoice_num="INV-2026-001", amount=float(request.amount),
                       currency=request.currency, status="pending",
                       due_date=request.due_date.isoformat())

    async def list_tracking(self, token):
        self._check()
        return list(self.tracking)

    async def start_tracking(self, token, project_id=1, notes=""):
        self._check()
        session = TrackingSession(id=600, project_id=project_id, start_time="2026-10-19T09:00:00Z", active=True)
        self.tracking.append(session)
        return session

    async def stop_tracking(self, token):
        self._check()
        return TrackingSession(id=600, start_time="2026-10-19T09:00:00Z",
                               end_time="2026-10-19T11:30:00Z", duration=2.5)

    async def create_tracking(self, token, request):
        self._check()
        self.created.append(("tracking", token, request))
        return TrackingSession(id=700, duration=float(request.hours), notes=request.notes or "")

    async def search(self, token, query):
        self.searches.append(query)
        self._check()
        return self.search_results


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def api():
    return FakeApiClient()


@pytest.fixture
def ctx(transport, api):
    return build_context(transport, api)


@pytest.fixture
def logged_in(ctx):
    """The default test user, already linked to an API token."""
    return ctx.users.save(AuthenticatedUser(telegram_id=USER_ID, api_token="tok-123", name="Ana"))
