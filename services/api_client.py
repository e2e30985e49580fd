"""
services/api_client.py
----------------------
Async client for the UNG billing REST API.

Every call either returns a typed record or raises an ApiError subclass.
Callers never see httpx exceptions, and there is no retry inside the
client: a failed call is reported once and the user decides to retry.

Response envelope (every endpoint except /search):
    {"success": true, "data": ..., "error": "..."}
"""

import json
from typing import Any, Optional

import httpx

from models.billing import (
    Client,
    ClientCreateRequest,
    Company,
    CompanyCreateRequest,
    Contract,
    ContractCreateRequest,
    Expense,
    ExpenseCreateRequest,
    Invoice,
    InvoiceCreateRequest,
    SearchResults,
    TrackingCreateRequest,
    TrackingSession,
)
from utils.logger import get_logger

logger = get_logger(__name__)

API_PREFIX = "/api/v1"


class ApiError(Exception):
    """Base class for every classified API failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ApiRequestError(ApiError):
    """The request body could not be encoded as JSON."""


class ApiTimeoutError(ApiError):
    """The API did not answer within the configured timeout."""


class ApiUnavailableError(ApiError):
    """The API could not be reached at all."""


class ApiAuthError(ApiError):
    """Missing, expired or rejected credentials."""


class ApiResponseError(ApiError):
    """Unexpected status code or a body that does not match the envelope."""


class ApiClient:
    """
    Thin wrapper over httpx.AsyncClient.

    Args:
        base_url: e.g. 'http://localhost:8080'.
        timeout: Seconds before a call fails with ApiTimeoutError.
        http_client: Pre-built client (tests pass one with a MockTransport).
    """

    def __init__(self, base_url: str, timeout: float = 30.0,
                 http_client: Optional[httpx.AsyncClient] = None):
        self._http = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, token: Optional[str] = None,
                       payload: Optional[dict] = None, params: Optional[dict] = None,
                       envelope: bool = True) -> Any:
        url = f"{API_PREFIX}{path}"
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        content = None
        if payload is not None:
            try:
                content = json.dumps(payload, allow_nan=False)
            except (TypeError, ValueError) as e:
                raise ApiRequestError(f"{method} {url} payload could not be encoded: {e}") from e

        try:
            response = await self._http.request(method, url, headers=headers, content=content, params=params)
        except httpx.TimeoutException as e:
            raise ApiTimeoutError(f"{method} {url} timed out") from e
        except httpx.HTTPError as e:
            raise ApiUnavailableError(f"{method} {url} failed: {e}") from e

        if response.status_code in (401, 403):
            raise ApiAuthError(f"{method} {url} was rejected", response.status_code)
        if response.status_code not in (200, 201):
            raise ApiResponseError(
                f"{method} {url} returned {response.status_code}: {response.text[:200]}",
                response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ApiResponseError(f"{method} {url} returned non-JSON", response.status_code) from e

        if not isinstance(body, dict):
            raise ApiResponseError(f"{method} {url} returned an unexpected body", response.status_code)
        if not envelope:
            return body
        if body.get("success") is False:
            raise ApiResponseError(body.get("error") or f"{method} {url} failed", response.status_code)
        return body.get("data")

    async def _list(self, path: str, token: str, record) -> list:
        data = await self._request("GET", path, token)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ApiResponseError(f"GET {path} did not return a list")
        try:
            return [record.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise ApiResponseError(f"GET {path} returned malformed records: {e}") from e

    async def _post(self, path: str, token: str, payload: Optional[dict], record):
        data = await self._request("POST", path, token, payload)
        if not isinstance(data, dict):
            raise ApiResponseError(f"POST {path} did not return a record")
        try:
            return record.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ApiResponseError(f"POST {path} returned a malformed record: {e}") from e

    # ── Auth ──────────────────────────────────────────────

    async def login(self, email: str, password: str) -> str:
        """
        Exchange credentials for a bearer token.

        Raises:
            ApiAuthError: Wrong credentials or no token in the response.
        """
        data = await self._request("POST", "/auth/login", payload={"email": email, "password": password})
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise ApiAuthError("login response carried no access token")
        return token

    # ── Clients ───────────────────────────────────────────

    async def list_clients(self, token: str) -> list[Client]:
        return await self._list("/clients", token, Client)

    async def create_client(self, token: str, request: ClientCreateRequest) -> Client:
        return await self._post("/clients", token, request.to_payload(), Client)

    # ── Companies ─────────────────────────────────────────

    async def list_companies(self, token: str) -> list[Company]:
        return await self._list("/companies", token, Company)

    async def create_company(self, token: str, request: CompanyCreateRequest) -> Company:
        return await self._post("/companies", token, request.to_payload(), Company)

    # ── Contracts ─────────────────────────────────────────

    async def list_contracts(self, token: str) -> list[Contract]:
        return await self._list("/contracts", token, Contract)

    async def create_contract(self, token: str, request: ContractCreateRequest) -> Contract:
        return await self._post("/contracts", token, request.to_payload(), Contract)

    # ── Expenses ──────────────────────────────────────────

    async def list_expenses(self, token: str) -> list[Expense]:
        return await self._list("/expenses", token, Expense)

    async def create_expense(self, token: str, request: ExpenseCreateRequest) -> Expense:
        return await self._post("/expenses", token, request.to_payload(), Expense)

    # ── Invoices ──────────────────────────────────────────

    async def list_invoices(self, token: str) -> list[Invoice]:
        return await self._list("/invoices", token, Invoice)

    async def create_invoice(self, token: str, request: InvoiceCreateRequest) -> Invoice:
        logger.info(f"Creating invoice for client {request.client_id} due in {request.due_days} days")
        return await self._post("/invoices", token, request.to_payload(), Invoice)

    # ── Time tracking ─────────────────────────────────────

    async def list_tracking(self, token: str) -> list[TrackingSession]:
        return await self._list("/tracking", token, TrackingSession)

    async def start_tracking(self, token: str, project_id: int = 1, notes: str = "") -> TrackingSession:
        return await self._post("/tracking/start", token, {"project_id": project_id, "notes": notes}, TrackingSession)

    async def stop_tracking(self, token: str) -> TrackingSession:
        return await self._post("/tracking/stop", token, None, TrackingSession)

    async def create_tracking(self, token: str, request: TrackingCreateRequest) -> TrackingSession:
        logger.info(f"Logging {request.hours}h on contract {request.contract_id}")
        return await self._post("/tracking", token, request.to_payload(), TrackingSession)

    # ── Search ────────────────────────────────────────────

    async def search(self, token: str, query: str) -> SearchResults:
        """Global search. The endpoint answers with a bare body, not the envelope."""
        body = await self._request("GET", "/search", token, params={"q": query}, envelope=False)
        try:
            return SearchResults.from_dict(body)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ApiResponseError(f"GET /search returned a malformed body: {e}") from e
