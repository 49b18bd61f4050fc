"""Cart API client.

Thin async wrapper over the cart HTTP contract. Every call is one
request; failures (non-2xx or transport) become ``CartSyncError`` with
the server's ``{"error": ...}`` message when there is one.
"""
from typing import Any, Callable, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from storefront import config
from storefront.cart.models import RemoteCartSnapshot
from storefront.errors import (
    CONTEXT_ADD_ADDON,
    CONTEXT_ADD_PLAN,
    CONTEXT_CHECKOUT,
    CONTEXT_LOAD_CART,
    CONTEXT_REMOVE_ITEM,
    CONTEXT_SET_BILLING_CYCLE,
    CONTEXT_UPDATE_ITEM,
    ERROR_NO_REDIRECT_URL,
    ERROR_UNEXPECTED,
    CartSyncError,
)
from storefront.logging import get_logger, sanitize_string_for_logging
from storefront.models import (
    AddAddonRequest,
    AddPlanRequest,
    CheckoutRequest,
    CheckoutResponse,
    SetBillingCycleRequest,
    UpdateItemRequest,
)
from storefront.services.catalog import BillingCycle

logger = get_logger(__name__)


def http_retry():
    """Retry transport failures on safe (read-only) requests."""
    return retry(
        reraise=True,
        stop=stop_after_attempt(max(1, config.HTTP_RETRIES)),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(httpx.TransportError),
    )


def _error_detail(response: httpx.Response) -> str:
    """Server ``error`` field, else the reason phrase, else a generic message."""
    try:
        body = response.json()
        if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
            return body["error"]
    except ValueError:
        pass
    return response.reason_phrase or ERROR_UNEXPECTED


class CartApiClient:
    """
    Client for the remote cart.

    Args:
        session_id: callable returning the anonymous session id
        auth_token: callable returning the bearer token, or None when anonymous
        base_url: API origin (defaults to STOREFRONT_API_URL)
        transport: optional httpx transport (tests use ``httpx.ASGITransport``)
    """

    def __init__(
        self,
        session_id: Callable[[], str],
        auth_token: Optional[Callable[[], Optional[str]]] = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ):
        self._session_id = session_id
        self._auth_token = auth_token
        self.base_url = (base_url or config.API_URL).rstrip("/")
        self._transport = transport
        self._timeout = timeout or config.HTTP_TIMEOUT
        self._http_client: httpx.AsyncClient | None = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy creation of shared httpx client with timeouts."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                transport=self._transport,
                timeout=httpx.Timeout(self._timeout, connect=config.HTTP_CONNECT_TIMEOUT),
            )
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "CartApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-Session-ID": self._session_id(),
        }
        token = self._auth_token() if self._auth_token else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _send(self, method: str, path: str, json: Any = None) -> httpx.Response:
        client = await self._get_http_client()
        return await client.request(method, path, headers=self._headers(), json=json)

    @http_retry()
    async def _send_safe(self, method: str, path: str) -> httpx.Response:
        return await self._send(method, path)

    async def _request(
        self,
        method: str,
        path: str,
        context: str,
        json: Any = None,
    ) -> dict:
        try:
            if method == "GET":
                response = await self._send_safe(method, path)
            else:
                response = await self._send(method, path, json=json)
        except httpx.RequestError as e:
            detail = str(e) or type(e).__name__
            logger.warning("%s %s failed: %s", method, path, sanitize_string_for_logging(detail))
            raise CartSyncError(context, detail) from e

        if response.is_error:
            detail = _error_detail(response)
            logger.warning(
                "%s %s returned %s: %s",
                method,
                path,
                response.status_code,
                sanitize_string_for_logging(detail),
            )
            raise CartSyncError(context, detail, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    # ==================== CART ====================

    async def fetch_cart(self) -> RemoteCartSnapshot:
        data = await self._request("GET", "/api/cart", CONTEXT_LOAD_CART)
        try:
            return RemoteCartSnapshot.from_api(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Unreadable cart payload: %s", sanitize_string_for_logging(str(e)))
            raise CartSyncError(CONTEXT_LOAD_CART, ERROR_UNEXPECTED) from e

    async def set_billing_cycle(self, cycle: BillingCycle) -> None:
        body = SetBillingCycleRequest(billingCycle=cycle)
        await self._request(
            "POST", "/api/cart/billing-cycle", CONTEXT_SET_BILLING_CYCLE, json=body.model_dump(mode="json")
        )

    async def add_plan(self, plan_id: str, quantity: int) -> None:
        body = AddPlanRequest(planId=plan_id, quantity=quantity)
        await self._request("POST", "/api/cart/plan", CONTEXT_ADD_PLAN, json=body.model_dump())

    async def add_addon(self, addon_id: str, quantity: int) -> None:
        body = AddAddonRequest(addonId=addon_id, quantity=quantity)
        await self._request("POST", "/api/cart/addon", CONTEXT_ADD_ADDON, json=body.model_dump())

    async def update_item_quantity(self, item_id: str, quantity: int) -> None:
        body = UpdateItemRequest(quantity=quantity)
        await self._request(
            "PUT", f"/api/cart/item/{quote(item_id, safe='')}", CONTEXT_UPDATE_ITEM, json=body.model_dump()
        )

    async def remove_item(self, item_id: str) -> None:
        await self._request("DELETE", f"/api/cart/item/{quote(item_id, safe='')}", CONTEXT_REMOVE_ITEM)

    # ==================== CHECKOUT ====================

    async def checkout(self, address_id: str | None = None) -> str:
        """Create a payment session and return the redirect URL."""
        body = CheckoutRequest(addressId=address_id)
        data = await self._request(
            "POST", "/api/checkout", CONTEXT_CHECKOUT, json=body.model_dump(exclude_none=True)
        )
        if not data.get("url"):
            raise CartSyncError(CONTEXT_CHECKOUT, ERROR_NO_REDIRECT_URL)
        try:
            return CheckoutResponse.model_validate(data).url
        except ValidationError as e:
            raise CartSyncError(CONTEXT_CHECKOUT, ERROR_NO_REDIRECT_URL) from e
