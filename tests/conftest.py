"""Pytest configuration and fixtures"""
import os

import httpx
import pytest

# Keep tests away from real storage and servers
os.environ.setdefault("STOREFRONT_STORAGE_BACKEND", "memory")
os.environ.setdefault("STOREFRONT_API_URL", "http://testserver")
os.environ.setdefault("STOREFRONT_CHECKOUT_SUCCESS_URL", "https://shop.test/checkout/success")

from storefront.auth import AuthTokenStore, SessionIdentityProvider  # noqa: E402
from storefront.cart import CartStore, MemoryStorage, RemoteCartItem, RemoteCartSnapshot  # noqa: E402
from storefront.errors import CartSyncError  # noqa: E402
from storefront.server import InMemoryCartRepository, create_app  # noqa: E402
from storefront.services.api_client import CartApiClient  # noqa: E402
from storefront.services.catalog import BillingCycle, ItemType  # noqa: E402

# Calls that change line items (the billing-cycle call is not one of them)
ITEM_MUTATIONS = {"update", "add_plan", "add_addon", "delete"}


class FakeCartClient:
    """
    In-memory stand-in for ``CartApiClient``.

    Holds a simulated remote cart and records every call so tests can
    assert exactly which requests reconciliation issued.
    """

    def __init__(self, items=None, billing_cycle=BillingCycle.MONTHLY, fail_on=None):
        # item_id -> (ItemType, quantity)
        self.items = dict(items or {})
        self.billing_cycle = BillingCycle(billing_cycle)
        self.fail_on = fail_on
        self.calls = []
        self.checkout_url = "https://pay.test/session/abc"

    def _record(self, *call):
        self.calls.append(call)
        if self.fail_on == call[0]:
            raise CartSyncError("Simulated failure", f"{call[0]} rejected", status_code=500)

    @property
    def mutations(self):
        return [call for call in self.calls if call[0] in ITEM_MUTATIONS]

    async def fetch_cart(self):
        self._record("fetch")
        return RemoteCartSnapshot(
            items=tuple(
                RemoteCartItem(item_id=item_id, item_type=item_type, quantity=quantity)
                for item_id, (item_type, quantity) in self.items.items()
            ),
            billing_cycle=self.billing_cycle,
        )

    async def set_billing_cycle(self, cycle):
        self._record("billing_cycle", BillingCycle(cycle).value)
        self.billing_cycle = BillingCycle(cycle)

    async def update_item_quantity(self, item_id, quantity):
        self._record("update", item_id, quantity)
        item_type, _ = self.items[item_id]
        self.items[item_id] = (item_type, quantity)

    async def add_plan(self, plan_id, quantity):
        self._record("add_plan", plan_id, quantity)
        self.items[plan_id] = (ItemType.PLAN, quantity)

    async def add_addon(self, addon_id, quantity):
        self._record("add_addon", addon_id, quantity)
        self.items[addon_id] = (ItemType.ADDON, quantity)

    async def remove_item(self, item_id):
        self._record("delete", item_id)
        self.items.pop(item_id, None)

    async def checkout(self, address_id=None):
        self._record("checkout", address_id)
        return self.checkout_url


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def cart_store(storage):
    store = CartStore(storage)
    store.load()
    return store


@pytest.fixture
def sessions(storage):
    return SessionIdentityProvider(storage)


@pytest.fixture
def tokens(storage):
    return AuthTokenStore(storage)


@pytest.fixture
def fake_client():
    return FakeCartClient()


@pytest.fixture
def cart_repository():
    return InMemoryCartRepository()


@pytest.fixture
def server_app(cart_repository):
    return create_app(cart_repository)


@pytest.fixture
def api_client(server_app, sessions, tokens):
    """CartApiClient wired to the reference server through ASGI (no sockets)."""
    return CartApiClient(
        session_id=sessions.get_or_create_session_id,
        auth_token=tokens.get_token,
        base_url="http://testserver",
        transport=httpx.ASGITransport(app=server_app),
    )


@pytest.fixture
def make_client():
    """Factory for ``FakeCartClient`` with a preset remote cart."""
    return FakeCartClient
