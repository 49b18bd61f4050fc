"""Checkout Service

Glues the local cart store, the session id and the cart API together:
validate locally, reconcile the remote cart, then ask the server for a
payment redirect URL.
"""
import asyncio
from typing import Optional

from storefront.auth.session import SessionIdentityProvider
from storefront.cart.reconciler import CartReconciler
from storefront.cart.store import CartStore
from storefront.errors import (
    CONTEXT_CHECKOUT,
    ERROR_EMPTY_CART,
    ERROR_UNEXPECTED,
    CartSyncError,
    CheckoutError,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.api_client import CartApiClient
from storefront.services.money import format_money
from storefront.services.pricing import CartTotals, calculate_totals
from storefront.utils.validators import validate_address

logger = get_logger(__name__)


class CheckoutService:
    """Checkout flow for the local cart."""

    def __init__(
        self,
        store: CartStore,
        sessions: SessionIdentityProvider,
        client: CartApiClient,
        reconciler: Optional[CartReconciler] = None,
    ):
        self.store = store
        self.sessions = sessions
        self.client = client
        self.reconciler = reconciler or CartReconciler(client)

    def totals(self) -> CartTotals:
        state = self.store.state
        return calculate_totals(state.items, state.billing_cycle)

    async def checkout(
        self,
        address_id: str | None = None,
        address: dict | None = None,
    ) -> str:
        """
        Reconcile the remote cart and create a payment session.

        Args:
            address_id: saved billing address to attach (authenticated flow)
            address: raw address form values, validated before any request

        Returns:
            Payment redirect URL

        Raises:
            AddressValidationError: address form is invalid (nothing was sent)
            CheckoutError: cart is empty or a remote call failed
        """
        if address is not None:
            validate_address(address)

        if not self.store.has_items():
            raise CheckoutError(ERROR_EMPTY_CART)

        snapshot = self.store.state
        totals = self.totals()
        logger.info(
            "Checkout for session %s: %d item(s), %s %s",
            sanitize_id_for_logging(self.sessions.get_or_create_session_id()),
            totals.item_count,
            format_money(totals.total),
            totals.billing_cycle.value,
        )

        self.store.mark_syncing()
        try:
            await self.reconciler.reconcile(snapshot)
            url = await self.client.checkout(address_id)
        except CartSyncError as e:
            logger.warning("Checkout aborted: %s", e)
            self.store.mark_sync_failed(str(e))
            raise CheckoutError(str(e)) from e
        except asyncio.CancelledError:
            logger.info("Checkout abandoned mid-reconciliation")
            self.store.mark_synced()
            raise
        except Exception as e:
            logger.exception("Checkout failed unexpectedly")
            message = f"{CONTEXT_CHECKOUT}: {ERROR_UNEXPECTED}"
            self.store.mark_sync_failed(message)
            raise CheckoutError(message) from e

        self.store.mark_synced()
        return url

    def complete_checkout(self) -> None:
        """Payment succeeded: empty the cart and start a fresh server session."""
        self.store.clear()
        self.sessions.clear_session_id()
