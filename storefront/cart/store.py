"""Observable, persisted local cart store."""
import json
from dataclasses import replace
from enum import Enum
from typing import Callable, List, Optional

from storefront.config import StorageKeys
from storefront.errors import StorageError
from storefront.logging import get_logger
from storefront.services.catalog import BillingCycle, ItemType
from .models import CartItem, LocalCart
from .storage import KeyValueStorage

logger = get_logger(__name__)

Listener = Callable[[LocalCart], None]


class CartStatus(str, Enum):
    """
    Cart lifecycle as seen by the UI.

    Flow:
        empty <-> populated -> syncing -> populated (checkout redirect)
                                       -> error -> syncing (retry)
    """
    EMPTY = "empty"
    POPULATED = "populated"
    SYNCING = "syncing"
    ERROR = "error"


class CartStore:
    """
    Owns the authoritative local cart.

    Every mutation replaces the state with a new ``LocalCart``, writes it
    to durable storage and then notifies subscribers, synchronously and
    in that order. Storage problems are logged and never raised: a cart
    that cannot be saved is still usable for the current session.
    """

    def __init__(self, storage: KeyValueStorage, key: str = StorageKeys.CART):
        self._storage = storage
        self._key = key
        self._state = LocalCart()
        self._listeners: List[Listener] = []
        self._syncing = False
        self.last_error: Optional[str] = None

    # ==================== READS ====================

    @property
    def state(self) -> LocalCart:
        return self._state

    @property
    def status(self) -> CartStatus:
        if self._syncing:
            return CartStatus.SYNCING
        if self.last_error:
            return CartStatus.ERROR
        return CartStatus.POPULATED if self.has_items() else CartStatus.EMPTY

    def has_items(self) -> bool:
        return len(self._state.items) > 0

    def get_item_count(self) -> int:
        """Total number of units in the cart."""
        return sum(item.quantity for item in self._state.items)

    def get_cart_item(self, item_id: str) -> Optional[CartItem]:
        return self._state.get(item_id)

    # ==================== SUBSCRIPTIONS ====================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Cart listener %r failed", listener)

    def _commit(self, new_state: LocalCart) -> None:
        self._state = new_state
        self.persist()
        self._notify()

    # ==================== MUTATIONS ====================

    def add_item(self, item_id: str, item_type: ItemType | str) -> None:
        """Add one unit of an item (appends a new line or bumps the quantity)."""
        items = [replace(item) for item in self._state.items]
        existing = next((item for item in items if item.id == item_id), None)
        if existing:
            existing.quantity += 1
        else:
            items.append(CartItem(id=item_id, type=ItemType(item_type), quantity=1))
        logger.debug("add_item %s -> %d line(s)", item_id, len(items))
        self._commit(replace(self._state, items=items))

    def set_quantity(self, item_id: str, quantity: int) -> None:
        """Set an item's quantity; zero or less removes it."""
        if quantity <= 0:
            items = [replace(item) for item in self._state.items if item.id != item_id]
        else:
            items = [
                replace(item, quantity=quantity) if item.id == item_id else replace(item)
                for item in self._state.items
            ]
        self._commit(replace(self._state, items=items))

    def remove_item(self, item_id: str) -> None:
        self.set_quantity(item_id, 0)

    def set_billing_cycle(self, cycle: BillingCycle | str) -> None:
        items = [replace(item) for item in self._state.items]
        self._commit(LocalCart(items=items, billing_cycle=BillingCycle(cycle)))

    def clear(self) -> None:
        """Reset to the empty monthly cart (after checkout)."""
        self.last_error = None
        self._commit(LocalCart())

    # ==================== SYNC STATUS ====================

    def mark_syncing(self) -> None:
        self._syncing = True
        self.last_error = None
        self._notify()

    def mark_synced(self) -> None:
        self._syncing = False
        self._notify()

    def mark_sync_failed(self, message: str) -> None:
        self._syncing = False
        self.last_error = message
        self._notify()

    # ==================== PERSISTENCE ====================

    def load(self) -> LocalCart:
        """
        Restore the cart from durable storage.

        Missing data keeps the empty cart; corrupt data is logged and
        replaced by the empty cart. Subscribers are notified either way.
        """
        try:
            data = self._storage.get(self._key)
        except StorageError as e:
            logger.warning("Failed to read saved cart: %s", e)
            data = None

        if data:
            try:
                self._state = LocalCart.from_dict(json.loads(data))
                logger.info("Restored cart with %d line(s)", len(self._state.items))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Corrupted cart data in storage, starting empty: %s", e)
                self._state = LocalCart()
        else:
            logger.debug("No saved cart found in storage")

        self._notify()
        return self._state

    def persist(self) -> bool:
        """Save the current cart; returns False (and logs) when the write fails."""
        try:
            self._storage.set(self._key, json.dumps(self._state.to_dict()))
            return True
        except (StorageError, TypeError, ValueError) as e:
            logger.error("Failed to save cart to storage: %s", e)
            return False
