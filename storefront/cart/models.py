"""Local and remote cart models.

``LocalCart`` is what the user sees and edits; ``RemoteCartSnapshot`` is
what the cart API returned at one point in time. The two are separate
types on purpose: the only bridge between them is the reconciliation
diff in ``storefront.cart.reconciler``.
"""
from dataclasses import dataclass, field
from typing import Optional, List

from storefront.services.catalog import BillingCycle, ItemType


@dataclass
class CartItem:
    """Single line item in the local cart."""
    id: str
    type: ItemType
    quantity: int = 1

    def __post_init__(self):
        self.type = ItemType(self.type)
        self.quantity = int(self.quantity)
        if self.quantity < 1:
            raise ValueError("quantity must be a positive integer")

    def to_dict(self) -> dict:
        return {"id": self.id, "type": self.type.value, "quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        return cls(
            id=str(data["id"]),
            type=ItemType(data["type"]),
            quantity=int(data["quantity"]),
        )


@dataclass
class LocalCart:
    """Client-held cart: ordered unique items plus the billing cycle."""
    items: List[CartItem] = field(default_factory=list)
    billing_cycle: BillingCycle = BillingCycle.MONTHLY

    def __post_init__(self):
        self.billing_cycle = BillingCycle(self.billing_cycle)
        seen = set()
        for item in self.items:
            if item.id in seen:
                raise ValueError(f"duplicate cart item: {item.id}")
            seen.add(item.id)

    def get(self, item_id: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.id == item_id), None)

    @property
    def item_ids(self) -> set[str]:
        return {item.id for item in self.items}

    def to_dict(self) -> dict:
        """Convert to the persisted JSON shape."""
        return {
            "items": [item.to_dict() for item in self.items],
            "billingCycle": self.billing_cycle.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LocalCart":
        """Create from the persisted JSON shape.

        Raises KeyError/TypeError/ValueError on malformed input; the store
        treats any of these as corrupt storage.
        """
        if not isinstance(data, dict):
            raise TypeError("cart snapshot must be an object")
        items = [CartItem.from_dict(item) for item in data.get("items", [])]
        return cls(
            items=items,
            billing_cycle=BillingCycle(data.get("billingCycle", BillingCycle.MONTHLY.value)),
        )


@dataclass(frozen=True)
class RemoteCartItem:
    """Line item as held by the cart API."""
    item_id: str
    item_type: ItemType
    quantity: int
    name: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "RemoteCartItem":
        return cls(
            item_id=str(data["itemId"]),
            item_type=ItemType(data["itemType"]),
            quantity=int(data.get("quantity", 0)),
            name=data.get("name") or "",
        )


@dataclass(frozen=True)
class RemoteCartSnapshot:
    """Server cart as fetched once before reconciliation."""
    items: tuple[RemoteCartItem, ...] = ()
    billing_cycle: BillingCycle = BillingCycle.MONTHLY

    def get(self, item_id: str) -> Optional[RemoteCartItem]:
        return next((item for item in self.items if item.item_id == item_id), None)

    @classmethod
    def from_api(cls, payload: dict) -> "RemoteCartSnapshot":
        """Parse a ``GET /api/cart`` response body (``{"cart": {...}}``)."""
        cart = payload.get("cart") or {}
        items = tuple(RemoteCartItem.from_api(item) for item in cart.get("items") or [])
        cycle = cart.get("billingCycle") or BillingCycle.MONTHLY.value
        return cls(items=items, billing_cycle=BillingCycle(cycle))
