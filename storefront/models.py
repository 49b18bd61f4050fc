"""
Cart API Pydantic Models

Request/response bodies of the cart HTTP contract, shared by the
API client and the reference server. Field names follow the wire
format (camelCase).
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from storefront.services.catalog import BillingCycle, ItemType


# ==================== REQUESTS ====================

class SetBillingCycleRequest(BaseModel):
    billingCycle: BillingCycle


class AddPlanRequest(BaseModel):
    planId: str
    quantity: int = 1


class AddAddonRequest(BaseModel):
    addonId: str
    quantity: int = 1


class UpdateItemRequest(BaseModel):
    quantity: int  # 0 or less removes the item


class CheckoutRequest(BaseModel):
    addressId: Optional[str] = None


# ==================== RESPONSES ====================

class LineItemOut(BaseModel):
    itemId: str
    itemType: ItemType
    name: str = ""
    price: float = 0.0  # monthly unit price
    quantity: int


class CartOut(BaseModel):
    sessionId: str
    items: List[LineItemOut] = Field(default_factory=list)
    billingCycle: BillingCycle = BillingCycle.MONTHLY


class CartResponse(BaseModel):
    cart: CartOut
    monthlyTotal: float
    yearlyTotal: float


class CheckoutResponse(BaseModel):
    url: str


class ErrorResponse(BaseModel):
    error: str
