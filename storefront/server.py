"""
Reference cart API server.

In-memory implementation of the cart HTTP contract, keyed by the
``X-Session-ID`` header (or ``session_id`` cookie). Used for local
development and end-to-end tests of the reconciliation engine; the
payment step returns a success URL instead of talking to a processor.

Run with:
    uvicorn storefront.server:app --port 8080
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from storefront import config
from storefront.errors import (
    ERROR_EMPTY_CART,
    ERROR_INVALID_ADDON,
    ERROR_INVALID_BILLING_CYCLE,
    ERROR_INVALID_JSON,
    ERROR_INVALID_PLAN,
    ERROR_ITEM_ID_REQUIRED,
    ERROR_SESSION_REQUIRED,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.models import (
    AddAddonRequest,
    AddPlanRequest,
    CartOut,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    ErrorResponse,
    LineItemOut,
    SetBillingCycleRequest,
    UpdateItemRequest,
)
from storefront.services.catalog import ADDONS, PLANS, BillingCycle, ItemType
from storefront.services.money import to_float
from storefront.services.pricing import monthly_total, yearly_total

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["cart"], responses={400: {"model": ErrorResponse}})


@dataclass
class LineItem:
    """Server-side line item (``id``/``type`` so pricing functions apply directly)."""
    id: str
    type: ItemType
    name: str
    price: float
    quantity: int


@dataclass
class ServerCart:
    session_id: str
    items: List[LineItem] = field(default_factory=list)
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def find(self, item_id: str) -> Optional[LineItem]:
        return next((item for item in self.items if item.id == item_id), None)

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)


class InMemoryCartRepository:
    """Carts by session id."""

    def __init__(self):
        self._carts: Dict[str, ServerCart] = {}

    def get_or_create(self, session_id: str) -> ServerCart:
        cart = self._carts.get(session_id)
        if cart is None:
            cart = ServerCart(session_id=session_id)
            self._carts[session_id] = cart
            logger.info("Created server cart for session %s", sanitize_id_for_logging(session_id))
        return cart

    def delete(self, session_id: str) -> None:
        self._carts.pop(session_id, None)


# ==================== DEPENDENCIES ====================

def get_session_id(request: Request) -> str:
    session_id = request.cookies.get("session_id") or request.headers.get("X-Session-ID", "")
    if not session_id:
        raise HTTPException(status_code=400, detail=ERROR_SESSION_REQUIRED)
    return session_id


def get_repository(request: Request) -> InMemoryCartRepository:
    return request.app.state.carts


def get_cart(
    session_id: str = Depends(get_session_id),
    repo: InMemoryCartRepository = Depends(get_repository),
) -> ServerCart:
    return repo.get_or_create(session_id)


def _cart_response(cart: ServerCart) -> CartResponse:
    return CartResponse(
        cart=CartOut(
            sessionId=cart.session_id,
            items=[
                LineItemOut(
                    itemId=item.id,
                    itemType=item.type,
                    name=item.name,
                    price=item.price,
                    quantity=item.quantity,
                )
                for item in cart.items
            ],
            billingCycle=cart.billing_cycle,
        ),
        monthlyTotal=to_float(monthly_total(cart.items)),
        yearlyTotal=to_float(yearly_total(cart.items)),
    )


# ==================== ROUTES ====================

@router.get("/cart", response_model=CartResponse)
async def read_cart(cart: ServerCart = Depends(get_cart)):
    return _cart_response(cart)


@router.post("/cart/billing-cycle", response_model=CartResponse)
async def set_billing_cycle(request: SetBillingCycleRequest, cart: ServerCart = Depends(get_cart)):
    cart.billing_cycle = request.billingCycle
    cart.touch()
    return _cart_response(cart)


@router.post("/cart/plan", response_model=CartResponse)
async def add_plan(request: AddPlanRequest, cart: ServerCart = Depends(get_cart)):
    """Add a plan; an existing plan line has its quantity incremented."""
    plan = PLANS.get(request.planId)
    if plan is None:
        raise HTTPException(status_code=400, detail=ERROR_INVALID_PLAN)

    quantity = max(request.quantity, 1)
    existing = cart.find(plan.id)
    if existing:
        existing.quantity += quantity
    else:
        cart.items.append(
            LineItem(
                id=plan.id,
                type=ItemType.PLAN,
                name=plan.name,
                price=to_float(plan.monthly_price),
                quantity=quantity,
            )
        )
    cart.touch()
    return _cart_response(cart)


@router.post("/cart/addon", response_model=CartResponse)
async def add_addon(request: AddAddonRequest, cart: ServerCart = Depends(get_cart)):
    """Add an add-on; adding one that is already in the cart changes nothing."""
    addon = ADDONS.get(request.addonId)
    if addon is None:
        raise HTTPException(status_code=400, detail=ERROR_INVALID_ADDON)

    if cart.find(addon.id) is None:
        cart.items.append(
            LineItem(
                id=addon.id,
                type=ItemType.ADDON,
                name=addon.name,
                price=to_float(addon.monthly_price),
                quantity=max(request.quantity, 1),
            )
        )
        cart.touch()
    return _cart_response(cart)


@router.put("/cart/item/{item_id}", response_model=CartResponse)
async def update_item(item_id: str, request: UpdateItemRequest, cart: ServerCart = Depends(get_cart)):
    """Set a line's quantity; zero or less removes it, unknown ids are ignored."""
    if not item_id:
        raise HTTPException(status_code=400, detail=ERROR_ITEM_ID_REQUIRED)

    if request.quantity <= 0:
        cart.items = [item for item in cart.items if item.id != item_id]
    else:
        existing = cart.find(item_id)
        if existing is None:
            return _cart_response(cart)
        existing.quantity = request.quantity
    cart.touch()
    return _cart_response(cart)


@router.delete("/cart/item/{item_id}", response_model=CartResponse)
async def remove_item(item_id: str, cart: ServerCart = Depends(get_cart)):
    cart.items = [item for item in cart.items if item.id != item_id]
    cart.touch()
    return _cart_response(cart)


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    request: Request,
    cart: ServerCart = Depends(get_cart),
):
    body = CheckoutRequest()
    raw = await request.body()
    if raw:
        try:
            body = CheckoutRequest.model_validate_json(raw)
        except ValueError:
            raise HTTPException(status_code=400, detail=ERROR_INVALID_JSON)

    if not cart.items:
        raise HTTPException(status_code=400, detail=ERROR_EMPTY_CART)

    payment_session_id = uuid.uuid4().hex
    logger.info(
        "Checkout session %s for cart %s (%d items, %s, address=%s)",
        sanitize_id_for_logging(payment_session_id),
        sanitize_id_for_logging(cart.session_id),
        len(cart.items),
        cart.billing_cycle.value,
        body.addressId or "none",
    )
    return CheckoutResponse(url=f"{config.CHECKOUT_SUCCESS_URL}?session_id={payment_session_id}")


# ==================== APP ====================

async def _http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(error=str(exc.detail)).model_dump())


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    for error in exc.errors():
        if "billingCycle" in error.get("loc", ()):
            return JSONResponse(status_code=400, content=ErrorResponse(error=ERROR_INVALID_BILLING_CYCLE).model_dump())
    return JSONResponse(status_code=400, content=ErrorResponse(error=ERROR_INVALID_JSON).model_dump())


def create_app(repository: InMemoryCartRepository | None = None) -> FastAPI:
    app = FastAPI(title="Storefront Cart API", version="1.0.0")
    app.state.carts = repository or InMemoryCartRepository()
    app.add_exception_handler(HTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(router)
    return app


app = create_app()
