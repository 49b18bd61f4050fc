"""
Common error constants and exceptions.

Message strings are shared between the API client, the reference
server and the checkout service so the same text reaches the user
no matter which side produced it.
"""

# Cart errors
ERROR_SESSION_REQUIRED = "session_id required"
ERROR_ITEM_ID_REQUIRED = "itemId required"
ERROR_INVALID_PLAN = "invalid plan ID"
ERROR_INVALID_ADDON = "invalid addon ID"
ERROR_INVALID_BILLING_CYCLE = "invalid billing cycle"
ERROR_INVALID_JSON = "invalid JSON"
ERROR_EMPTY_CART = "cart is empty"

# Sync contexts (prefix of the user-facing message)
CONTEXT_LOAD_CART = "Failed to load cart"
CONTEXT_SET_BILLING_CYCLE = "Failed to set billing cycle"
CONTEXT_ADD_PLAN = "Failed to set plan"
CONTEXT_ADD_ADDON = "Failed to add addon"
CONTEXT_UPDATE_ITEM = "Failed to update item quantity"
CONTEXT_REMOVE_ITEM = "Failed to remove item from cart"
CONTEXT_CHECKOUT = "Checkout failed"

# Generic errors
ERROR_UNEXPECTED = "unexpected error"
ERROR_NO_REDIRECT_URL = "Payment URL not found in checkout response"


class StorefrontError(Exception):
    """Base class for all storefront errors."""


class StorageError(StorefrontError):
    """Durable storage could not be read or written."""


class CartSyncError(StorefrontError):
    """A call against the remote cart failed (non-2xx or transport error)."""

    def __init__(self, context: str, detail: str, status_code: int | None = None):
        self.context = context
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"{context}: {detail}")


class CheckoutError(StorefrontError):
    """Checkout was aborted; ``str(exc)`` is safe to show to the user."""


class AddressValidationError(StorefrontError):
    """Address submission failed local validation."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        first = next(iter(errors.values()), "Invalid address")
        super().__init__(first)
