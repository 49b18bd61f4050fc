"""
Storefront settings.

All values come from environment variables (a local ``.env`` file is
loaded first when present).
"""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Cart API
API_URL = os.environ.get("STOREFRONT_API_URL", "http://localhost:8080")
HTTP_TIMEOUT = float(os.environ.get("STOREFRONT_HTTP_TIMEOUT", "10"))
HTTP_CONNECT_TIMEOUT = float(os.environ.get("STOREFRONT_HTTP_CONNECT_TIMEOUT", "5"))
HTTP_RETRIES = int(os.environ.get("STOREFRONT_HTTP_RETRIES", "3"))

# Durable storage
STORAGE_BACKEND = os.environ.get("STOREFRONT_STORAGE_BACKEND", "file")
STORAGE_DIR = Path(os.environ.get("STOREFRONT_STORAGE_DIR", str(Path.home() / ".storefront")))

# Upstash Redis (redis storage backend)
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

# Reference server
CHECKOUT_SUCCESS_URL = os.environ.get(
    "STOREFRONT_CHECKOUT_SUCCESS_URL", "http://localhost:3000/checkout/success"
)


class StorageKeys:
    """Durable storage keys (values are opaque strings, JSON where structured)."""

    CART = "dysv_cart"
    SESSION_ID = "dysv_session_id"
    AUTH_TOKEN = "dysv_auth_token"
