"""Auth token storage (the token itself is issued by the login flow)."""
from typing import Optional

from storefront.cart.storage import KeyValueStorage
from storefront.config import StorageKeys


class AuthTokenStore:
    def __init__(self, storage: KeyValueStorage, key: str = StorageKeys.AUTH_TOKEN):
        self._storage = storage
        self._key = key

    def get_token(self) -> Optional[str]:
        return self._storage.get(self._key) or None

    def set_token(self, token: str) -> None:
        self._storage.set(self._key, token)

    def clear_token(self) -> None:
        self._storage.delete(self._key)

    @property
    def is_authenticated(self) -> bool:
        return self.get_token() is not None
