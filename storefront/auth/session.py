"""Anonymous cart session identity."""
import uuid
from typing import Optional

from storefront.cart.storage import KeyValueStorage
from storefront.config import StorageKeys
from storefront.errors import StorageError
from storefront.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)


class SessionIdentityProvider:
    """
    Produces the token that addresses the pre-login server cart.

    The id is created lazily on first use, persisted, and reused until
    ``clear_session_id`` is called after a completed checkout. When
    storage is unavailable the id lives only in this process.
    """

    def __init__(self, storage: KeyValueStorage, key: str = StorageKeys.SESSION_ID):
        self._storage = storage
        self._key = key
        self._cached: Optional[str] = None

    def get_or_create_session_id(self) -> str:
        if self._cached:
            return self._cached

        try:
            session_id = self._storage.get(self._key)
        except StorageError as e:
            logger.warning("Failed to read cart session, using a new one: %s", e)
            session_id = None

        if not session_id:
            session_id = str(uuid.uuid4())
            try:
                self._storage.set(self._key, session_id)
            except StorageError as e:
                logger.warning("Failed to save cart session, keeping it in memory: %s", e)
            logger.info("Created cart session %s", sanitize_id_for_logging(session_id))

        self._cached = session_id
        return session_id

    def clear_session_id(self) -> None:
        """Forget the session so the next purchase starts with a fresh server cart."""
        self._cached = None
        try:
            self._storage.delete(self._key)
        except StorageError as e:
            logger.warning("Failed to delete saved cart session: %s", e)
        logger.info("Cleared cart session")
