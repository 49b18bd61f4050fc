"""
Durable key/value storage for the cart, session id and auth token.

Values are opaque strings (JSON where structured). Backends raise
``StorageError`` on any failure; callers decide whether that is fatal.
"""
import os
from pathlib import Path
from typing import Optional

from upstash_redis import Redis

from storefront import config
from storefront.errors import StorageError
from storefront.logging import get_logger

logger = get_logger(__name__)


class KeyValueStorage:
    """Interface shared by all storage backends."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(KeyValueStorage):
    """Process-local storage (tests, one-shot scripts)."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage(KeyValueStorage):
    """One file per key under a directory, written atomically."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe_key = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in key)
        return self.directory / safe_key

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e


class RedisStorage(KeyValueStorage):
    """
    Upstash Redis storage.

    Keys are namespaced with a prefix so several shoppers (e.g. one per
    device id) can share one database.
    """

    def __init__(self, client: Redis, prefix: str = "storefront:"):
        self._redis = client
        self.prefix = prefix

    @classmethod
    def from_env(cls, prefix: str = "storefront:") -> "RedisStorage":
        if not config.UPSTASH_REDIS_REST_URL or not config.UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        client = Redis(url=config.UPSTASH_REDIS_REST_URL, token=config.UPSTASH_REDIS_REST_TOKEN)
        return cls(client, prefix=prefix)

    def get(self, key: str) -> Optional[str]:
        try:
            return self._redis.get(f"{self.prefix}{key}")
        except Exception as e:
            raise StorageError(f"Redis get failed for {key}: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            self._redis.set(f"{self.prefix}{key}", value)
        except Exception as e:
            raise StorageError(f"Redis set failed for {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(f"{self.prefix}{key}")
        except Exception as e:
            raise StorageError(f"Redis delete failed for {key}: {e}") from e


def create_storage(backend: str | None = None) -> KeyValueStorage:
    """Build the configured storage backend (``file``, ``memory`` or ``redis``)."""
    backend = (backend or config.STORAGE_BACKEND).lower()
    logger.debug("Using %s storage backend", backend)
    if backend == "memory":
        return MemoryStorage()
    if backend == "redis":
        return RedisStorage.from_env()
    if backend == "file":
        return FileStorage(config.STORAGE_DIR)
    raise ValueError(f"Unknown storage backend: {backend}")
