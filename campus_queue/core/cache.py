"""Short-lived caching of the public read models.

Every key carries its namespace's current version. Invalidating a namespace
bumps that version, so older entries are never read again and simply expire.
"""

import logging
import pickle
import threading
import time
from functools import wraps
from typing import Any, Callable, Optional, Protocol

from redis import Redis
from redis.exceptions import RedisError

from .config import get_settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "campus_queue:cache"


def _entry_key(namespace: str, version: int, suffix: str) -> str:
    return f"{KEY_PREFIX}:{namespace}:v{version}:{suffix}"


def _version_key(namespace: str) -> str:
    return f"{KEY_PREFIX}:{namespace}:version"


class CacheStore(Protocol):
    kind: str

    def read(self, key: str) -> bytes | None:
        ...

    def write(self, key: str, payload: bytes, ttl: int) -> None:
        ...

    def version(self, namespace: str) -> int:
        ...

    def bump(self, namespace: str) -> int:
        ...


class RedisCacheStore:
    kind = "redis"

    def __init__(self, client: Redis):
        self.client = client

    def read(self, key: str) -> bytes | None:
        return self.client.get(key)

    def write(self, key: str, payload: bytes, ttl: int) -> None:
        self.client.set(key, payload, ex=ttl)

    def version(self, namespace: str) -> int:
        raw = self.client.get(_version_key(namespace))
        return int(raw) if raw is not None else 0

    def bump(self, namespace: str) -> int:
        return int(self.client.incr(_version_key(namespace)))


class MemoryCacheStore:
    kind = "memory"

    def __init__(self) -> None:
        self._entries: dict[str, tuple[float, bytes]] = {}
        self._versions: dict[str, int] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> bytes | None:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            expires_at, payload = item
            if expires_at <= time.monotonic():
                del self._entries[key]
                return None
            return payload

    def write(self, key: str, payload: bytes, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (time.monotonic() + ttl, payload)

    def version(self, namespace: str) -> int:
        with self._lock:
            return self._versions.get(namespace, 0)

    def bump(self, namespace: str) -> int:
        prefix = f"{KEY_PREFIX}:{namespace}:"
        with self._lock:
            version = self._versions.get(namespace, 0) + 1
            self._versions[namespace] = version
            # Older versions are unreachable now; free them.
            for key in [key for key in self._entries if key.startswith(prefix)]:
                del self._entries[key]
            return version


class CacheManager:
    def __init__(self) -> None:
        self.store: CacheStore | None = None

    def connect(self) -> None:
        if self.store is not None:
            return

        redis_url = get_settings().REDIS_URL
        if redis_url:
            client = Redis.from_url(redis_url)
            try:
                client.ping()
            except (RedisError, OSError) as exc:
                logger.warning("Redis unavailable (%s); public reads are cached in memory", exc)
            else:
                self.store = RedisCacheStore(client)
                logger.info("Public read cache backed by Redis")
                return
        self.store = MemoryCacheStore()
        logger.info("Public read cache kept in memory")

    def get_store(self) -> CacheStore:
        if self.store is None:
            self.connect()
        assert self.store is not None
        return self.store

    def redis_client(self) -> Redis | None:
        store = self.get_store()
        return store.client if isinstance(store, RedisCacheStore) else None


cache_manager = CacheManager()


def cached(
    namespace: str,
    *,
    ttl: int | Callable[[], int],
    key: Optional[Callable[..., str]] = None,
):
    """Cache a function's pickled result under ``namespace``.

    ``ttl`` may be a callable so settings are read at call time. ``key``
    receives the call's arguments and returns the key suffix; without it the
    function name is used, which suits argument-free reads.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapper(*args, **kwargs):
            store = cache_manager.get_store()
            suffix = key(*args, **kwargs) if key else func.__name__
            entry_key = _entry_key(namespace, store.version(namespace), suffix)
            payload = store.read(entry_key)
            if payload is not None:
                return pickle.loads(payload)

            result = func(*args, **kwargs)
            store.write(entry_key, pickle.dumps(result), ttl() if callable(ttl) else ttl)
            return result

        return wrapper

    return decorator


def invalidate(namespace: str) -> None:
    version = cache_manager.get_store().bump(namespace)
    logger.debug("Cache namespace %s moved to version %d", namespace, version)
