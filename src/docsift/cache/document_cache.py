"""Time-limited in-memory cache of extracted documents."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
import logging
import threading
import time
from typing import Callable, Generic, Iterator, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0

T = TypeVar("T")


@dataclass(slots=True)
class _CacheEntry(Generic[T]):
    value: T
    expires_at: float


@dataclass(slots=True)
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class DocumentCache(Generic[T]):
    """Key to value mapping whose entries expire a fixed TTL after insertion.

    Expired entries are evicted lazily on access.  Loads for the same key are
    serialized through a per-key lock, so concurrent callers share a single
    extraction instead of racing to populate the entry.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _CacheEntry[T]] = {}
        self._lock = threading.Lock()
        self._key_locks: dict[str, _KeyLock] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def get(self, key: str) -> T | None:
        """Return the live value for *key*, or None when absent or expired."""

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at > self._clock():
                return entry.value
            del self._entries[key]
            logger.debug("Evicted expired cache entry %s", key)
            return None

    def put(self, key: str, value: T) -> None:
        with self._lock:
            self._entries[key] = _CacheEntry(value=value, expires_at=self._clock() + self._ttl_seconds)

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_load(self, key: str, loader: Callable[[], T], *, force_reload: bool = False) -> T:
        """Return the cached value or run *loader* once under the key's lock.

        Nothing is stored when *loader* raises.
        """

        with self._key_lock(key):
            if not force_reload:
                cached = self.get(key)
                if cached is not None:
                    return cached

            value = loader()
            self.put(key, value)
            return value

    @contextmanager
    def _key_lock(self, key: str) -> Iterator[None]:
        """Hold the per-key lock; it is dropped once no caller holds or awaits it."""

        with self._lock:
            key_lock = self._key_locks.setdefault(key, _KeyLock())
            key_lock.users += 1
        try:
            with key_lock.lock:
                yield
        finally:
            with self._lock:
                key_lock.users -= 1
                if key_lock.users == 0:
                    del self._key_locks[key]
