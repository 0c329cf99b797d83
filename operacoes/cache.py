from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

KEY_NAMESPACE = "omie"
KEY_SEPARATOR = ":"
DEFAULT_TTL = 900


def make_key(kind: str, *parts: object) -> str:
    return KEY_SEPARATOR.join([KEY_NAMESPACE, kind, *(str(part) for part in parts)])


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float


@dataclass
class _LoadSlot:
    lock: threading.Lock
    waiters: int = 0


class ReferenceCache:
    """In-process TTL cache shared by the ledger aggregations.

    Misses on the same key are serialized through a per-key lock, so
    concurrent requests share a single upstream load. A loader that raises
    leaves nothing behind and the next caller loads again. Load locks live
    only while some caller is waiting on them, and every write sweeps the
    expired entries.
    """

    def __init__(self, default_ttl: float = DEFAULT_TTL, clock: Callable[[], float] | None = None):
        self.default_ttl = default_ttl
        self._clock = clock or time.monotonic
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._loading: dict[str, _LoadSlot] = {}

    def __contains__(self, key: str) -> bool:
        return self._lookup(key)[0]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _lookup(self, key: str) -> tuple[bool, Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False, None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                logger.debug("Cache expirado key=%s", key)
                return False, None
            return True, entry.value

    def get(self, key: str, default: Any = None) -> Any:
        found, value = self._lookup(key)
        return value if found else default

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        if not key:
            return
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._entries[key] = CacheEntry(value=value, expires_at=now + ttl)
        logger.debug("Cache set key=%s ttl=%ss", key, ttl)

    def _purge_expired(self, now: float) -> None:
        # Caller holds self._lock.
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Cache removeu %s chaves expiradas.", len(expired))

    def _acquire_load_slot(self, key: str) -> _LoadSlot:
        with self._lock:
            slot = self._loading.get(key)
            if slot is None:
                slot = self._loading[key] = _LoadSlot(lock=threading.Lock())
            slot.waiters += 1
            return slot

    def _release_load_slot(self, key: str, slot: _LoadSlot) -> None:
        with self._lock:
            slot.waiters -= 1
            if slot.waiters == 0 and self._loading.get(key) is slot:
                del self._loading[key]

    def get_or_load(self, key: str, loader: Callable[[], Any], ttl: float | None = None) -> Any:
        found, value = self._lookup(key)
        if found:
            logger.debug("Cache hit key=%s", key)
            return value

        slot = self._acquire_load_slot(key)
        try:
            with slot.lock:
                # Another thread may have finished the same load while we waited.
                found, value = self._lookup(key)
                if found:
                    logger.debug("Cache hit key=%s (carga concorrente)", key)
                    return value
                logger.debug("Cache miss key=%s", key)
                value = loader()
                self.set(key, value, ttl)
                return value
        finally:
            self._release_load_slot(key, slot)

    def clear(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
        logger.info("Cache limpo key=%s", key)

    def clear_all(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Cache limpo por completo (%s chaves).", count)
        return count
