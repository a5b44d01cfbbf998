# -*- coding: utf-8 -*-
"""
backend/app/shared/cache/ttl_cache.py

Caché en memoria con TTL y LRU eviction.

Implementa CacheBackend. Es un L1 por proceso: en despliegues con varias
instancias cada una mantiene su propio estado (aceptable para tipos de
cambio y para rate limiting best-effort).
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional

from app.shared.cache.cache_backend import CacheBackend

logger = logging.getLogger(__name__)


class TTLCache(CacheBackend):
    """
    Caché thread-safe con TTL y LRU eviction.

    - ttl=None en set(): usa default_ttl (None = no expira)
    - ttl<=0: la entrada NO se almacena
    - LRU eviction al alcanzar max_size (si max_size no es None)

    `clock` es inyectable para poder avanzar el tiempo en tests.
    """

    def __init__(
        self,
        max_size: Optional[int] = 1000,
        default_ttl: Optional[int] = 300,
        name: str = "ttl",
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_size = max_size
        self._default_ttl = default_ttl
        self.name = name
        self._clock = clock

        self._cache: OrderedDict[str, tuple[Any, Optional[float]]] = OrderedDict()
        self._lock = threading.RLock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._invalidations = 0
        self._expired_removals = 0

    @property
    def max_size(self) -> Optional[int]:
        return self._max_size

    @property
    def default_ttl(self) -> Optional[int]:
        return self._default_ttl

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            value, expiry = entry
            if expiry is not None and expiry <= self._clock():
                del self._cache[key]
                self._misses += 1
                self._expired_removals += 1
                return None

            self._cache.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        if ttl is not None and ttl <= 0:
            logger.debug("[%s] set(%s): ttl=%s <= 0, not caching", self.name, key, ttl)
            return

        with self._lock:
            effective_ttl = ttl if ttl is not None else self._default_ttl
            expiry = self._clock() + effective_ttl if effective_ttl is not None else None

            if key in self._cache:
                self._cache[key] = (value, expiry)
                self._cache.move_to_end(key)
                return

            if self._max_size is not None and len(self._cache) >= self._max_size:
                self._cache.popitem(last=False)
                self._evictions += 1

            self._cache[key] = (value, expiry)

    def invalidate(self, key: str) -> bool:
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                self._invalidations += 1
                return True
            return False

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def cleanup(self) -> int:
        """Elimina entradas expiradas; las entradas sin TTL se conservan."""
        with self._lock:
            now = self._clock()
            expired_keys = [
                key for key, (_, expiry) in self._cache.items()
                if expiry is not None and expiry <= now
            ]
            for key in expired_keys:
                del self._cache[key]
            self._expired_removals += len(expired_keys)
            return len(expired_keys)

    def get_stats(self) -> dict:
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0
            return {
                "name": self.name,
                "size": len(self._cache),
                "max_size": self._max_size,
                "default_ttl": self._default_ttl,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "invalidations": self._invalidations,
                "expired_removals": self._expired_removals,
                "hit_rate_percent": hit_rate,
                "total_requests": total_requests,
            }


__all__ = ["TTLCache"]
# Fin del archivo backend/app/shared/cache/ttl_cache.py
