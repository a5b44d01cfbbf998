# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/middleware/rate_limiter.py

Rate limiter por IP para checkout y webhooks de pagos.

Ventana deslizante en memoria, por instancia (best-effort): en un
despliegue con varias réplicas cada una cuenta por separado. Las marcas
de tiempo viven en un TTLCache para que el job de limpieza de cachés
descarte las IPs inactivas.

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional, Tuple

from fastapi import Request

from app.modules.payments.facades.errors import PaymentsError
from app.shared.cache import CacheBackend, TTLCache
from app.shared.config.settings_payments import get_payments_settings
from app.shared.http_utils.request_meta import get_client_ip

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """
    Rate limiter con ventana deslizante en memoria.

    `clock` es inyectable para tests.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        *,
        name: str = "rate_limit",
        cache: Optional[CacheBackend] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.name = name
        self._clock = clock
        self.cache = cache or TTLCache(max_size=10_000, default_ttl=window_seconds, name=name, clock=clock)
        self._lock = threading.Lock()

    def _recent(self, key: str, now: float) -> List[float]:
        cutoff = now - self.window_seconds
        return [ts for ts in (self.cache.get(key) or []) if ts > cutoff]

    def is_allowed(self, key: str) -> Tuple[bool, int]:
        """
        Returns:
            Tuple[is_allowed, remaining_requests]
        """
        with self._lock:
            now = self._clock()
            recent = self._recent(key, now)
            if len(recent) >= self.max_requests:
                self.cache.set(key, recent)
                return False, 0
            recent.append(now)
            self.cache.set(key, recent)
            return True, self.max_requests - len(recent)

    def get_retry_after(self, key: str) -> int:
        """Segundos hasta que la clave pueda volver a hacer requests."""
        now = self._clock()
        recent = self._recent(key, now)
        if not recent:
            return 0
        return max(1, int(min(recent) + self.window_seconds - now) + 1)

    def reset(self) -> None:
        self.cache.clear()


_limiters: dict[str, SlidingWindowRateLimiter] = {}


def _build(name: str) -> SlidingWindowRateLimiter:
    settings = get_payments_settings()
    if name == "checkout":
        return SlidingWindowRateLimiter(
            settings.checkout_rate_limit_requests,
            settings.checkout_rate_limit_window_seconds,
            name="checkout_rate_limit",
        )
    return SlidingWindowRateLimiter(
        settings.webhook_rate_limit_requests,
        settings.webhook_rate_limit_window_seconds,
        name="webhook_rate_limit",
    )


def get_rate_limiter(name: str) -> SlidingWindowRateLimiter:
    if name not in _limiters:
        _limiters[name] = _build(name)
    return _limiters[name]


def rate_limit_caches() -> List[CacheBackend]:
    """Cachés de los limitadores creados (para el job de limpieza)."""
    return [get_rate_limiter("checkout").cache, get_rate_limiter("webhook").cache]


def reset_rate_limiters() -> None:
    """Descarta los limitadores (tests)."""
    _limiters.clear()


def _enforce(request: Request, name: str) -> None:
    settings = get_payments_settings()
    if not settings.rate_limit_enabled:
        return
    client_ip = get_client_ip(request, trust_proxy=settings.trust_proxy_headers)
    limiter = get_rate_limiter(name)
    allowed, _remaining = limiter.is_allowed(client_ip)
    if allowed:
        return
    retry_after = limiter.get_retry_after(client_ip)
    logger.warning("[rate_limit] %s limit exceeded for IP %s. Retry after %ss", name, client_ip, retry_after)
    raise PaymentsError(
        f"Too many requests. Retry after {retry_after} seconds.",
        status_code=429,
        error="rate_limit_exceeded",
        headers={"Retry-After": str(retry_after)},
        retryAfterSeconds=retry_after,
    )


async def check_checkout_rate_limit(request: Request) -> None:
    """
    Dependencia FastAPI:
        @router.post("/checkout", dependencies=[Depends(check_checkout_rate_limit)])
    """
    _enforce(request, "checkout")


async def check_webhook_rate_limit(request: Request) -> None:
    _enforce(request, "webhook")


__all__ = [
    "SlidingWindowRateLimiter",
    "get_rate_limiter",
    "rate_limit_caches",
    "reset_rate_limiters",
    "check_checkout_rate_limit",
    "check_webhook_rate_limit",
]

# Fin del archivo backend/app/modules/payments/middleware/rate_limiter.py
