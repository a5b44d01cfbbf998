# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/dependencies.py

Dependencias FastAPI compartidas por las rutas de pagos.

Los tests sustituyen get_provider_registry (proveedores mockeados) y
get_async_session (SQLite en memoria) vía app.dependency_overrides.

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends

from app.modules.payments.services.currency_service import CurrencyService
from app.shared.cache import TTLCache
from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings

_exchange_rate_cache: Optional[TTLCache] = None


def get_settings_dependency() -> PaymentsSettings:
    return get_payments_settings()


def get_exchange_rate_cache() -> TTLCache:
    """Caché de tipos de cambio compartido por proceso (lo purga cache_cleanup)."""
    global _exchange_rate_cache
    if _exchange_rate_cache is None:
        ttl = get_payments_settings().exchange_rate_cache_ttl_seconds
        _exchange_rate_cache = TTLCache(max_size=500, default_ttl=ttl, name="exchange_rates")
    return _exchange_rate_cache


def reset_exchange_rate_cache() -> None:
    global _exchange_rate_cache
    _exchange_rate_cache = None


def get_currency_service(cache: TTLCache = Depends(get_exchange_rate_cache)) -> CurrencyService:
    return CurrencyService(cache=cache)


__all__ = [
    "get_settings_dependency",
    "get_exchange_rate_cache",
    "reset_exchange_rate_cache",
    "get_currency_service",
]

# Fin del archivo backend/app/modules/payments/routes/dependencies.py
