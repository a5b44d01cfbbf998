# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/middleware/__init__.py

Dependencias de protección de rutas del módulo de pagos.

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from .rate_limiter import (
    SlidingWindowRateLimiter,
    check_checkout_rate_limit,
    check_webhook_rate_limit,
    get_rate_limiter,
    rate_limit_caches,
    reset_rate_limiters,
)

__all__ = [
    "SlidingWindowRateLimiter",
    "check_checkout_rate_limit",
    "check_webhook_rate_limit",
    "get_rate_limiter",
    "rate_limit_caches",
    "reset_rate_limiters",
]

# Fin del archivo backend/app/modules/payments/middleware/__init__.py
