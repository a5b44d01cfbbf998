# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/subscriptions/__init__.py

Fachadas de suscripciones de plataforma: checkout y verificación manual.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from .start_subscription_checkout import (
    SubscriptionCheckoutOrchestrator,
    SubscriptionPricing,
    subscription_idempotency_scope,
)
from .verify_subscription import SubscriptionVerifier, check_ownership

__all__ = [
    "SubscriptionCheckoutOrchestrator",
    "SubscriptionPricing",
    "subscription_idempotency_scope",
    "SubscriptionVerifier",
    "check_ownership",
]

# Fin del archivo backend/app/modules/payments/facades/subscriptions/__init__.py
