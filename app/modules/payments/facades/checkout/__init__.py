# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/checkout/__init__.py

Checkout de compra única de medios de un evento.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from .dto import CheckoutActor, CheckoutOutcome, CheckoutPlan
from .start_checkout import CHECKOUT_SCOPE, CheckoutOrchestrator, checkout_response_body, provider_metadata
from .validators import (
    BODY_KEY_WARNING,
    IDEMPOTENCY_HEADER,
    resolve_actor,
    resolve_idempotency_key,
)

__all__ = [
    "CheckoutActor",
    "CheckoutOutcome",
    "CheckoutPlan",
    "CHECKOUT_SCOPE",
    "CheckoutOrchestrator",
    "checkout_response_body",
    "provider_metadata",
    "BODY_KEY_WARNING",
    "IDEMPOTENCY_HEADER",
    "resolve_actor",
    "resolve_idempotency_key",
]

# Fin del archivo backend/app/modules/payments/facades/checkout/__init__.py
