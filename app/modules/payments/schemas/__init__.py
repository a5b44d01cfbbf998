# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/schemas/__init__.py

Punto de entrada para los esquemas Pydantic del módulo Payments.

Incluye:
- Checkout de compra única
- Checkout y verificación de suscripciones
- Eventos de webhook normalizados

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

from .common_schemas import CamelModel, ErrorResponse
from .checkout_schemas import CheckoutRequest
from .subscription_schemas import SubscriptionCheckoutRequest, VerifySubscriptionRequest
from .webhook_schemas import (
    AccountUpdated,
    Ignored,
    NormalizedEvent,
    PaymentFailed,
    PaymentRefunded,
    PaymentSucceeded,
    PayoutUpdated,
    SubscriptionChanged,
    normalized_event_adapter,
)

__all__ = [
    "CamelModel",
    "ErrorResponse",
    "CheckoutRequest",
    "SubscriptionCheckoutRequest",
    "VerifySubscriptionRequest",
    "NormalizedEvent",
    "PaymentSucceeded",
    "PaymentFailed",
    "PaymentRefunded",
    "PayoutUpdated",
    "SubscriptionChanged",
    "AccountUpdated",
    "Ignored",
    "normalized_event_adapter",
]

# Fin del archivo backend/app/modules/payments/schemas/__init__.py
