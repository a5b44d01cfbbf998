# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/providers/__init__.py

Adaptadores de pasarela (Stripe, PayPal, Flutterwave, Paystack).

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from .base import (
    CheckoutSession,
    PaymentCheckoutParams,
    PaymentProviderClient,
    ProviderSubscription,
    SubscriptionCheckoutParams,
    VerifiedPayment,
)
from .http_client import close_provider_http_clients
from .registry import ProviderRegistry, get_provider_registry, reset_provider_registry

__all__ = [
    "CheckoutSession",
    "PaymentCheckoutParams",
    "PaymentProviderClient",
    "ProviderSubscription",
    "SubscriptionCheckoutParams",
    "VerifiedPayment",
    "close_provider_http_clients",
    "ProviderRegistry",
    "get_provider_registry",
    "reset_provider_registry",
]

# Fin del archivo backend/app/modules/payments/providers/__init__.py
