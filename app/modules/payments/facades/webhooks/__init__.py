# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/webhooks/__init__.py

Reconciliación de webhooks de Stripe, PayPal, Flutterwave y Paystack.

Autor: EventShot Payments
Fecha: 2025-11-25
"""

from .dispatch import SettlementResult, WebhookDispatcher
from .handler import handle_webhook, parse_provider
from .normalize import normalize_webhook_payload, parse_webhook_body
from .sanitizer import compute_payload_hash, sanitize_webhook_payload
from .signatures import (
    paystack_signature,
    stripe_signature_header,
    verify_flutterwave_signature,
    verify_paystack_signature,
    verify_stripe_signature,
    verify_webhook_signature,
)

__all__ = [
    "SettlementResult",
    "WebhookDispatcher",
    "handle_webhook",
    "parse_provider",
    "normalize_webhook_payload",
    "parse_webhook_body",
    "compute_payload_hash",
    "sanitize_webhook_payload",
    "paystack_signature",
    "stripe_signature_header",
    "verify_flutterwave_signature",
    "verify_paystack_signature",
    "verify_stripe_signature",
    "verify_webhook_signature",
]

# Fin del archivo backend/app/modules/payments/facades/webhooks/__init__.py
