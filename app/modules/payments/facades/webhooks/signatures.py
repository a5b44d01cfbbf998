# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/webhooks/signatures.py

Verificación REAL de firmas de webhooks para las cuatro pasarelas.

- Stripe: HMAC-SHA256 sobre "<t>.<payload>" (header Stripe-Signature,
  tolerancia de timestamp).
- PayPal: API oficial verify-webhook-signature (async, no HMAC local).
- Flutterwave: header verif-hash igual al secreto configurado
  (comparación en tiempo constante).
- Paystack: HMAC-SHA512 del payload con la secret key
  (header x-paystack-signature).

IMPORTANTE:
- El bypass inseguro SOLO funciona en entorno de desarrollo.
- PYTHON_ENV=test nunca permite bypass (los tests son fail-closed).

Autor: EventShot Payments
Fecha: 2025-11-25
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import os
import time
from typing import Dict, List, Mapping, Optional

from app.modules.payments.enums import PaymentProvider
from app.modules.payments.providers.registry import ProviderRegistry
from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings

logger = logging.getLogger(__name__)


# =============================================================================
# ENVIRONMENT CHECKS
# =============================================================================

def _is_development_environment() -> bool:
    """
    NOTA: "test" NO es desarrollo - los tests deben ser fail-closed.
    """
    env = os.getenv("ENVIRONMENT", "production").lower()
    python_env = os.getenv("PYTHON_ENV", "production").lower()
    dev_envs = ("development", "dev", "local")
    return env in dev_envs or python_env in dev_envs


def _allow_insecure(settings: PaymentsSettings) -> bool:
    """
    REGLAS:
    1. PAYMENTS_ALLOW_INSECURE_WEBHOOKS=true
    2. ADEMÁS, entorno de desarrollo
    3. PYTHON_ENV != "test"
    """
    if os.getenv("PYTHON_ENV", "production").lower() == "test":
        return False
    if not settings.allow_insecure_webhooks:
        return False
    if not _is_development_environment():
        logger.error(
            "SECURITY VIOLATION: PAYMENTS_ALLOW_INSECURE_WEBHOOKS=true en entorno "
            "no-desarrollo. Ignorando flag y forzando verificación real."
        )
        return False
    logger.warning(
        "DESARROLLO: Verificación de webhooks deshabilitada. "
        "Esto NUNCA debe ocurrir en producción."
    )
    return True


# =============================================================================
# STRIPE
# =============================================================================

def _parse_stripe_header(signature_header: str) -> Dict[str, List[str]]:
    """'t=timestamp,v1=signature,v0=signature_old' -> {'t': [...], 'v1': [...]}"""
    elements: Dict[str, List[str]] = {}
    for item in signature_header.split(","):
        item = item.strip()
        if "=" in item:
            key, value = item.split("=", 1)
            elements.setdefault(key, []).append(value)
    return elements


def stripe_signature_header(payload: bytes, secret: str, timestamp: Optional[int] = None) -> str:
    """Header Stripe-Signature válido para un payload (tests y herramientas)."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode("utf-8") + payload
    digest = hmac.new(secret.encode("utf-8"), msg=signed, digestmod=hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def verify_stripe_signature(
    payload: bytes,
    signature_header: Optional[str],
    webhook_secret: Optional[str],
    tolerance_seconds: int = 300,
) -> bool:
    if not signature_header:
        logger.warning("Stripe webhook rechazado: falta header Stripe-Signature")
        return False
    if not webhook_secret:
        logger.error("Stripe webhook rechazado: STRIPE_WEBHOOK_SECRET no configurado.")
        return False

    elements = _parse_stripe_header(signature_header)
    timestamp_str = elements.get("t", [None])[0]
    signatures_v1 = elements.get("v1", [])
    if not timestamp_str or not signatures_v1:
        logger.warning("Stripe webhook rechazado: header sin timestamp o sin firma v1")
        return False

    try:
        timestamp = int(timestamp_str)
    except ValueError as e:
        logger.warning("Stripe webhook rechazado: error parseando timestamp - %s", e)
        return False

    drift = abs(int(time.time()) - timestamp)
    if drift > tolerance_seconds:
        logger.warning(
            "Stripe webhook rechazado: timestamp fuera de tolerancia. Diferencia: %ss, tolerancia: %ss",
            drift, tolerance_seconds,
        )
        return False

    signed_payload = f"{timestamp}.".encode("utf-8") + payload
    expected = hmac.new(webhook_secret.encode("utf-8"), msg=signed_payload, digestmod=hashlib.sha256).hexdigest()
    for sig in signatures_v1:
        if hmac.compare_digest(expected, sig):
            return True

    logger.warning("Stripe webhook rechazado: ninguna firma v1 coincide")
    return False


# =============================================================================
# FLUTTERWAVE / PAYSTACK
# =============================================================================

def verify_flutterwave_signature(verif_hash: Optional[str], expected_hash: Optional[str]) -> bool:
    if not expected_hash:
        logger.error("Flutterwave webhook rechazado: FLUTTERWAVE_WEBHOOK_HASH no configurado")
        return False
    if not verif_hash:
        logger.warning("Flutterwave webhook rechazado: falta header verif-hash")
        return False
    if not hmac.compare_digest(verif_hash.encode("utf-8"), expected_hash.encode("utf-8")):
        logger.warning("Flutterwave webhook rechazado: verif-hash no coincide")
        return False
    return True


def paystack_signature(payload: bytes, secret_key: str) -> str:
    return hmac.new(secret_key.encode("utf-8"), msg=payload, digestmod=hashlib.sha512).hexdigest()


def verify_paystack_signature(payload: bytes, signature: Optional[str], secret_key: Optional[str]) -> bool:
    if not secret_key:
        logger.error("Paystack webhook rechazado: PAYSTACK_SECRET_KEY no configurado")
        return False
    if not signature:
        logger.warning("Paystack webhook rechazado: falta header x-paystack-signature")
        return False
    if not hmac.compare_digest(paystack_signature(payload, secret_key), signature.strip().lower()):
        logger.warning("Paystack webhook rechazado: firma HMAC no coincide")
        return False
    return True


# =============================================================================
# PUNTO DE ENTRADA
# =============================================================================

async def verify_webhook_signature(
    provider: PaymentProvider,
    payload: bytes,
    headers: Mapping[str, str],
    *,
    registry: ProviderRegistry,
    settings: Optional[PaymentsSettings] = None,
) -> bool:
    """
    True si la firma es válida para el proveedor.

    `headers` debe tener claves en minúsculas (Starlette ya las normaliza).
    """
    settings = settings or get_payments_settings()
    if _allow_insecure(settings):
        return True

    if provider == PaymentProvider.STRIPE:
        return verify_stripe_signature(
            payload,
            headers.get("stripe-signature"),
            settings.stripe_webhook_secret,
            settings.stripe_webhook_tolerance_seconds,
        )
    if provider == PaymentProvider.PAYPAL:
        return await registry.paypal().verify_webhook_signature(headers, payload)
    if provider == PaymentProvider.FLUTTERWAVE:
        return verify_flutterwave_signature(headers.get("verif-hash"), settings.flutterwave_webhook_hash)
    if provider == PaymentProvider.PAYSTACK:
        return verify_paystack_signature(payload, headers.get("x-paystack-signature"), settings.paystack_secret_key)
    return False


__all__ = [
    "verify_webhook_signature",
    "verify_stripe_signature",
    "stripe_signature_header",
    "verify_flutterwave_signature",
    "verify_paystack_signature",
    "paystack_signature",
    "_allow_insecure",
    "_is_development_environment",
]

# Fin del archivo backend/app/modules/payments/facades/webhooks/signatures.py
