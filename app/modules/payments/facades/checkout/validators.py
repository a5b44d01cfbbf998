# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/checkout/validators.py

Validaciones de entrada compartidas por los checkouts (pago único y
suscripción): clave de idempotencia e identidad del comprador.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

import uuid
from typing import Dict, Optional, Tuple

from app.modules.payments.facades.checkout.dto import CheckoutActor
from app.modules.payments.facades.errors import PaymentsError

IDEMPOTENCY_HEADER = "Idempotency-Key"
MAX_IDEMPOTENCY_KEY_LENGTH = 255
BODY_KEY_WARNING = (
    '299 - "idempotencyKey in request body is deprecated; send Idempotency-Key header instead."'
)


def resolve_idempotency_key(
    header_key: Optional[str],
    body_key: Optional[str] = None,
) -> Tuple[str, Dict[str, str]]:
    """
    Devuelve (clave, headers extra de respuesta).

    Raises:
        PaymentsError 400: clave ausente, demasiado larga, o header y body
        con valores distintos.
    """
    header_key = (header_key or "").strip() or None
    body_key = (body_key or "").strip() or None

    if header_key and body_key and header_key != body_key:
        raise PaymentsError(
            "Idempotency-Key header and body idempotencyKey differ",
            status_code=400,
            error="idempotency_key_mismatch",
        )

    key = header_key or body_key
    if not key:
        raise PaymentsError(
            f"{IDEMPOTENCY_HEADER} header is required",
            status_code=400,
            error="idempotency_key_required",
        )
    if len(key) > MAX_IDEMPOTENCY_KEY_LENGTH:
        raise PaymentsError(
            f"{IDEMPOTENCY_HEADER} must be at most {MAX_IDEMPOTENCY_KEY_LENGTH} characters",
            status_code=400,
            error="invalid_idempotency_key",
        )

    extra_headers: Dict[str, str] = {}
    if body_key:
        extra_headers["Warning"] = BODY_KEY_WARNING
    return key, extra_headers


def resolve_actor(user_id: Optional[uuid.UUID], customer_email: Optional[str]) -> CheckoutActor:
    if user_id is None and not customer_email:
        raise PaymentsError(
            "customerEmail is required for guest checkout",
            status_code=400,
            error="customer_email_required",
        )
    return CheckoutActor(user_id=user_id, email=customer_email)


__all__ = [
    "IDEMPOTENCY_HEADER",
    "BODY_KEY_WARNING",
    "resolve_idempotency_key",
    "resolve_actor",
]

# Fin del archivo backend/app/modules/payments/facades/checkout/validators.py
