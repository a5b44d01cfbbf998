# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/webhooks/handler.py

Función de alto nivel para verificar y manejar webhooks desde rutas HTTP.

1. Verifica la firma (401 antes de leer cualquier campo no confiable)
2. Parsea y normaliza el payload (400 si no tiene la forma mínima)
3. Claim en el ledger de webhooks (replay -> 200; en vuelo -> 409)
4. Despacha el evento normalizado
5. processed, o failed + 500 para que el proveedor reintente

Autor: EventShot Payments
Fecha: 2025-11-25
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import PaymentProvider
from app.modules.payments.facades.errors import (
    IdempotencyConflictError,
    PaymentsError,
    WebhookSignatureError,
)
from app.modules.payments.facades.webhooks.dispatch import WebhookDispatcher
from app.modules.payments.facades.webhooks.normalize import normalize_webhook_payload, parse_webhook_body
from app.modules.payments.facades.webhooks.sanitizer import sanitize_webhook_payload
from app.modules.payments.facades.webhooks.signatures import verify_webhook_signature
from app.modules.payments.metrics import webhook_events_total
from app.modules.payments.providers.registry import ProviderRegistry
from app.modules.payments.services.webhook_ledger import ClaimOutcome, WebhookLedger
from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings

logger = logging.getLogger(__name__)


def parse_provider(value: str) -> PaymentProvider:
    try:
        return PaymentProvider(value.strip().lower())
    except ValueError:
        raise PaymentsError(
            f"Unknown payment provider '{value}'",
            status_code=404,
            error="unknown_provider",
        ) from None


async def handle_webhook(
    session: AsyncSession,
    *,
    provider: PaymentProvider,
    raw_body: bytes,
    headers: Mapping[str, str],
    registry: ProviderRegistry,
    settings: Optional[PaymentsSettings] = None,
    ledger: Optional[WebhookLedger] = None,
    dispatcher: Optional[WebhookDispatcher] = None,
) -> Dict[str, Any]:
    """
    Returns:
        Cuerpo de respuesta 200: {received, eventId, result} o
        {received, replay: true, status} para eventos ya procesados.

    Raises:
        WebhookSignatureError (401), WebhookNormalizationError (400),
        IdempotencyConflictError (409 webhook_in_flight),
        PaymentsError (500 webhook_processing_failed).
    """
    settings = settings or get_payments_settings()
    ledger = ledger or WebhookLedger(settings)
    dispatcher = dispatcher or WebhookDispatcher(registry)
    label = provider.value

    # 1) Firma
    lowered = {k.lower(): v for k, v in headers.items()}
    if not await verify_webhook_signature(provider, raw_body, lowered, registry=registry, settings=settings):
        webhook_events_total.labels(label, "invalid_signature").inc()
        raise WebhookSignatureError("Invalid webhook signature", provider=label)

    # 2) Normalización
    data = parse_webhook_body(raw_body)
    event = normalize_webhook_payload(provider, data)

    # 3) Claim
    claim = await ledger.claim(
        session,
        provider,
        event.event_id,
        event.event_type,
        sanitize_webhook_payload(label, data, raw_payload=raw_body),
        signature_verified=True,
    )
    if claim.outcome == ClaimOutcome.ALREADY_PROCESSED:
        webhook_events_total.labels(label, "replay").inc()
        logger.info("[webhooks] replay %s:%s short-circuited", label, event.event_id)
        return {"received": True, "replay": True, "status": str(claim.status)}
    if claim.outcome == ClaimOutcome.IN_FLIGHT:
        webhook_events_total.labels(label, "in_flight").inc()
        raise IdempotencyConflictError(
            "Webhook event is being processed",
            error="webhook_in_flight",
            eventId=event.event_id,
        )

    # 4) Despacho
    try:
        result = await dispatcher.dispatch(session, event)
    except Exception as e:
        logger.exception("[webhooks] %s:%s (%s) failed", label, event.event_id, event.event_type)
        await session.rollback()
        await ledger.mark_failed(session, claim.event_id, f"{type(e).__name__}: {e}")
        webhook_events_total.labels(label, "failed").inc()
        raise PaymentsError(
            "Webhook processing failed",
            status_code=500,
            error="webhook_processing_failed",
        ) from e

    # 5) processed
    await ledger.mark_processed(session, claim.event_id)
    webhook_events_total.labels(label, "processed").inc()
    logger.info("[webhooks] %s:%s %s -> %s", label, event.event_id, event.event_type, result)
    return {"received": True, "eventId": event.event_id, "result": result}


__all__ = ["handle_webhook", "parse_provider"]

# Fin del archivo backend/app/modules/payments/facades/webhooks/handler.py
