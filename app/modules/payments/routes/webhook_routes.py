# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/webhook_routes.py

POST /webhooks/{provider}  (stripe | paypal | flutterwave | paystack)

Se lee el body crudo: la firma se calcula sobre los bytes exactos que
envió el proveedor.

Respuestas:
- 200 {received, eventId, result} / {received, replay: true, status}
- 400 invalid_webhook_payload
- 401 invalid_signature
- 404 unknown_provider
- 409 webhook_in_flight (el proveedor reintenta)
- 500 webhook_processing_failed (el proveedor reintenta)

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.facades.webhooks import handle_webhook, parse_provider
from app.modules.payments.middleware import check_webhook_rate_limit
from app.modules.payments.providers.registry import ProviderRegistry, get_provider_registry
from app.modules.payments.routes.dependencies import get_settings_dependency
from app.modules.payments.schemas import ErrorResponse
from app.shared.config.settings_payments import PaymentsSettings
from app.shared.database.database import get_async_session

router = APIRouter(tags=["payments:webhooks"])


@router.post(
    "/webhooks/{provider}",
    dependencies=[Depends(check_webhook_rate_limit)],
    responses={code: {"model": ErrorResponse} for code in (400, 401, 404, 409, 429, 500)},
)
async def receive_webhook(
    provider: str,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    registry: ProviderRegistry = Depends(get_provider_registry),
    settings: PaymentsSettings = Depends(get_settings_dependency),
) -> Dict[str, Any]:
    parsed = parse_provider(provider)
    raw_body = await request.body()
    return await handle_webhook(
        session,
        provider=parsed,
        raw_body=raw_body,
        headers=dict(request.headers),
        registry=registry,
        settings=settings,
    )


__all__ = ["router"]

# Fin del archivo backend/app/modules/payments/routes/webhook_routes.py
