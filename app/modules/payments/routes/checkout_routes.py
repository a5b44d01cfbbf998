# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/checkout_routes.py

POST /checkout: compra única de medios de un evento.

- Rate limit por IP (429 + Retry-After)
- Idempotency-Key obligatorio (idempotencyKey en body: deprecado, Warning 299)
- Auth opcional: invitados con customerEmail

El body de la respuesta se devuelve tal cual lo guardó el ledger de
idempotencia, así un replay es idéntico byte a byte.

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.auth import AuthenticatedUser, get_optional_user
from app.modules.payments.facades.checkout import (
    CheckoutOrchestrator,
    resolve_actor,
    resolve_idempotency_key,
)
from app.modules.payments.facades.checkout.dto import CheckoutOutcome
from app.modules.payments.facades.errors import PaymentsError
from app.modules.payments.middleware import check_checkout_rate_limit
from app.modules.payments.providers.registry import ProviderRegistry, get_provider_registry
from app.modules.payments.routes.dependencies import get_currency_service, get_settings_dependency
from app.modules.payments.schemas import CheckoutRequest, ErrorResponse
from app.modules.payments.services.currency_service import CurrencyService
from app.shared.config.settings_payments import PaymentsSettings
from app.shared.database.database import get_async_session

router = APIRouter(tags=["payments:checkout"])


def outcome_response(outcome: CheckoutOutcome) -> Response:
    return Response(
        content=outcome.body,
        status_code=outcome.status_code,
        media_type="application/json",
        headers=outcome.headers,
    )


@router.post(
    "/checkout",
    dependencies=[Depends(check_checkout_rate_limit)],
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def start_checkout(
    payload: CheckoutRequest,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    session: AsyncSession = Depends(get_async_session),
    registry: ProviderRegistry = Depends(get_provider_registry),
    settings: PaymentsSettings = Depends(get_settings_dependency),
    currency_service: CurrencyService = Depends(get_currency_service),
) -> Response:
    """
    Crea la sesión de pago en la pasarela seleccionada y devuelve
    {checkoutUrl, sessionId, provider, transactionId, gatewaySelection, amount}.
    """
    key, extra_headers = resolve_idempotency_key(idempotency_key, payload.idempotency_key)
    orchestrator = CheckoutOrchestrator(registry, settings=settings, currency_service=currency_service)
    try:
        actor = resolve_actor(
            user.user_id if user else None,
            payload.customer_email or (user.email if user else None),
        )
        outcome = await orchestrator.run(
            session,
            payload=payload,
            actor=actor,
            idempotency_key=key,
            extra_headers=extra_headers,
        )
    except PaymentsError as exc:
        # El aviso de clave en body también viaja en las respuestas de error
        exc.headers = {**extra_headers, **exc.headers}
        raise
    return outcome_response(outcome)


__all__ = ["router", "outcome_response"]

# Fin del archivo backend/app/modules/payments/routes/checkout_routes.py
