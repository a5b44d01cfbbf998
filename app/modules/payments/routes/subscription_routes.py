# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/subscription_routes.py

Suscripciones de plataforma (requieren usuario autenticado):

- POST /subscriptions/checkout   creator (default) o attendee
- POST /subscriptions/verify
- POST /vault/checkout           scope vault_subscription
- POST /vault/verify

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.auth import AuthenticatedUser, get_current_user
from app.modules.payments.enums import SubscriptionScope
from app.modules.payments.facades.checkout import resolve_idempotency_key
from app.modules.payments.facades.errors import PaymentsError
from app.modules.payments.facades.subscriptions import (
    SubscriptionCheckoutOrchestrator,
    SubscriptionVerifier,
)
from app.modules.payments.middleware import check_checkout_rate_limit
from app.modules.payments.providers.registry import ProviderRegistry, get_provider_registry
from app.modules.payments.routes.checkout_routes import outcome_response
from app.modules.payments.routes.dependencies import get_currency_service, get_settings_dependency
from app.modules.payments.schemas import (
    ErrorResponse,
    SubscriptionCheckoutRequest,
    VerifySubscriptionRequest,
)
from app.modules.payments.services.currency_service import CurrencyService
from app.shared.config.settings_payments import PaymentsSettings
from app.shared.database.database import get_async_session

router = APIRouter(tags=["payments:subscriptions"])

_ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 502, 503, 504)
}

PLATFORM_SCOPES = (SubscriptionScope.CREATOR, SubscriptionScope.ATTENDEE)


def platform_scope(requested: Optional[SubscriptionScope]) -> SubscriptionScope:
    """Scope de /subscriptions/*: creator por defecto; vault tiene su propia ruta."""
    scope = requested or SubscriptionScope.CREATOR
    if scope not in PLATFORM_SCOPES:
        raise PaymentsError(
            "Use /vault endpoints for vault subscriptions",
            status_code=400,
            error="invalid_scope",
            scope=scope.value,
        )
    return scope


async def _start(
    *,
    payload: SubscriptionCheckoutRequest,
    scope: SubscriptionScope,
    idempotency_key: Optional[str],
    user: AuthenticatedUser,
    session: AsyncSession,
    registry: ProviderRegistry,
    settings: PaymentsSettings,
    currency_service: CurrencyService,
) -> Response:
    key, extra_headers = resolve_idempotency_key(idempotency_key)
    orchestrator = SubscriptionCheckoutOrchestrator(
        registry,
        settings=settings,
        currency_service=currency_service,
    )
    outcome = await orchestrator.run(
        session,
        payload=payload,
        user_id=user.user_id,
        email=user.email,
        scope=scope,
        idempotency_key=key,
        extra_headers=extra_headers,
    )
    return outcome_response(outcome)


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
@router.post(
    "/subscriptions/checkout",
    dependencies=[Depends(check_checkout_rate_limit)],
    responses=_ERROR_RESPONSES,
)
async def start_subscription_checkout(
    payload: SubscriptionCheckoutRequest,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
    registry: ProviderRegistry = Depends(get_provider_registry),
    settings: PaymentsSettings = Depends(get_settings_dependency),
    currency_service: CurrencyService = Depends(get_currency_service),
) -> Response:
    return await _start(
        payload=payload,
        scope=platform_scope(payload.scope),
        idempotency_key=idempotency_key,
        user=user,
        session=session,
        registry=registry,
        settings=settings,
        currency_service=currency_service,
    )


@router.post(
    "/vault/checkout",
    dependencies=[Depends(check_checkout_rate_limit)],
    responses=_ERROR_RESPONSES,
)
async def start_vault_checkout(
    payload: SubscriptionCheckoutRequest,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
    registry: ProviderRegistry = Depends(get_provider_registry),
    settings: PaymentsSettings = Depends(get_settings_dependency),
    currency_service: CurrencyService = Depends(get_currency_service),
) -> Response:
    return await _start(
        payload=payload,
        scope=SubscriptionScope.VAULT,
        idempotency_key=idempotency_key,
        user=user,
        session=session,
        registry=registry,
        settings=settings,
        currency_service=currency_service,
    )


# ---------------------------------------------------------------------------
# Verificación manual
# ---------------------------------------------------------------------------
@router.post("/subscriptions/verify", responses=_ERROR_RESPONSES)
async def verify_subscription(
    payload: VerifySubscriptionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
    registry: ProviderRegistry = Depends(get_provider_registry),
) -> Dict[str, Any]:
    """Consulta la suscripción directamente al proveedor y la reconcilia."""
    return await SubscriptionVerifier(registry).verify(
        session,
        payload=payload,
        user_id=user.user_id,
        scope=platform_scope(payload.scope),
    )


@router.post("/vault/verify", responses=_ERROR_RESPONSES)
async def verify_vault_subscription(
    payload: VerifySubscriptionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_async_session),
    registry: ProviderRegistry = Depends(get_provider_registry),
) -> Dict[str, Any]:
    return await SubscriptionVerifier(registry).verify(
        session,
        payload=payload,
        user_id=user.user_id,
        scope=SubscriptionScope.VAULT,
    )


__all__ = ["router", "platform_scope"]

# Fin del archivo backend/app/modules/payments/routes/subscription_routes.py
