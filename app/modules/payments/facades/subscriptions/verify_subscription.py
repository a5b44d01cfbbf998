# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/subscriptions/verify_subscription.py

Verificación manual de una suscripción tras el redirect del checkout.

El usuario vuelve con la referencia del proveedor (session_id de Stripe,
subscription_id de PayPal, tx_ref de Flutterwave, reference de Paystack).
Se consulta al proveedor, se valida que la suscripción pertenece al
usuario y al scope, y se aplica con el mismo upsert condicional que usan
los webhooks (un webhook más nuevo nunca se pisa).

Flutterwave/Paystack no tienen suscripción recurrente nativa en este
flujo: el pago verificado abre un periodo de 30/365 días desde el cobro,
con cancel_at_period_end=True (renovación manual). El monto cobrado se
compara con el precio esperado igual que en el webhook.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import PaymentProvider, SubscriptionScope
from app.modules.payments.facades.errors import PaymentsError
from app.modules.payments.providers.base import ProviderSubscription
from app.modules.payments.providers.registry import ProviderRegistry
from app.modules.payments.repositories import RecurringSubscriptionRepository, SubscriptionPlanRepository
from app.modules.payments.schemas import VerifySubscriptionRequest
from app.modules.payments.services.manual_renewal import (
    ensure_renewal_charge,
    expected_renewal_charge,
    renewal_period,
)
from app.modules.payments.services.recurring_sync import (
    RecurringSubscriptionSync,
    SubscriptionSnapshot,
    serialize_subscription,
)
from app.shared.database.base import utcnow

logger = logging.getLogger(__name__)


def _parse_provider(value: str) -> PaymentProvider:
    try:
        return PaymentProvider(value)
    except ValueError:
        raise PaymentsError(
            f"Unknown payment provider '{value}'",
            status_code=400,
            error="unknown_provider",
        ) from None


def check_ownership(subscription: ProviderSubscription, user_id: uuid.UUID, scope: SubscriptionScope) -> None:
    """
    La metadata del proveedor debe nombrar al usuario y al scope.

    Sin owner en la metadata también es mismatch: no se adopta una
    suscripción ajena.
    """
    meta = subscription.metadata or {}
    owner = str(meta.get("owner_user_id") or "")
    meta_scope = str(meta.get("scope") or "")
    if owner != str(user_id) or meta_scope != scope.value:
        logger.warning(
            "[subscription_verify] ownership mismatch user=%s scope=%s meta_owner=%s meta_scope=%s",
            user_id, scope.value, owner or None, meta_scope or None,
        )
        raise PaymentsError(
            "Subscription does not belong to the current user",
            status_code=403,
            error="subscription_ownership_mismatch",
        )


class SubscriptionVerifier:
    def __init__(
        self,
        registry: ProviderRegistry,
        sync: Optional[RecurringSubscriptionSync] = None,
    ) -> None:
        self.registry = registry
        self.sync = sync or RecurringSubscriptionSync()
        self.plans = SubscriptionPlanRepository()
        self.subscriptions = RecurringSubscriptionRepository()

    async def verify(
        self,
        session: AsyncSession,
        *,
        payload: VerifySubscriptionRequest,
        user_id: uuid.UUID,
        scope: SubscriptionScope,
    ) -> Dict[str, Any]:
        provider = _parse_provider(payload.provider)
        reference = payload.provider_reference
        if not reference:
            raise PaymentsError(
                "A provider reference is required",
                status_code=400,
                error="missing_reference",
            )

        subscription = await self.registry.get(provider.value).fetch_subscription(reference)
        check_ownership(subscription, user_id, scope)

        meta = subscription.metadata or {}
        plan_code = meta.get("plan_code")
        billing_cycle = meta.get("billing_cycle")
        plan = await self.plans.get_active(session, plan_code, scope) if plan_code else None
        plan_id = plan.id if plan is not None else None

        period_start = subscription.current_period_start
        period_end = subscription.current_period_end
        cancel_at_period_end = subscription.cancel_at_period_end
        event_at = utcnow()
        if not provider.renews_natively:
            # Mismo cobro -> mismo periodo: el ancla es el momento del pago,
            # nunca la hora de la verificación
            external_id = subscription.external_subscription_id
            record = await self.subscriptions.get_for_owner(session, user_id, scope)
            ensure_renewal_charge(
                expected_renewal_charge(record, external_id, plan, billing_cycle, subscription.currency),
                subscription.amount_cents,
                subscription.currency,
                external_id,
            )
            period_start, period_end = renewal_period(
                billing_cycle, subscription.current_period_start, record, external_id
            )
            cancel_at_period_end = True
            event_at = period_start

        snapshot = SubscriptionSnapshot(
            scope=scope,
            provider=provider,
            owner_user_id=user_id,
            plan_code=plan_code,
            plan_id=plan_id,
            billing_cycle=billing_cycle,
            external_subscription_id=subscription.external_subscription_id,
            external_plan_id=subscription.external_plan_id,
            external_customer_id=subscription.external_customer_id,
            currency=subscription.currency,
            amount_cents=subscription.amount_cents,
            provider_status=subscription.status,
            current_period_start=period_start,
            current_period_end=period_end,
            cancel_at_period_end=cancel_at_period_end,
            canceled_at=subscription.canceled_at,
            event_at=event_at,
            event_type="manual_verification",
            metadata={"manual_renewal": True} if not provider.renews_natively else {},
        )
        result = await self.sync.upsert(session, snapshot)
        logger.info(
            "[subscription_verify] user=%s scope=%s provider=%s applied=%s reason=%s",
            user_id, scope.value, provider.value, result.applied, result.reason,
        )
        return {
            "success": True,
            "applied": result.applied,
            "subscription": serialize_subscription(result.record),
        }


__all__ = ["SubscriptionVerifier", "check_ownership"]

# Fin del archivo backend/app/modules/payments/facades/subscriptions/verify_subscription.py
