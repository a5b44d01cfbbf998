# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/subscriptions/start_subscription_checkout.py

Checkout de suscripciones de plataforma (creator, attendee, vault).

Flujo:
- pre-check de idempotencia (scope `subscription:<scope>`)
- plan activo por (code, scope); plan gratis -> 400 plan_is_free
- moneda efectiva; monto = precio regional o USD convertido
- pasarela como producto de plataforma
- mapeo de plan con fallback entre pasarelas (nunca se cambia el plan)
- claim -> sesión en el proveedor -> claim inicial del registro
  canónico (pending_checkout con monto y moneda cobrados) -> finalize

Stripe: customer guardado en las preferencias del usuario; si la sesión
con precio dinámico falla en moneda local se reintenta una vez en USD.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import BillingCycle, PaymentProvider, SubscriptionScope
from app.modules.payments.facades.checkout.dto import CheckoutOutcome
from app.modules.payments.facades.errors import PaymentsError, ProviderError
from app.modules.payments.metrics import checkout_sessions_total
from app.modules.payments.models import UserPaymentPreference
from app.modules.payments.providers.base import CheckoutSession, SubscriptionCheckoutParams
from app.modules.payments.providers.registry import ProviderRegistry
from app.modules.payments.repositories import PaymentPreferenceRepository, SubscriptionPlanRepository
from app.modules.payments.schemas import SubscriptionCheckoutRequest
from app.modules.payments.services.currency_service import CurrencyService, effective_currency
from app.modules.payments.services.gateway_selector import (
    PRODUCT_PLATFORM,
    GatewaySelection,
    build_context,
    select_gateway,
)
from app.modules.payments.services.idempotency_ledger import (
    IdempotencyClaim,
    IdempotencyGuard,
    IdempotencyLedger,
    IdempotencyReplay,
    dump_body,
    request_hash,
)
from app.modules.payments.services.plan_mapping import PlanMappingResolution, PlanMappingResolver
from app.modules.payments.services.recurring_sync import RecurringSubscriptionSync, SubscriptionSnapshot
from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings
from app.shared.database.base import utcnow

logger = logging.getLogger(__name__)


def subscription_idempotency_scope(scope: SubscriptionScope) -> str:
    return f"subscription:{scope.value}"


@dataclass(frozen=True)
class SubscriptionPricing:
    """Valores planos del plan y precio resueltos antes del claim."""

    plan_id: uuid.UUID
    plan_code: str
    plan_name: str
    cycle: BillingCycle
    usd_amount: int
    currency: str
    amount: int
    country_code: Optional[str]
    selection: GatewaySelection
    mapping: PlanMappingResolution
    stripe_customer_id: Optional[str]
    email: Optional[str]


class SubscriptionCheckoutOrchestrator:
    def __init__(
        self,
        registry: ProviderRegistry,
        settings: Optional[PaymentsSettings] = None,
        ledger: Optional[IdempotencyLedger] = None,
        currency_service: Optional[CurrencyService] = None,
        sync: Optional[RecurringSubscriptionSync] = None,
        resolver: Optional[PlanMappingResolver] = None,
    ) -> None:
        self.registry = registry
        self.settings = settings or get_payments_settings()
        self.ledger = ledger or IdempotencyLedger(self.settings)
        self.currency_service = currency_service or CurrencyService()
        self.sync = sync or RecurringSubscriptionSync()
        self.resolver = resolver or PlanMappingResolver()
        self.plans = SubscriptionPlanRepository()
        self.preferences = PaymentPreferenceRepository()

    # ------------------------------------------------------------------
    # Entrada
    # ------------------------------------------------------------------
    async def run(
        self,
        session: AsyncSession,
        *,
        payload: SubscriptionCheckoutRequest,
        user_id: uuid.UUID,
        email: Optional[str],
        scope: SubscriptionScope,
        idempotency_key: str,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> CheckoutOutcome:
        extra_headers = dict(extra_headers or {})
        op_scope = subscription_idempotency_scope(scope)
        actor_id = str(user_id)
        req_hash = request_hash(payload.normalized(scope))

        claim: Optional[IdempotencyClaim] = None
        existing = await self.ledger.peek(session, op_scope, actor_id, idempotency_key)
        if existing is not None:
            resolution = await self.ledger.resolve_existing(session, existing, req_hash)
            if isinstance(resolution, IdempotencyReplay):
                return CheckoutOutcome(resolution.status_code, resolution.body, {**extra_headers, **resolution.headers})
            claim = resolution

        if claim is None:
            pricing = await self.prepare(session, payload, user_id, email, scope)
            claim = await self.ledger.claim(session, op_scope, actor_id, idempotency_key, req_hash)
            if not claim.claimed:
                resolution = await self.ledger.resolve_existing(session, claim.existing, req_hash)
                if isinstance(resolution, IdempotencyReplay):
                    return CheckoutOutcome(
                        resolution.status_code, resolution.body, {**extra_headers, **resolution.headers}
                    )
                claim = resolution
            async with self.ledger.guard(session, claim) as guard:
                outcome = await self.execute(session, pricing, user_id, scope, idempotency_key, guard)
        else:
            async with self.ledger.guard(session, claim) as guard:
                pricing = await self.prepare(session, payload, user_id, email, scope)
                outcome = await self.execute(session, pricing, user_id, scope, idempotency_key, guard)

        outcome.headers = {**extra_headers, **outcome.headers}
        return outcome

    # ------------------------------------------------------------------
    # Plan, precio, pasarela y mapeo
    # ------------------------------------------------------------------
    async def _amount_in(self, session: AsyncSession, plan_regional: Optional[int], usd_amount: int, currency: str) -> int:
        if plan_regional is not None and plan_regional > 0:
            return plan_regional
        if currency == "USD":
            return usd_amount
        return await self.currency_service.convert(session, usd_amount, "USD", currency)

    async def prepare(
        self,
        session: AsyncSession,
        payload: SubscriptionCheckoutRequest,
        user_id: uuid.UUID,
        email: Optional[str],
        scope: SubscriptionScope,
    ) -> SubscriptionPricing:
        plan = await self.plans.get_active(session, payload.plan_code, scope)
        if plan is None:
            raise PaymentsError(
                f"Plan '{payload.plan_code}' not found",
                status_code=404,
                error="plan_not_found",
                planCode=payload.plan_code,
            )

        cycle = payload.cycle
        usd_amount = plan.usd_price(cycle)
        if usd_amount <= 0:
            raise PaymentsError("This plan is free", status_code=400, error="plan_is_free", planCode=plan.code)

        preference: Optional[UserPaymentPreference] = await session.get(UserPaymentPreference, user_id)
        country_code = preference.country_code if preference else None
        currency = effective_currency(
            payload.currency,
            preference.preferred_currency if preference else None,
            country_code,
            None,
        )
        amount = await self._amount_in(session, plan.regional_price(currency, cycle), usd_amount, currency)

        selection = select_gateway(
            build_context(
                self.settings,
                product_type=PRODUCT_PLATFORM,
                requested_gateway=payload.provider.value if payload.provider else None,
                user_preference=(
                    PaymentProvider(preference.preferred_gateway).value
                    if preference and preference.preferred_gateway
                    else None
                ),
                country_code=country_code,
                currency=currency,
            )
        )

        mapping = await self.resolver.resolve(
            session,
            selected_gateway=selection.gateway,
            configured_gateways=self.settings.configured_gateways(),
            scope=scope,
            plan_code=plan.code,
            cycle=cycle,
            currency=currency,
            region_code=country_code,
        )

        # El mapeo puede fijar otra moneda: el monto se expresa en ella
        if mapping.currency != currency:
            amount = await self._amount_in(
                session, plan.regional_price(mapping.currency, cycle), usd_amount, mapping.currency
            )
            currency = mapping.currency

        return SubscriptionPricing(
            plan_id=plan.id,
            plan_code=plan.code,
            plan_name=plan.name,
            cycle=cycle,
            usd_amount=usd_amount,
            currency=currency,
            amount=amount,
            country_code=country_code,
            selection=selection,
            mapping=mapping,
            stripe_customer_id=preference.stripe_customer_id if preference else None,
            email=email or (preference.email if preference else None),
        )

    # ------------------------------------------------------------------
    # Proveedor + claim inicial (bajo el guard)
    # ------------------------------------------------------------------
    async def _stripe_customer(self, session: AsyncSession, pricing: SubscriptionPricing, user_id: uuid.UUID) -> str:
        customer_id = await self.registry.stripe().ensure_customer(
            pricing.stripe_customer_id, str(user_id), pricing.email
        )
        if customer_id != pricing.stripe_customer_id:
            preference = await self.preferences.get_or_create(session, user_id)
            preference.stripe_customer_id = customer_id
            if pricing.email and not preference.email:
                preference.email = pricing.email
            await session.commit()
        return customer_id

    async def execute(
        self,
        session: AsyncSession,
        pricing: SubscriptionPricing,
        user_id: uuid.UUID,
        scope: SubscriptionScope,
        idempotency_key: str,
        guard: IdempotencyGuard,
    ) -> CheckoutOutcome:
        provider_name = pricing.mapping.provider
        reference = guard.claim.reference("sub")
        base_url = self.settings.frontend_url
        metadata = {
            "reference": reference,
            "scope": scope.value,
            "owner_user_id": str(user_id),
            "plan_code": pricing.plan_code,
            "billing_cycle": pricing.cycle.value,
        }
        if pricing.mapping.provider_plan_id:
            metadata["provider_plan_id"] = pricing.mapping.provider_plan_id

        customer_id = None
        if provider_name == PaymentProvider.STRIPE:
            customer_id = await self._stripe_customer(session, pricing, user_id)

        params = SubscriptionCheckoutParams(
            reference=reference,
            plan_code=pricing.plan_code,
            plan_name=pricing.plan_name,
            billing_cycle=pricing.cycle.value,
            amount=pricing.amount,
            currency=pricing.currency,
            success_url=f"{base_url}/subscriptions/success?scope={scope.value}&reference={reference}",
            cancel_url=f"{base_url}/subscriptions/cancel?scope={scope.value}",
            provider_plan_id=pricing.mapping.provider_plan_id,
            customer_email=pricing.email,
            customer_id=customer_id,
            metadata=metadata,
            idempotency_key=idempotency_key,
        )

        provider = self.registry.get(provider_name)
        currency, amount = pricing.currency, pricing.amount
        try:
            checkout: CheckoutSession = await provider.create_subscription_checkout(params)
        except ProviderError as exc:
            retry_in_usd = (
                provider_name == PaymentProvider.STRIPE
                and pricing.mapping.is_dynamic
                and pricing.currency != "USD"
            )
            if not retry_in_usd:
                checkout_sessions_total.labels(provider_name, exc.error).inc()
                raise
            logger.warning(
                "[subscription_checkout] stripe rejected %s %s; retrying in USD",
                pricing.amount, pricing.currency,
            )
            currency, amount = "USD", pricing.usd_amount
            checkout = await provider.create_subscription_checkout(replace(params, currency=currency, amount=amount))

        await self.sync.claim_pending_checkout(
            session,
            SubscriptionSnapshot(
                scope=scope,
                provider=PaymentProvider(provider_name),
                owner_user_id=user_id,
                plan_code=pricing.plan_code,
                plan_id=pricing.plan_id,
                billing_cycle=pricing.cycle.value,
                external_plan_id=pricing.mapping.provider_plan_id,
                external_customer_id=customer_id,
                currency=currency,
                amount_cents=amount,
            ),
            {
                "reference": reference,
                "session_id": checkout.session_id,
                "provider": provider_name,
                "plan_code": pricing.plan_code,
                "billing_cycle": pricing.cycle.value,
                "amount_cents": amount,
                "currency": currency,
                "created_at": utcnow().isoformat(),
            },
        )

        body = {
            "checkoutUrl": checkout.checkout_url,
            "sessionId": checkout.session_id,
            "provider": provider_name,
            "gateway": pricing.selection.gateway,
            "pricingCurrency": currency,
            "pricingAmountCents": amount,
            "gatewaySelection": pricing.selection.to_dict(),
            "planMapping": pricing.mapping.to_dict(),
        }
        body_text = dump_body(body)
        await guard.complete(200, body_text)
        checkout_sessions_total.labels(provider_name, "created").inc()
        logger.info(
            "[subscription_checkout] user=%s scope=%s plan=%s provider=%s source=%s",
            user_id, scope.value, pricing.plan_code, provider_name, pricing.mapping.source,
        )
        return CheckoutOutcome(status_code=200, body=body_text)


__all__ = [
    "SubscriptionPricing",
    "SubscriptionCheckoutOrchestrator",
    "subscription_idempotency_scope",
]

# Fin del archivo backend/app/modules/payments/facades/subscriptions/start_subscription_checkout.py
