# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/providers/stripe_provider.py

Adaptador de Stripe (Checkout Sessions, Subscriptions, Customers).

El SDK oficial es síncrono: cada llamada corre en el threadpool de
FastAPI y queda acotada por `provider_timeout_seconds` vía
asyncio.wait_for. La API key se pasa por request (sin estado global).

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import stripe
from fastapi.concurrency import run_in_threadpool

from app.modules.payments.enums import BillingCycle, PaymentProvider
from app.modules.payments.facades.errors import (
    PaymentsError,
    ProviderRequestError,
    ProviderTimeoutError,
)
from app.modules.payments.providers.base import (
    CheckoutSession,
    PaymentCheckoutParams,
    PaymentProviderClient,
    ProviderSubscription,
    SubscriptionCheckoutParams,
    VerifiedPayment,
)
from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings

logger = logging.getLogger(__name__)

PROVIDER = PaymentProvider.STRIPE.value


def as_dict(obj: Any) -> Dict[str, Any]:
    """StripeObject (o dict en tests) -> dict plano recursivo."""
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return obj
    return obj.to_dict()


def from_timestamp(value: Any) -> Optional[datetime]:
    if value in (None, "", 0):
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def recurring_interval(billing_cycle: str) -> str:
    return "year" if BillingCycle.normalize(billing_cycle) == BillingCycle.ANNUAL else "month"


def subscription_from_stripe(data: Dict[str, Any]) -> ProviderSubscription:
    """
    Objeto Subscription de Stripe -> ProviderSubscription.

    Versiones recientes de la API mueven current_period_* a los items.
    """
    items = ((data.get("items") or {}).get("data") or [])
    first_item = items[0] if items else {}
    price = first_item.get("price") or {}
    period_start = data.get("current_period_start") or first_item.get("current_period_start")
    period_end = data.get("current_period_end") or first_item.get("current_period_end")
    customer = data.get("customer")
    if isinstance(customer, dict):
        customer = customer.get("id")

    return ProviderSubscription(
        provider=PROVIDER,
        external_subscription_id=data.get("id"),
        status=data.get("status"),
        external_plan_id=price.get("id"),
        external_customer_id=customer,
        currency=(price.get("currency") or data.get("currency") or "").upper() or None,
        amount_cents=price.get("unit_amount"),
        current_period_start=from_timestamp(period_start),
        current_period_end=from_timestamp(period_end),
        cancel_at_period_end=data.get("cancel_at_period_end"),
        canceled_at=from_timestamp(data.get("canceled_at")),
        metadata=dict(data.get("metadata") or {}),
    )


class StripeProvider(PaymentProviderClient):
    """Cliente Stripe basado en el SDK oficial."""

    name = PROVIDER

    def __init__(self, settings: Optional[PaymentsSettings] = None) -> None:
        self.settings = settings or get_payments_settings()

    # ------------------------------------------------------------------
    # Infraestructura
    # ------------------------------------------------------------------
    async def _call(self, operation: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Dict[str, Any]:
        """Ejecuta una llamada del SDK en threadpool con timeout."""
        if not self.settings.stripe_secret_key:
            raise ProviderRequestError(PROVIDER, "Stripe is not configured")
        kwargs["api_key"] = self.settings.stripe_secret_key
        try:
            result = await asyncio.wait_for(
                run_in_threadpool(fn, *args, **kwargs),
                timeout=self.settings.provider_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error("[stripe] %s timeout after %ss", operation, self.settings.provider_timeout_seconds)
            raise ProviderTimeoutError(PROVIDER, "Stripe did not respond in time")
        except stripe.StripeError as e:
            logger.warning(
                "[stripe] %s rejected: %s (code=%s)",
                operation, getattr(e, "user_message", None) or str(e), getattr(e, "code", None),
            )
            raise ProviderRequestError(PROVIDER, "Stripe rejected the request", providerCode=getattr(e, "code", None))
        return as_dict(result)

    # ------------------------------------------------------------------
    # Checkout de pago único
    # ------------------------------------------------------------------
    async def create_checkout(self, params: PaymentCheckoutParams) -> CheckoutSession:
        payment_intent_data: Dict[str, Any] = {"metadata": dict(params.metadata)}
        if params.connected_account_id:
            payment_intent_data["transfer_data"] = {"destination": params.connected_account_id}
            if params.application_fee_amount:
                payment_intent_data["application_fee_amount"] = params.application_fee_amount

        request: Dict[str, Any] = {
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": params.currency.lower(),
                        "unit_amount": params.amount,
                        "product_data": {"name": params.description},
                    },
                    "quantity": 1,
                }
            ],
            "success_url": params.success_url,
            "cancel_url": params.cancel_url,
            "client_reference_id": params.reference,
            "metadata": dict(params.metadata),
            "payment_intent_data": payment_intent_data,
        }
        if params.customer_email:
            request["customer_email"] = params.customer_email
        if params.idempotency_key:
            request["idempotency_key"] = f"checkout:{params.idempotency_key}"

        session = await self._call("checkout.create", stripe.checkout.Session.create, **request)
        logger.info("[stripe] checkout session created id=%s reference=%s", session.get("id"), params.reference)
        return CheckoutSession(provider=PROVIDER, session_id=session["id"], checkout_url=session["url"])

    # ------------------------------------------------------------------
    # Checkout de suscripción
    # ------------------------------------------------------------------
    async def create_subscription_checkout(self, params: SubscriptionCheckoutParams) -> CheckoutSession:
        if params.provider_plan_id:
            line_item: Dict[str, Any] = {"price": params.provider_plan_id, "quantity": 1}
        else:
            line_item = {
                "price_data": {
                    "currency": params.currency.lower(),
                    "unit_amount": params.amount,
                    "recurring": {"interval": recurring_interval(params.billing_cycle)},
                    "product_data": {"name": params.plan_name},
                },
                "quantity": 1,
            }

        request: Dict[str, Any] = {
            "mode": "subscription",
            "line_items": [line_item],
            "success_url": params.success_url,
            "cancel_url": params.cancel_url,
            "client_reference_id": params.reference,
            "metadata": dict(params.metadata),
            "subscription_data": {"metadata": dict(params.metadata)},
        }
        if params.customer_id:
            request["customer"] = params.customer_id
        elif params.customer_email:
            request["customer_email"] = params.customer_email
        if params.idempotency_key:
            request["idempotency_key"] = f"subscription:{params.idempotency_key}:{params.currency.upper()}"

        session = await self._call("subscription_checkout.create", stripe.checkout.Session.create, **request)
        logger.info(
            "[stripe] subscription session created id=%s plan=%s dynamic=%s",
            session.get("id"), params.plan_code, params.provider_plan_id is None,
        )
        return CheckoutSession(provider=PROVIDER, session_id=session["id"], checkout_url=session["url"])

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------
    async def ensure_customer(
        self,
        existing_customer_id: Optional[str],
        user_id: str,
        email: Optional[str] = None,
    ) -> str:
        """Devuelve el customer guardado o crea uno nuevo."""
        if existing_customer_id:
            return existing_customer_id
        request: Dict[str, Any] = {"metadata": {"user_id": user_id}}
        if email:
            request["email"] = email
        customer = await self._call("customer.create", stripe.Customer.create, **request)
        logger.info("[stripe] customer created id=%s user=%s", customer.get("id"), user_id)
        return customer["id"]

    # ------------------------------------------------------------------
    # Lecturas
    # ------------------------------------------------------------------
    async def retrieve_checkout_session(self, session_id: str) -> Dict[str, Any]:
        return await self._call(
            "checkout.retrieve",
            stripe.checkout.Session.retrieve,
            session_id,
            expand=["payment_intent.latest_charge.balance_transaction"],
        )

    async def retrieve_subscription(self, subscription_id: str) -> ProviderSubscription:
        data = await self._call("subscription.retrieve", stripe.Subscription.retrieve, subscription_id)
        return subscription_from_stripe(data)

    async def verify_payment(self, reference: str) -> VerifiedPayment:
        session = await self.retrieve_checkout_session(reference)

        if session.get("payment_status") in ("paid", "no_payment_required"):
            status = "succeeded"
        elif session.get("status") == "expired":
            status = "failed"
        else:
            status = "pending"

        currency = (session.get("currency") or "").upper() or None
        payment_intent = session.get("payment_intent")
        intent_id: Optional[str] = None
        fee: Optional[int] = None
        if isinstance(payment_intent, dict):
            intent_id = payment_intent.get("id")
            charge = payment_intent.get("latest_charge") or {}
            balance = charge.get("balance_transaction") if isinstance(charge, dict) else None
            if isinstance(balance, dict) and (balance.get("currency") or "").upper() == currency:
                fee = balance.get("fee")
        elif isinstance(payment_intent, str):
            intent_id = payment_intent

        return VerifiedPayment(
            provider=PROVIDER,
            reference=reference,
            status=status,
            amount=session.get("amount_total"),
            currency=currency,
            provider_transaction_id=intent_id,
            provider_fee=fee,
            metadata=dict(session.get("metadata") or {}),
        )

    async def fetch_subscription(self, reference: str) -> ProviderSubscription:
        """
        Acepta un id de Checkout Session (cs_...) o de Subscription (sub_...).

        Una sesión debe estar en modo subscription y pagada.
        """
        if not reference.startswith("cs_"):
            return await self.retrieve_subscription(reference)

        session = await self.retrieve_checkout_session(reference)
        if session.get("mode") != "subscription" or session.get("payment_status") not in ("paid", "no_payment_required"):
            raise PaymentsError(
                "Checkout session is not a paid subscription",
                status_code=400,
                error="checkout_not_completed",
                sessionId=reference,
            )
        subscription_ref = session.get("subscription")
        if isinstance(subscription_ref, dict):
            subscription_ref = subscription_ref.get("id")
        if not subscription_ref:
            raise ProviderRequestError(PROVIDER, "Checkout session has no subscription")

        sub = await self.retrieve_subscription(subscription_ref)
        merged = {**dict(session.get("metadata") or {}), **sub.metadata}
        return ProviderSubscription(
            provider=sub.provider,
            external_subscription_id=sub.external_subscription_id,
            status=sub.status,
            external_plan_id=sub.external_plan_id,
            external_customer_id=sub.external_customer_id or session.get("customer"),
            currency=sub.currency or (session.get("currency") or "").upper() or None,
            amount_cents=sub.amount_cents if sub.amount_cents is not None else session.get("amount_total"),
            current_period_start=sub.current_period_start,
            current_period_end=sub.current_period_end,
            cancel_at_period_end=sub.cancel_at_period_end,
            canceled_at=sub.canceled_at,
            metadata=merged,
        )


__all__ = [
    "StripeProvider",
    "as_dict",
    "from_timestamp",
    "recurring_interval",
    "subscription_from_stripe",
]

# Fin del archivo backend/app/modules/payments/providers/stripe_provider.py
