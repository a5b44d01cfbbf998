# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/providers/paystack_provider.py

Adaptador de Paystack.

- /transaction/initialize: checkout hosted; `reference` es la nuestra.
- /transaction/verify/{reference}: re-verificación.
- Suscripciones: parámetro `plan` con el código de plan mapeado.

Montos: Paystack trabaja en subunidades (kobo, pesewas, cents).
Paystack exige email del cliente.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from app.modules.payments.enums import PaymentProvider
from app.modules.payments.facades.errors import PaymentsError, ProviderRequestError
from app.modules.payments.providers.base import (
    CheckoutSession,
    PaymentCheckoutParams,
    PaymentProviderClient,
    ProviderSubscription,
    SubscriptionCheckoutParams,
    VerifiedPayment,
    parse_iso_timestamp,
)
from app.modules.payments.providers.http_client import request_json
from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings

logger = logging.getLogger(__name__)

PROVIDER = PaymentProvider.PAYSTACK.value

_STATUS_MAP = {
    "success": "succeeded",
    "failed": "failed",
    "abandoned": "failed",
    "reversed": "failed",
}


def verified_from_paystack(reference: str, data: Mapping[str, Any]) -> VerifiedPayment:
    metadata = data.get("metadata")
    return VerifiedPayment(
        provider=PROVIDER,
        reference=reference,
        status=_STATUS_MAP.get((data.get("status") or "").lower(), "pending"),
        amount=data.get("amount"),
        currency=(data.get("currency") or "").upper() or None,
        provider_transaction_id=str(data["id"]) if data.get("id") is not None else None,
        provider_fee=data.get("fees"),
        paid_at=parse_iso_timestamp(data.get("paid_at") or data.get("paidAt")),
        metadata=dict(metadata) if isinstance(metadata, dict) else {},
    )


class PaystackProvider(PaymentProviderClient):
    name = PROVIDER

    def __init__(self, settings: Optional[PaymentsSettings] = None) -> None:
        self.settings = settings or get_payments_settings()

    def _headers(self) -> Dict[str, str]:
        if not self.settings.paystack_secret_key:
            raise ProviderRequestError(PROVIDER, "Paystack is not configured")
        return {
            "Authorization": f"Bearer {self.settings.paystack_secret_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _require_email(email: Optional[str]) -> str:
        if not email:
            raise PaymentsError(
                "Paystack requires a customer email",
                status_code=400,
                error="customer_email_required",
            )
        return email

    async def _initialize(self, payload: Dict[str, Any]) -> CheckoutSession:
        _, body = await request_json(
            PROVIDER,
            "POST",
            f"{self.settings.paystack_base_url}/transaction/initialize",
            json=payload,
            headers=self._headers(),
        )
        data = body.get("data") or {}
        if not body.get("status") or not data.get("authorization_url"):
            logger.warning("[paystack] initialize sin authorization_url: %s", body.get("message"))
            raise ProviderRequestError(PROVIDER, "Paystack did not return an authorization URL")
        return CheckoutSession(
            provider=PROVIDER,
            session_id=data.get("reference") or payload["reference"],
            checkout_url=data["authorization_url"],
        )

    async def create_checkout(self, params: PaymentCheckoutParams) -> CheckoutSession:
        payload = {
            "email": self._require_email(params.customer_email),
            "amount": params.amount,
            "currency": params.currency.upper(),
            "reference": params.reference,
            "callback_url": params.success_url,
            "metadata": dict(params.metadata),
        }
        session = await self._initialize(payload)
        logger.info("[paystack] checkout created reference=%s", params.reference)
        return session

    async def create_subscription_checkout(self, params: SubscriptionCheckoutParams) -> CheckoutSession:
        payload: Dict[str, Any] = {
            "email": self._require_email(params.customer_email),
            "amount": params.amount,
            "currency": params.currency.upper(),
            "reference": params.reference,
            "callback_url": params.success_url,
            "metadata": dict(params.metadata),
        }
        if params.provider_plan_id:
            payload["plan"] = params.provider_plan_id
        session = await self._initialize(payload)
        logger.info("[paystack] subscription checkout reference=%s plan=%s", params.reference, params.plan_code)
        return session

    async def verify_payment(self, reference: str) -> VerifiedPayment:
        _, body = await request_json(
            PROVIDER,
            "GET",
            f"{self.settings.paystack_base_url}/transaction/verify/{reference}",
            headers=self._headers(),
        )
        return verified_from_paystack(reference, body.get("data") or {})

    async def fetch_subscription(self, reference: str) -> ProviderSubscription:
        """Igual que Flutterwave: pago verificado = periodo activo (renovación manual)."""
        payment = await self.verify_payment(reference)
        if not payment.succeeded:
            raise PaymentsError(
                "Paystack payment is not successful",
                status_code=400,
                error="payment_not_successful",
                reference=reference,
            )
        return ProviderSubscription(
            provider=PROVIDER,
            external_subscription_id=reference,
            status="success",
            external_plan_id=payment.metadata.get("provider_plan_id"),
            currency=payment.currency,
            amount_cents=payment.amount,
            current_period_start=payment.paid_at,
            metadata=payment.metadata,
        )


__all__ = ["PaystackProvider", "verified_from_paystack"]

# Fin del archivo backend/app/modules/payments/providers/paystack_provider.py
