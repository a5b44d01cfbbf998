# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/providers/flutterwave_provider.py

Adaptador de Flutterwave (API v3).

- /payments: checkout estándar (hosted). `tx_ref` es nuestra referencia
  y es lo que queda en transactions.flutterwave_tx_ref.
- /transactions/verify_by_reference: re-verificación antes de otorgar.
- Suscripciones: `payment_plan` mapeado; sin plan se cobra un pago único
  y la renovación es manual.

Montos: la API usa unidades mayores.

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
from app.modules.payments.services.currency_service import to_major_units, to_minor_units
from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings

logger = logging.getLogger(__name__)

PROVIDER = PaymentProvider.FLUTTERWAVE.value

_STATUS_MAP = {
    "successful": "succeeded",
    "failed": "failed",
    "cancelled": "failed",
}


def verified_from_flutterwave(reference: str, data: Mapping[str, Any]) -> VerifiedPayment:
    currency = (data.get("currency") or "").upper() or None
    amount = data.get("amount")
    fee = data.get("app_fee")
    return VerifiedPayment(
        provider=PROVIDER,
        reference=reference,
        status=_STATUS_MAP.get((data.get("status") or "").lower(), "pending"),
        amount=to_minor_units(amount, currency) if currency and amount is not None else None,
        currency=currency,
        provider_transaction_id=str(data["id"]) if data.get("id") is not None else None,
        provider_fee=to_minor_units(fee, currency) if currency and fee is not None else None,
        paid_at=parse_iso_timestamp(data.get("created_at")),
        metadata=dict(data.get("meta") or {}),
    )


class FlutterwaveProvider(PaymentProviderClient):
    name = PROVIDER

    def __init__(self, settings: Optional[PaymentsSettings] = None) -> None:
        self.settings = settings or get_payments_settings()

    def _headers(self) -> Dict[str, str]:
        if not self.settings.flutterwave_secret_key:
            raise ProviderRequestError(PROVIDER, "Flutterwave is not configured")
        return {
            "Authorization": f"Bearer {self.settings.flutterwave_secret_key}",
            "Content-Type": "application/json",
        }

    async def _initialize(self, payload: Dict[str, Any]) -> CheckoutSession:
        _, body = await request_json(
            PROVIDER,
            "POST",
            f"{self.settings.flutterwave_base_url}/payments",
            json=payload,
            headers=self._headers(),
        )
        link = (body.get("data") or {}).get("link")
        if body.get("status") != "success" or not link:
            logger.warning("[flutterwave] /payments sin link: %s", body.get("message"))
            raise ProviderRequestError(PROVIDER, "Flutterwave did not return a checkout link")
        return CheckoutSession(provider=PROVIDER, session_id=payload["tx_ref"], checkout_url=link)

    async def create_checkout(self, params: PaymentCheckoutParams) -> CheckoutSession:
        payload: Dict[str, Any] = {
            "tx_ref": params.reference,
            "amount": str(to_major_units(params.amount, params.currency)),
            "currency": params.currency.upper(),
            "redirect_url": params.success_url,
            "meta": dict(params.metadata),
            "customizations": {"title": params.description[:100]},
        }
        if params.customer_email:
            payload["customer"] = {"email": params.customer_email}
        session = await self._initialize(payload)
        logger.info("[flutterwave] checkout created tx_ref=%s", params.reference)
        return session

    async def create_subscription_checkout(self, params: SubscriptionCheckoutParams) -> CheckoutSession:
        payload: Dict[str, Any] = {
            "tx_ref": params.reference,
            "amount": str(to_major_units(params.amount, params.currency)),
            "currency": params.currency.upper(),
            "redirect_url": params.success_url,
            "meta": dict(params.metadata),
            "customizations": {"title": params.plan_name[:100]},
        }
        if params.provider_plan_id:
            payload["payment_plan"] = params.provider_plan_id
        if params.customer_email:
            payload["customer"] = {"email": params.customer_email}
        session = await self._initialize(payload)
        logger.info("[flutterwave] subscription checkout tx_ref=%s plan=%s", params.reference, params.plan_code)
        return session

    async def verify_payment(self, reference: str) -> VerifiedPayment:
        _, body = await request_json(
            PROVIDER,
            "GET",
            f"{self.settings.flutterwave_base_url}/transactions/verify_by_reference?tx_ref={reference}",
            headers=self._headers(),
        )
        return verified_from_flutterwave(reference, body.get("data") or {})

    async def fetch_subscription(self, reference: str) -> ProviderSubscription:
        """
        Renovación manual: el pago verificado equivale a un periodo activo.
        current_period_start es el momento del cobro; el llamador calcula
        el fin de periodo desde ahí.
        """
        payment = await self.verify_payment(reference)
        if not payment.succeeded:
            raise PaymentsError(
                "Flutterwave payment is not successful",
                status_code=400,
                error="payment_not_successful",
                reference=reference,
            )
        return ProviderSubscription(
            provider=PROVIDER,
            external_subscription_id=reference,
            status="successful",
            external_plan_id=payment.metadata.get("provider_plan_id"),
            currency=payment.currency,
            amount_cents=payment.amount,
            current_period_start=payment.paid_at,
            metadata=payment.metadata,
        )


__all__ = ["FlutterwaveProvider", "verified_from_flutterwave"]

# Fin del archivo backend/app/modules/payments/providers/flutterwave_provider.py
