# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/providers/paypal_provider.py

Adaptador de PayPal (REST v1/v2).

- Token OAuth client_credentials cacheado en memoria con TTL
  (expires_in - 60s). Cada réplica tiene su propio caché.
- Órdenes v2 (intent CAPTURE) para compras únicas.
- Billing Subscriptions v1 para planes recurrentes; PayPal no admite
  precio dinámico, así que exige plan_id mapeado.
- Verificación de firma de webhooks vía API oficial
  (/v1/notifications/verify-webhook-signature).

custom_id (máx. 127 chars) transporta la referencia propia y, en
suscripciones, scope|owner|plan|ciclo para poder reconciliar sin JSON.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple

from app.modules.payments.enums import PaymentProvider
from app.modules.payments.facades.errors import ProviderRequestError
from app.modules.payments.providers.base import (
    CheckoutSession,
    PaymentCheckoutParams,
    PaymentProviderClient,
    ProviderSubscription,
    SubscriptionCheckoutParams,
    VerifiedPayment,
)
from app.modules.payments.providers.http_client import request_json
from app.modules.payments.services.currency_service import to_major_units, to_minor_units
from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings

logger = logging.getLogger(__name__)

PROVIDER = PaymentProvider.PAYPAL.value
SANDBOX_BASE_URL = "https://api-m.sandbox.paypal.com"
LIVE_BASE_URL = "https://api-m.paypal.com"

CUSTOM_ID_FIELDS = ("reference", "scope", "owner_user_id", "plan_code", "billing_cycle")
CUSTOM_ID_SEPARATOR = "|"


# =============================================================================
# TOKEN CACHE (TTL-based, in-memory)
# =============================================================================

_paypal_token_cache: Dict[str, Tuple[str, float]] = {}


def _get_cached_token(cache_key: str) -> Optional[str]:
    """Retorna token si aún es válido, None si expiró o no existe."""
    if cache_key not in _paypal_token_cache:
        return None
    token, expires_at = _paypal_token_cache[cache_key]
    if time.time() >= expires_at:
        del _paypal_token_cache[cache_key]
        return None
    return token


def _set_cached_token(cache_key: str, token: str, expires_in: int) -> None:
    ttl = max(expires_in - 60, 60)
    _paypal_token_cache[cache_key] = (token, time.time() + ttl)


def _clear_token_cache() -> None:
    """Limpia cache de tokens (útil para tests)."""
    _paypal_token_cache.clear()


# =============================================================================
# custom_id
# =============================================================================

def encode_custom_id(metadata: Mapping[str, Any]) -> str:
    value = CUSTOM_ID_SEPARATOR.join(str(metadata.get(k) or "") for k in CUSTOM_ID_FIELDS)
    return value[:127]


def decode_custom_id(custom_id: Optional[str]) -> Dict[str, str]:
    if not custom_id:
        return {}
    parts = custom_id.split(CUSTOM_ID_SEPARATOR)
    if len(parts) == 1:
        return {"reference": parts[0]}
    return {k: v for k, v in zip(CUSTOM_ID_FIELDS, parts) if v}


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _approval_url(body: Mapping[str, Any]) -> Optional[str]:
    for link in body.get("links") or []:
        if link.get("rel") in ("approve", "payer-action"):
            return link.get("href")
    return None


class PayPalProvider(PaymentProviderClient):
    name = PROVIDER

    def __init__(self, settings: Optional[PaymentsSettings] = None) -> None:
        self.settings = settings or get_payments_settings()

    @property
    def base_url(self) -> str:
        return SANDBOX_BASE_URL if self.settings.paypal_mode == "sandbox" else LIVE_BASE_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    async def access_token(self) -> str:
        client_id = self.settings.paypal_client_id
        client_secret = self.settings.paypal_client_secret
        if not client_id or not client_secret:
            raise ProviderRequestError(PROVIDER, "PayPal is not configured")

        cache_key = f"{client_id}:{self.settings.paypal_mode}"
        cached = _get_cached_token(cache_key)
        if cached:
            return cached

        _, body = await request_json(
            PROVIDER,
            "POST",
            f"{self.base_url}/v1/oauth2/token",
            auth=(client_id, client_secret),
            data={"grant_type": "client_credentials"},
            headers={"Accept": "application/json"},
        )
        token = body.get("access_token")
        if not token:
            raise ProviderRequestError(PROVIDER, "PayPal did not return an access token")
        _set_cached_token(cache_key, token, int(body.get("expires_in", 3600)))
        logger.debug("PayPal access token obtenido y cacheado")
        return token

    async def _headers(self, request_id: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {await self.access_token()}",
            "Content-Type": "application/json",
        }
        if request_id:
            headers["PayPal-Request-Id"] = request_id
        return headers

    # ------------------------------------------------------------------
    # Órdenes
    # ------------------------------------------------------------------
    async def create_checkout(self, params: PaymentCheckoutParams) -> CheckoutSession:
        payload = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": params.reference,
                    "custom_id": params.reference,
                    "description": params.description[:127],
                    "amount": {
                        "currency_code": params.currency.upper(),
                        "value": str(to_major_units(params.amount, params.currency)),
                    },
                }
            ],
            "application_context": {
                "return_url": params.success_url,
                "cancel_url": params.cancel_url,
                "user_action": "PAY_NOW",
                "shipping_preference": "NO_SHIPPING",
            },
        }
        request_id = f"checkout:{params.idempotency_key}" if params.idempotency_key else None
        _, body = await request_json(
            PROVIDER,
            "POST",
            f"{self.base_url}/v2/checkout/orders",
            json=payload,
            headers=await self._headers(request_id),
        )
        url = _approval_url(body)
        if not body.get("id") or not url:
            raise ProviderRequestError(PROVIDER, "PayPal order has no approval link")
        logger.info("[paypal] order created id=%s reference=%s", body["id"], params.reference)
        return CheckoutSession(provider=PROVIDER, session_id=body["id"], checkout_url=url)

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        _, body = await request_json(
            PROVIDER, "GET", f"{self.base_url}/v2/checkout/orders/{order_id}", headers=await self._headers()
        )
        return body

    async def capture_order(self, order_id: str) -> Dict[str, Any]:
        # 422 ORDER_ALREADY_CAPTURED se resuelve releyendo la orden
        status, body = await request_json(
            PROVIDER,
            "POST",
            f"{self.base_url}/v2/checkout/orders/{order_id}/capture",
            headers=await self._headers(f"capture:{order_id}"),
            accept_statuses=(422,),
        )
        if status == 422:
            return await self.get_order(order_id)
        return body

    async def verify_payment(self, reference: str) -> VerifiedPayment:
        """
        Orden v2 -> VerifiedPayment. Una orden APPROVED se captura aquí.
        """
        order = await self.get_order(reference)
        if order.get("status") == "APPROVED":
            order = await self.capture_order(reference)

        units = order.get("purchase_units") or [{}]
        unit = units[0]
        captures = ((unit.get("payments") or {}).get("captures")) or []
        capture = captures[0] if captures else {}
        amount_block = capture.get("amount") or unit.get("amount") or {}
        currency = (amount_block.get("currency_code") or "").upper() or None

        order_status = order.get("status")
        capture_status = capture.get("status")
        if order_status == "COMPLETED" and capture_status in (None, "COMPLETED"):
            status = "succeeded"
        elif order_status == "VOIDED" or capture_status in ("DECLINED", "FAILED"):
            status = "failed"
        else:
            status = "pending"

        amount = to_minor_units(amount_block["value"], currency) if currency and amount_block.get("value") else None
        fee_block = (capture.get("seller_receivable_breakdown") or {}).get("paypal_fee") or {}
        fee = None
        if fee_block.get("value") and (fee_block.get("currency_code") or "").upper() == currency:
            fee = to_minor_units(Decimal(fee_block["value"]), currency)

        return VerifiedPayment(
            provider=PROVIDER,
            reference=reference,
            status=status,
            amount=amount,
            currency=currency,
            provider_transaction_id=capture.get("id"),
            provider_fee=fee,
            metadata=decode_custom_id(unit.get("custom_id")),
        )

    # ------------------------------------------------------------------
    # Suscripciones
    # ------------------------------------------------------------------
    async def create_subscription_checkout(self, params: SubscriptionCheckoutParams) -> CheckoutSession:
        if not params.provider_plan_id:
            raise ProviderRequestError(PROVIDER, "PayPal subscriptions require a mapped plan_id")

        payload: Dict[str, Any] = {
            "plan_id": params.provider_plan_id,
            "custom_id": encode_custom_id({**params.metadata, "reference": params.reference}),
            "application_context": {
                "return_url": params.success_url,
                "cancel_url": params.cancel_url,
                "user_action": "SUBSCRIBE_NOW",
                "shipping_preference": "NO_SHIPPING",
            },
        }
        if params.customer_email:
            payload["subscriber"] = {"email_address": params.customer_email}

        request_id = f"subscription:{params.idempotency_key}" if params.idempotency_key else None
        _, body = await request_json(
            PROVIDER,
            "POST",
            f"{self.base_url}/v1/billing/subscriptions",
            json=payload,
            headers=await self._headers(request_id),
        )
        url = _approval_url(body)
        if not body.get("id") or not url:
            raise ProviderRequestError(PROVIDER, "PayPal subscription has no approval link")
        logger.info("[paypal] subscription created id=%s plan=%s", body["id"], params.plan_code)
        return CheckoutSession(provider=PROVIDER, session_id=body["id"], checkout_url=url)

    async def fetch_subscription(self, reference: str) -> ProviderSubscription:
        _, body = await request_json(
            PROVIDER,
            "GET",
            f"{self.base_url}/v1/billing/subscriptions/{reference}",
            headers=await self._headers(),
        )
        return subscription_from_paypal(body)

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------
    async def verify_webhook_signature(self, headers: Mapping[str, str], payload: bytes) -> bool:
        """
        True solo si PayPal responde verification_status == "SUCCESS".

        Fail-closed: headers faltantes, configuración ausente o payload
        inválido devuelven False sin llamar a la API.
        """
        required = {
            "auth_algo": headers.get("paypal-auth-algo"),
            "cert_url": headers.get("paypal-cert-url"),
            "transmission_id": headers.get("paypal-transmission-id"),
            "transmission_sig": headers.get("paypal-transmission-sig"),
            "transmission_time": headers.get("paypal-transmission-time"),
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            logger.warning("PayPal webhook rechazado: faltan headers requeridos %s", missing)
            return False
        if not self.settings.paypal_webhook_id:
            logger.error("PayPal webhook rechazado: webhook_id no configurado")
            return False
        try:
            webhook_event = json.loads(payload.decode("utf-8"))
        except ValueError as e:
            logger.warning("PayPal webhook rechazado: payload no es JSON válido - %s", e)
            return False

        _, body = await request_json(
            PROVIDER,
            "POST",
            f"{self.base_url}/v1/notifications/verify-webhook-signature",
            json={**required, "webhook_id": self.settings.paypal_webhook_id, "webhook_event": webhook_event},
            headers=await self._headers(),
            accept_statuses=(400,),
        )
        verification_status = body.get("verification_status", "")
        if verification_status != "SUCCESS":
            logger.warning("PayPal webhook rechazado: verification_status = %s", verification_status)
            return False
        return True


def subscription_from_paypal(body: Mapping[str, Any]) -> ProviderSubscription:
    billing = body.get("billing_info") or {}
    last_payment = (billing.get("last_payment") or {}).get("amount") or {}
    currency = (last_payment.get("currency_code") or "").upper() or None
    amount = to_minor_units(last_payment["value"], currency) if currency and last_payment.get("value") else None
    status = (body.get("status") or "").lower() or None
    subscriber = body.get("subscriber") or {}

    return ProviderSubscription(
        provider=PROVIDER,
        external_subscription_id=body.get("id"),
        status=status,
        external_plan_id=body.get("plan_id"),
        external_customer_id=subscriber.get("payer_id"),
        currency=currency,
        amount_cents=amount,
        current_period_start=_parse_time(billing.get("last_payment", {}).get("time") or body.get("start_time")),
        current_period_end=_parse_time(billing.get("next_billing_time")),
        cancel_at_period_end=False if status == "active" else None,
        canceled_at=_parse_time(body.get("status_update_time")) if status == "cancelled" else None,
        metadata=decode_custom_id(body.get("custom_id")),
    )


__all__ = [
    "PayPalProvider",
    "encode_custom_id",
    "decode_custom_id",
    "subscription_from_paypal",
    "_clear_token_cache",
]

# Fin del archivo backend/app/modules/payments/providers/paypal_provider.py
