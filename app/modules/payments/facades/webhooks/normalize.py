# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/webhooks/normalize.py

Normalización de payloads de webhook de las cuatro pasarelas.

Cada adaptador convierte el evento crudo en una variante de
NormalizedEvent (schemas/webhook_schemas.py). Los eventos que el
marketplace no usa se devuelven como `Ignored` y el ledger los marca
procesados sin efectos.

Identidad del evento:
- Stripe / PayPal: `id` del evento
- Flutterwave / Paystack: "<event>:<data.id o referencia>" (no envían id
  de evento propio)

Autor: EventShot Payments
Fecha: 2025-11-25
"""

from __future__ import annotations

import json
import logging
from decimal import InvalidOperation
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from app.modules.payments.enums import PaymentProvider
from app.modules.payments.facades.errors import WebhookNormalizationError
from app.modules.payments.providers.base import parse_iso_timestamp
from app.modules.payments.providers.paypal_provider import decode_custom_id, subscription_from_paypal
from app.modules.payments.providers.stripe_provider import from_timestamp, subscription_from_stripe
from app.modules.payments.schemas import (
    AccountUpdated,
    Ignored,
    NormalizedEvent,
    PaymentFailed,
    PaymentRefunded,
    PaymentSucceeded,
    PayoutUpdated,
    SubscriptionChanged,
)
from app.modules.payments.services.currency_service import to_minor_units

logger = logging.getLogger(__name__)


def _upper(value: Any) -> Optional[str]:
    return str(value).upper() if value else None


def _minor(value: Any, currency: Optional[str]) -> Optional[int]:
    if value in (None, "") or not currency:
        return None
    try:
        return to_minor_units(value, currency)
    except (InvalidOperation, ValueError):
        return None


def _subscription_fields(subscription: Any) -> Dict[str, Any]:
    """ProviderSubscription -> kwargs de SubscriptionChanged."""
    return {
        "external_subscription_id": subscription.external_subscription_id,
        "provider_status": subscription.status,
        "external_plan_id": subscription.external_plan_id,
        "external_customer_id": subscription.external_customer_id,
        "currency": subscription.currency,
        "amount_cents": subscription.amount_cents,
        "current_period_start": subscription.current_period_start,
        "current_period_end": subscription.current_period_end,
        "cancel_at_period_end": subscription.cancel_at_period_end,
        "canceled_at": subscription.canceled_at,
        "metadata": dict(subscription.metadata or {}),
    }


# =============================================================================
# STRIPE
# =============================================================================

def _stripe_invoice_subscription(invoice: Mapping[str, Any]) -> Optional[str]:
    sub = invoice.get("subscription")
    if sub:
        return sub if isinstance(sub, str) else sub.get("id")
    details = ((invoice.get("parent") or {}).get("subscription_details") or {})
    return details.get("subscription")


def _normalize_stripe(data: Dict[str, Any]) -> NormalizedEvent:
    if "type" not in data or "id" not in data:
        raise WebhookNormalizationError("Invalid Stripe webhook: missing 'type' or 'id'")

    event_type = data["type"]
    obj = (data.get("data") or {}).get("object") or {}
    base = {
        "provider": PaymentProvider.STRIPE,
        "event_id": data["id"],
        "event_type": event_type,
        "occurred_at": from_timestamp(data.get("created")),
    }
    metadata = dict(obj.get("metadata") or {})

    if event_type in ("checkout.session.completed", "checkout.session.async_payment_succeeded"):
        if obj.get("mode") == "subscription":
            return SubscriptionChanged(
                **base,
                external_subscription_id=obj.get("subscription"),
                checkout_session_id=obj.get("id"),
                external_customer_id=obj.get("customer"),
                metadata=metadata,
            )
        if obj.get("payment_status") not in ("paid", "no_payment_required"):
            return Ignored(**base, reason="payment_pending")
        return PaymentSucceeded(
            **base,
            reference=obj.get("id"),
            transaction_reference=metadata.get("transaction_reference") or obj.get("client_reference_id"),
            provider_transaction_id=obj.get("payment_intent"),
            amount=obj.get("amount_total"),
            currency=_upper(obj.get("currency")),
        )

    if event_type in ("checkout.session.async_payment_failed", "checkout.session.expired"):
        if obj.get("mode") == "subscription":
            return Ignored(**base, reason="subscription_checkout_not_completed")
        return PaymentFailed(
            **base,
            reference=obj.get("id"),
            transaction_reference=metadata.get("transaction_reference") or obj.get("client_reference_id"),
            reason=event_type.rsplit(".", 1)[-1],
        )

    if event_type == "charge.refunded":
        refunds = (obj.get("refunds") or {}).get("data") or []
        return PaymentRefunded(
            **base,
            transaction_reference=metadata.get("transaction_reference"),
            provider_transaction_id=obj.get("payment_intent"),
            refund_id=refunds[0].get("id") if refunds else None,
            amount=obj.get("amount_refunded"),
            currency=_upper(obj.get("currency")),
        )

    if event_type.startswith("customer.subscription."):
        return SubscriptionChanged(**base, **_subscription_fields(subscription_from_stripe(obj)))

    if event_type in ("invoice.paid", "invoice.payment_succeeded", "invoice.payment_failed"):
        subscription_id = _stripe_invoice_subscription(obj)
        if not subscription_id:
            return Ignored(**base, reason="invoice_without_subscription")
        lines = (obj.get("lines") or {}).get("data") or []
        period = (lines[0].get("period") or {}) if lines else {}
        paid = event_type != "invoice.payment_failed"
        return SubscriptionChanged(
            **base,
            external_subscription_id=subscription_id,
            external_customer_id=obj.get("customer"),
            provider_status="active" if paid else "past_due",
            currency=_upper(obj.get("currency")),
            amount_cents=obj.get("amount_paid") if paid else None,
            current_period_start=from_timestamp(period.get("start")) if paid else None,
            current_period_end=from_timestamp(period.get("end")) if paid else None,
        )

    if event_type == "account.updated":
        return AccountUpdated(
            **base,
            account_id=obj.get("id"),
            charges_enabled=bool(obj.get("charges_enabled")),
            payouts_enabled=bool(obj.get("payouts_enabled")),
        )

    if event_type in ("payout.paid", "payout.failed"):
        return PayoutUpdated(
            **base,
            reference=obj.get("id"),
            succeeded=event_type == "payout.paid",
            reason=obj.get("failure_message"),
        )

    return Ignored(**base)


# =============================================================================
# PAYPAL
# =============================================================================

def _paypal_capture_from_links(resource: Mapping[str, Any]) -> Optional[str]:
    for link in resource.get("links") or []:
        href = link.get("href") or ""
        if link.get("rel") == "up" and "/captures/" in href:
            return href.rstrip("/").rsplit("/", 1)[-1]
    return None


def _normalize_paypal(data: Dict[str, Any]) -> NormalizedEvent:
    if "event_type" not in data or "id" not in data:
        raise WebhookNormalizationError("Invalid PayPal webhook: missing 'event_type' or 'id'")

    event_type = data["event_type"]
    resource = data.get("resource") or {}
    base = {
        "provider": PaymentProvider.PAYPAL,
        "event_id": data["id"],
        "event_type": event_type,
        "occurred_at": parse_iso_timestamp(data.get("create_time")),
    }
    amount = resource.get("amount") or {}
    currency = _upper(amount.get("currency_code"))
    custom = decode_custom_id(resource.get("custom_id"))
    order_id = ((resource.get("supplementary_data") or {}).get("related_ids") or {}).get("order_id")

    if event_type == "CHECKOUT.ORDER.APPROVED":
        units = resource.get("purchase_units") or [{}]
        unit_amount = units[0].get("amount") or {}
        return PaymentSucceeded(
            **base,
            reference=resource.get("id"),
            transaction_reference=decode_custom_id(units[0].get("custom_id")).get("reference"),
            amount=_minor(unit_amount.get("value"), _upper(unit_amount.get("currency_code"))),
            currency=_upper(unit_amount.get("currency_code")),
        )

    if event_type == "PAYMENT.CAPTURE.COMPLETED":
        return PaymentSucceeded(
            **base,
            reference=order_id,
            transaction_reference=custom.get("reference"),
            provider_transaction_id=resource.get("id"),
            amount=_minor(amount.get("value"), currency),
            currency=currency,
        )

    if event_type in ("PAYMENT.CAPTURE.DENIED", "PAYMENT.CAPTURE.DECLINED"):
        return PaymentFailed(
            **base,
            reference=order_id,
            transaction_reference=custom.get("reference"),
            reason=(resource.get("status_details") or {}).get("reason") or "capture_denied",
        )

    if event_type == "PAYMENT.CAPTURE.REFUNDED":
        return PaymentRefunded(
            **base,
            transaction_reference=custom.get("reference"),
            provider_transaction_id=_paypal_capture_from_links(resource),
            refund_id=resource.get("id"),
            amount=_minor(amount.get("value"), currency),
            currency=currency,
        )

    if event_type.startswith("BILLING.SUBSCRIPTION."):
        fields = _subscription_fields(subscription_from_paypal(resource))
        if event_type == "BILLING.SUBSCRIPTION.PAYMENT.FAILED":
            fields["provider_status"] = "past_due"
        return SubscriptionChanged(**base, **fields)

    if event_type == "PAYMENT.SALE.COMPLETED":
        agreement = resource.get("billing_agreement_id")
        if not agreement:
            return Ignored(**base, reason="sale_without_subscription")
        total = resource.get("amount") or {}
        sale_currency = _upper(total.get("currency"))
        return SubscriptionChanged(
            **base,
            external_subscription_id=agreement,
            provider_status="active",
            currency=sale_currency,
            amount_cents=_minor(total.get("total"), sale_currency),
        )

    return Ignored(**base)


# =============================================================================
# FLUTTERWAVE
# =============================================================================

def _normalize_flutterwave(data: Dict[str, Any]) -> NormalizedEvent:
    event_type = data.get("event") or data.get("event.type")
    payload = data.get("data") or {}
    if not event_type or not isinstance(payload, dict):
        raise WebhookNormalizationError("Invalid Flutterwave webhook: missing 'event' or 'data'")

    tx_ref = payload.get("tx_ref") or payload.get("reference")
    identity = payload.get("id") or tx_ref
    if not identity:
        raise WebhookNormalizationError("Invalid Flutterwave webhook: missing data.id and tx_ref")

    base = {
        "provider": PaymentProvider.FLUTTERWAVE,
        "event_id": f"{event_type}:{identity}",
        "event_type": event_type,
        "occurred_at": parse_iso_timestamp(payload.get("created_at")),
    }
    meta = dict(data.get("meta_data") or payload.get("meta") or {})
    currency = _upper(payload.get("currency"))
    status = str(payload.get("status") or "").lower()

    if event_type == "charge.completed":
        if meta.get("scope"):
            if status != "successful":
                return Ignored(**base, reason="subscription_payment_not_successful")
            return SubscriptionChanged(
                **base,
                external_subscription_id=tx_ref,
                provider_status="successful",
                external_plan_id=meta.get("provider_plan_id"),
                currency=currency,
                amount_cents=_minor(payload.get("amount"), currency),
                manual_renewal=True,
                metadata=meta,
            )
        if status == "successful":
            return PaymentSucceeded(
                **base,
                reference=tx_ref,
                transaction_reference=tx_ref,
                provider_transaction_id=str(payload["id"]) if payload.get("id") else None,
                amount=_minor(payload.get("amount"), currency),
                currency=currency,
            )
        return PaymentFailed(
            **base,
            reference=tx_ref,
            transaction_reference=tx_ref,
            reason=payload.get("processor_response") or status or "failed",
        )

    if event_type == "transfer.completed":
        return PayoutUpdated(
            **base,
            reference=str(payload.get("reference") or identity),
            succeeded=status == "successful",
            reason=payload.get("complete_message"),
        )

    if event_type == "subscription.cancelled":
        return SubscriptionChanged(
            **base,
            external_subscription_id=str(payload.get("id")) if payload.get("id") else tx_ref,
            provider_status="cancelled",
            manual_renewal=True,
            metadata=meta,
        )

    return Ignored(**base)


# =============================================================================
# PAYSTACK
# =============================================================================

def _normalize_paystack(data: Dict[str, Any]) -> NormalizedEvent:
    event_type = data.get("event")
    payload = data.get("data") or {}
    if not event_type or not isinstance(payload, dict):
        raise WebhookNormalizationError("Invalid Paystack webhook: missing 'event' or 'data'")

    reference = payload.get("reference") or payload.get("transfer_code") or payload.get("subscription_code")
    identity = payload.get("id") or reference
    if not identity:
        raise WebhookNormalizationError("Invalid Paystack webhook: missing data.id and reference")

    base = {
        "provider": PaymentProvider.PAYSTACK,
        "event_id": f"{event_type}:{identity}",
        "event_type": event_type,
        "occurred_at": parse_iso_timestamp(payload.get("paid_at") or payload.get("created_at") or payload.get("createdAt")),
    }
    metadata = payload.get("metadata")
    meta = dict(metadata) if isinstance(metadata, dict) else {}
    currency = _upper(payload.get("currency"))
    amount = payload.get("amount")

    if event_type == "charge.success":
        if meta.get("scope"):
            return SubscriptionChanged(
                **base,
                external_subscription_id=reference,
                provider_status="success",
                external_plan_id=meta.get("provider_plan_id"),
                currency=currency,
                amount_cents=int(amount) if amount is not None else None,
                manual_renewal=True,
                metadata=meta,
            )
        return PaymentSucceeded(
            **base,
            reference=reference,
            transaction_reference=reference,
            provider_transaction_id=str(payload["id"]) if payload.get("id") else None,
            amount=int(amount) if amount is not None else None,
            currency=currency,
        )

    if event_type in ("transfer.success", "transfer.failed", "transfer.reversed"):
        return PayoutUpdated(
            **base,
            reference=str(payload.get("reference") or identity),
            succeeded=event_type == "transfer.success",
            reason=payload.get("reason") if event_type != "transfer.success" else None,
        )

    if event_type == "refund.processed":
        transaction_reference = payload.get("transaction_reference")
        return PaymentRefunded(
            **base,
            reference=transaction_reference,
            transaction_reference=transaction_reference,
            refund_id=str(payload.get("id") or payload.get("refund_reference") or ""),
            amount=int(amount) if amount is not None else None,
            currency=currency,
        )

    if event_type in ("subscription.disable", "subscription.not_renew", "invoice.payment_failed"):
        subscription = payload.get("subscription") or {}
        code = payload.get("subscription_code") or subscription.get("subscription_code")
        status = {
            "subscription.disable": "cancelled",
            "subscription.not_renew": "active",
            "invoice.payment_failed": "past_due",
        }[event_type]
        return SubscriptionChanged(
            **base,
            external_subscription_id=code,
            provider_status=status,
            cancel_at_period_end=True if event_type == "subscription.not_renew" else None,
            metadata=meta,
        )

    return Ignored(**base)


# =============================================================================
# PUNTO DE ENTRADA
# =============================================================================

_ADAPTERS: Dict[PaymentProvider, Callable[[Dict[str, Any]], NormalizedEvent]] = {
    PaymentProvider.STRIPE: _normalize_stripe,
    PaymentProvider.PAYPAL: _normalize_paypal,
    PaymentProvider.FLUTTERWAVE: _normalize_flutterwave,
    PaymentProvider.PAYSTACK: _normalize_paystack,
}


def parse_webhook_body(raw_body: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(raw_body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise WebhookNormalizationError(f"Invalid JSON payload: {e}") from e
    if not isinstance(data, dict):
        raise WebhookNormalizationError("Payload must be a JSON object")
    return data


def normalize_webhook_payload(provider: PaymentProvider, data: Dict[str, Any]) -> NormalizedEvent:
    """
    Raises:
        WebhookNormalizationError: payload sin la forma mínima del proveedor.
    """
    adapter = _ADAPTERS.get(PaymentProvider(provider))
    if adapter is None:
        raise WebhookNormalizationError(f"Unsupported provider: {provider}")
    try:
        event = adapter(data)
    except (ValidationError, AttributeError, TypeError) as e:
        logger.warning("[webhooks] %s payload could not be normalized: %s", provider, e)
        raise WebhookNormalizationError(f"Malformed {provider} webhook payload") from e
    logger.debug("[webhooks] %s %s -> %s", provider, event.event_type, event.kind)
    return event


__all__ = ["parse_webhook_body", "normalize_webhook_payload"]

# Fin del archivo backend/app/modules/payments/facades/webhooks/normalize.py
