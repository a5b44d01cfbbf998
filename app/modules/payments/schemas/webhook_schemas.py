# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/schemas/webhook_schemas.py

Eventos de webhook normalizados.

Los adaptadores de cada proveedor convierten el JSON crudo en uno de
estos modelos (unión discriminada por `kind`); el despachador solo ve
estos tipos.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from app.modules.payments.enums import PaymentProvider


class _NormalizedBase(BaseModel):
    provider: PaymentProvider
    event_id: str = Field(description="Identidad del evento en el proveedor.")
    event_type: str
    occurred_at: Optional[datetime] = None


class PaymentSucceeded(_NormalizedBase):
    kind: Literal["payment_succeeded"] = "payment_succeeded"
    reference: Optional[str] = Field(default=None, description="Sesión/orden/tx_ref/reference del proveedor.")
    transaction_reference: Optional[str] = None
    provider_transaction_id: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None


class PaymentFailed(_NormalizedBase):
    kind: Literal["payment_failed"] = "payment_failed"
    reference: Optional[str] = None
    transaction_reference: Optional[str] = None
    reason: Optional[str] = None


class PaymentRefunded(_NormalizedBase):
    kind: Literal["payment_refunded"] = "payment_refunded"
    reference: Optional[str] = None
    transaction_reference: Optional[str] = None
    provider_transaction_id: Optional[str] = None
    refund_id: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None


class PayoutUpdated(_NormalizedBase):
    kind: Literal["payout_updated"] = "payout_updated"
    reference: str
    succeeded: bool
    reason: Optional[str] = None


class SubscriptionChanged(_NormalizedBase):
    kind: Literal["subscription_changed"] = "subscription_changed"
    external_subscription_id: Optional[str] = None
    checkout_session_id: Optional[str] = Field(
        default=None,
        description="Stripe checkout.session.completed en modo subscription: hay que leer la suscripción.",
    )
    provider_status: Optional[str] = None
    external_plan_id: Optional[str] = None
    external_customer_id: Optional[str] = None
    currency: Optional[str] = None
    amount_cents: Optional[int] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: Optional[bool] = None
    canceled_at: Optional[datetime] = None
    manual_renewal: bool = Field(default=False, description="Flutterwave/Paystack sin cobro recurrente nativo.")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AccountUpdated(_NormalizedBase):
    kind: Literal["account_updated"] = "account_updated"
    account_id: str
    charges_enabled: bool = False
    payouts_enabled: bool = False


class Ignored(_NormalizedBase):
    kind: Literal["ignored"] = "ignored"
    reason: str = "unhandled_event_type"


NormalizedEvent = Annotated[
    Union[
        PaymentSucceeded,
        PaymentFailed,
        PaymentRefunded,
        PayoutUpdated,
        SubscriptionChanged,
        AccountUpdated,
        Ignored,
    ],
    Field(discriminator="kind"),
]

normalized_event_adapter: TypeAdapter[NormalizedEvent] = TypeAdapter(NormalizedEvent)


__all__ = [
    "PaymentSucceeded",
    "PaymentFailed",
    "PaymentRefunded",
    "PayoutUpdated",
    "SubscriptionChanged",
    "AccountUpdated",
    "Ignored",
    "NormalizedEvent",
    "normalized_event_adapter",
]

# Fin del archivo backend/app/modules/payments/schemas/webhook_schemas.py
