# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/recurring_subscription_models.py

Registro canónico de suscripción recurrente (creator / attendee / vault).

Una fila por (owner_user_id, scope). Lo escriben el checkout de
suscripción (claim inicial), los webhooks y la verificación manual; todos
pasan por el mismo upsert condicional (ver services/recurring_sync.py),
que incrementa `version` en cada escritura aplicada.

Autor: EventShot Payments
Fecha: 2025-11-21
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, JSONType, UTCDateTime, utcnow
from app.modules.payments.enums import (
    BillingCycle,
    PaymentProvider,
    SubscriptionScope,
    SubscriptionStatus,
)


class RecurringSubscription(Base):
    __tablename__ = "recurring_subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    owner_user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    scope: Mapped[SubscriptionScope] = mapped_column(SubscriptionScope.as_db_enum(), nullable=False)

    plan_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    plan_code: Mapped[str] = mapped_column(String(64), nullable=False)

    billing_cycle: Mapped[BillingCycle] = mapped_column(
        BillingCycle.as_db_enum(),
        nullable=False,
        default=BillingCycle.MONTHLY,
    )

    provider: Mapped[Optional[PaymentProvider]] = mapped_column(PaymentProvider.as_db_enum(), nullable=True)

    external_subscription_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Null en modo de renovación manual (Flutterwave/Paystack sin plan).",
    )
    external_plan_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    external_customer_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    amount_cents: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    status: Mapped[SubscriptionStatus] = mapped_column(
        SubscriptionStatus.as_db_enum(),
        nullable=False,
        default=SubscriptionStatus.INCOMPLETE,
    )

    current_period_start: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    current_period_end: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    cancel_at_period_end: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    canceled_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    last_event_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
        doc="Timestamp del evento de proveedor más reciente aplicado.",
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    meta: Mapped[dict] = mapped_column("metadata", JSONType, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("owner_user_id", "scope", name="uq_recurring_subscriptions_owner_scope"),
        Index("ix_recurring_subscriptions_external", "provider", "external_subscription_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<RecurringSubscription owner={self.owner_user_id} scope={self.scope} "
            f"status={self.status} v={self.version}>"
        )


__all__ = ["RecurringSubscription"]

# Fin del archivo backend/app/modules/payments/models/recurring_subscription_models.py
