# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/subscription_plan_models.py

Catálogo de planes internos y su mapeo a planes recurrentes de cada
proveedor.

`regional_prices` tiene la forma {"GHS": {"monthly": 15000, "annual": 150000}}.

Autor: EventShot Payments
Fecha: 2025-11-21
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, JSONType, UTCDateTime, utcnow
from app.modules.payments.enums import BillingCycle, PaymentProvider, SubscriptionScope


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    code: Mapped[str] = mapped_column(String(64), nullable=False)
    scope: Mapped[SubscriptionScope] = mapped_column(SubscriptionScope.as_db_enum(), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)

    price_usd_monthly: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    price_usd_annual: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    regional_prices: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("code", "scope", name="uq_subscription_plans_code_scope"),
    )

    def usd_price(self, cycle: BillingCycle) -> int:
        return self.price_usd_annual if cycle == BillingCycle.ANNUAL else self.price_usd_monthly

    def regional_price(self, currency: str, cycle: BillingCycle) -> Optional[int]:
        entry = (self.regional_prices or {}).get(currency.upper())
        if not isinstance(entry, dict):
            return None
        value = entry.get(cycle.value)
        return int(value) if value is not None else None


class ProviderPlanMapping(Base):
    """Plan interno + ciclo + moneda + región -> id de plan/precio del proveedor."""

    __tablename__ = "provider_plan_mappings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    provider: Mapped[PaymentProvider] = mapped_column(PaymentProvider.as_db_enum(), nullable=False)
    scope: Mapped[SubscriptionScope] = mapped_column(SubscriptionScope.as_db_enum(), nullable=False)
    plan_code: Mapped[str] = mapped_column(String(64), nullable=False)
    billing_cycle: Mapped[str] = mapped_column(String(16), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    region_code: Mapped[str] = mapped_column(String(16), nullable=False, default="GLOBAL")

    provider_plan_id: Mapped[str] = mapped_column(String(255), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint(
            "provider", "scope", "plan_code", "billing_cycle", "currency", "region_code",
            name="uq_provider_plan_mappings_key",
        ),
    )


__all__ = ["SubscriptionPlan", "ProviderPlanMapping"]

# Fin del archivo backend/app/modules/payments/models/subscription_plan_models.py
