# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/subscription_repository.py

Repositorios del dominio de suscripciones recurrentes:
- RecurringSubscriptionRepository: registro canónico por (usuario, scope)
- SubscriptionPlanRepository: catálogo de planes internos
- ProviderPlanMappingRepository: plan interno -> id de plan del proveedor
- PaymentPreferenceRepository: preferencias de moneda/pasarela y customer Stripe

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.modules.payments.enums import PaymentProvider, SubscriptionScope
from app.modules.payments.models import (
    ProviderPlanMapping,
    RecurringSubscription,
    SubscriptionPlan,
    UserPaymentPreference,
)


class RecurringSubscriptionRepository(BaseRepository[RecurringSubscription]):
    def __init__(self) -> None:
        super().__init__(RecurringSubscription)

    async def get_for_owner(
        self,
        session: AsyncSession,
        owner_user_id: uuid.UUID,
        scope: SubscriptionScope,
    ) -> Optional[RecurringSubscription]:
        stmt = select(RecurringSubscription).where(
            RecurringSubscription.owner_user_id == owner_user_id,
            RecurringSubscription.scope == scope,
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_by_external_id(
        self,
        session: AsyncSession,
        provider: PaymentProvider,
        external_subscription_id: str,
    ) -> Optional[RecurringSubscription]:
        stmt = (
            select(RecurringSubscription)
            .where(
                RecurringSubscription.provider == provider,
                RecurringSubscription.external_subscription_id == external_subscription_id,
            )
            .order_by(RecurringSubscription.updated_at.desc())
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def conditional_update(
        self,
        session: AsyncSession,
        record_id: uuid.UUID,
        expected_version: int,
        values: Dict[Any, Any],
        *,
        incoming_period_end: Optional[datetime] = None,
        incoming_event_at: Optional[datetime] = None,
    ) -> bool:
        """
        Compare-and-set de una sola fila.

        WHERE id = :id AND version = :expected
          AND (current_period_end IS NULL OR current_period_end <= :incoming_period_end)
          AND (last_event_at IS NULL OR last_event_at <= :incoming_event_at)

        Un valor entrante None omite su guarda.
        """
        conditions = [
            RecurringSubscription.id == record_id,
            RecurringSubscription.version == expected_version,
        ]
        if incoming_period_end is not None:
            conditions.append(
                or_(
                    RecurringSubscription.current_period_end.is_(None),
                    RecurringSubscription.current_period_end <= incoming_period_end,
                )
            )
        if incoming_event_at is not None:
            conditions.append(
                or_(
                    RecurringSubscription.last_event_at.is_(None),
                    RecurringSubscription.last_event_at <= incoming_event_at,
                )
            )
        stmt = (
            update(RecurringSubscription)
            .where(*conditions)
            .values(values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1


class SubscriptionPlanRepository(BaseRepository[SubscriptionPlan]):
    def __init__(self) -> None:
        super().__init__(SubscriptionPlan)

    async def get_active(
        self,
        session: AsyncSession,
        code: str,
        scope: SubscriptionScope,
    ) -> Optional[SubscriptionPlan]:
        stmt = select(SubscriptionPlan).where(
            SubscriptionPlan.code == code,
            SubscriptionPlan.scope == scope,
            SubscriptionPlan.is_active.is_(True),
        )
        result = await session.execute(stmt)
        return result.scalars().first()


class ProviderPlanMappingRepository(BaseRepository[ProviderPlanMapping]):
    def __init__(self) -> None:
        super().__init__(ProviderPlanMapping)

    async def list_candidates(
        self,
        session: AsyncSession,
        provider: PaymentProvider,
        scope: SubscriptionScope,
        plan_codes: Sequence[str],
        billing_cycles: Sequence[str],
    ) -> Sequence[ProviderPlanMapping]:
        """Mapeos activos del proveedor para cualquiera de los alias/ciclos dados."""
        stmt = select(ProviderPlanMapping).where(
            ProviderPlanMapping.provider == provider,
            ProviderPlanMapping.scope == scope,
            ProviderPlanMapping.plan_code.in_(list(plan_codes)),
            ProviderPlanMapping.billing_cycle.in_(list(billing_cycles)),
            ProviderPlanMapping.is_active.is_(True),
        )
        result = await session.execute(stmt)
        return result.scalars().all()


class PaymentPreferenceRepository(BaseRepository[UserPaymentPreference]):
    def __init__(self) -> None:
        super().__init__(UserPaymentPreference)

    async def get_or_create(self, session: AsyncSession, user_id: uuid.UUID) -> UserPaymentPreference:
        pref = await session.get(UserPaymentPreference, user_id)
        if pref is None:
            pref = await self.create(session, user_id=user_id)
        return pref


__all__ = [
    "RecurringSubscriptionRepository",
    "SubscriptionPlanRepository",
    "ProviderPlanMappingRepository",
    "PaymentPreferenceRepository",
]

# Fin del archivo backend/app/modules/payments/repositories/subscription_repository.py
