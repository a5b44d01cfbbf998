# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/webhook_event_repository.py

Repositorio de webhook_events (ledger de eventos de proveedor).

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from typing import Optional
import uuid
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.base import utcnow
from app.shared.database.repository import BaseRepository
from app.modules.payments.enums import PaymentProvider, WebhookEventStatus
from app.modules.payments.models import WebhookEvent


class WebhookEventRepository(BaseRepository[WebhookEvent]):
    def __init__(self) -> None:
        super().__init__(WebhookEvent)

    async def get_by_identity(
        self,
        session: AsyncSession,
        provider: PaymentProvider,
        provider_event_id: str,
    ) -> Optional[WebhookEvent]:
        stmt = select(WebhookEvent).where(
            WebhookEvent.provider == provider,
            WebhookEvent.provider_event_id == provider_event_id,
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def reclaim(
        self,
        session: AsyncSession,
        event_id: uuid.UUID,
        stale_before: datetime,
    ) -> bool:
        """
        Vuelve a reclamar un evento `failed`, o `claimed` más viejo que
        stale_before (proceso caído a mitad).
        """
        updated = await self.update_where(
            session,
            WebhookEvent.id == event_id,
            or_(
                WebhookEvent.status == WebhookEventStatus.FAILED,
                (WebhookEvent.status == WebhookEventStatus.CLAIMED)
                & (WebhookEvent.claimed_at < stale_before),
            ),
            status=WebhookEventStatus.CLAIMED,
            claimed_at=utcnow(),
            attempts=WebhookEvent.attempts + 1,
            last_error=None,
        )
        return updated == 1

    async def mark(
        self,
        session: AsyncSession,
        event_id: uuid.UUID,
        status: WebhookEventStatus,
        error: Optional[str] = None,
    ) -> None:
        values = {"status": status, "last_error": error}
        if status == WebhookEventStatus.PROCESSED:
            values["processed_at"] = utcnow()
        await self.update_where(session, WebhookEvent.id == event_id, **values)


__all__ = ["WebhookEventRepository"]

# Fin del archivo backend/app/modules/payments/repositories/webhook_event_repository.py
