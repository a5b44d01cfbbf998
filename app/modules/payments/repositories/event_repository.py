# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/event_repository.py

Repositorio de eventos y medios (lectura para checkout).

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from __future__ import annotations

import uuid
from typing import Optional, Sequence, Set

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.modules.payments.enums import EventStatus
from app.modules.payments.models import Event, Media


class EventRepository(BaseRepository[Event]):
    def __init__(self) -> None:
        super().__init__(Event)

    async def get_active(self, session: AsyncSession, event_id: uuid.UUID) -> Optional[Event]:
        """Evento solo si está activo; drafts/cerrados no son comprables."""
        stmt = select(Event).where(Event.id == event_id, Event.status == EventStatus.ACTIVE)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def media_ids_in_event(
        self,
        session: AsyncSession,
        event_id: uuid.UUID,
        media_ids: Sequence[uuid.UUID],
    ) -> Set[uuid.UUID]:
        """Subconjunto de media_ids que pertenecen al evento."""
        if not media_ids:
            return set()
        stmt = select(Media.id).where(Media.event_id == event_id, Media.id.in_(list(media_ids)))
        result = await session.execute(stmt)
        return set(result.scalars().all())

    async def count_media(self, session: AsyncSession, event_id: uuid.UUID) -> int:
        stmt = select(func.count(Media.id)).where(Media.event_id == event_id)
        return int((await session.execute(stmt)).scalar_one())


__all__ = ["EventRepository"]

# Fin del archivo backend/app/modules/payments/repositories/event_repository.py
