# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/entitlement_repository.py

Repositorio de entitlements (acceso a medios comprados) y asientos del
diario financiero.

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from __future__ import annotations

import uuid
from typing import Optional, Sequence, Set

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.modules.payments.enums import EntitlementType
from app.modules.payments.models import Entitlement, JournalEntry


def _payer_filter(attendee_id: Optional[uuid.UUID], payer_email: Optional[str]):
    clauses = []
    if attendee_id is not None:
        clauses.append(Entitlement.attendee_id == attendee_id)
    if payer_email:
        clauses.append(Entitlement.payer_email == payer_email.lower())
    return or_(*clauses)


class EntitlementRepository(BaseRepository[Entitlement]):
    def __init__(self) -> None:
        super().__init__(Entitlement)

    async def list_for_payer(
        self,
        session: AsyncSession,
        event_id: uuid.UUID,
        attendee_id: Optional[uuid.UUID],
        payer_email: Optional[str],
    ) -> Sequence[Entitlement]:
        """Entitlements del pagador (usuario o email invitado) en el evento."""
        if attendee_id is None and not payer_email:
            return []
        stmt = select(Entitlement).where(
            Entitlement.event_id == event_id,
            _payer_filter(attendee_id, payer_email),
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def owned_media(
        self,
        session: AsyncSession,
        event_id: uuid.UUID,
        attendee_id: Optional[uuid.UUID],
        payer_email: Optional[str],
    ) -> tuple[bool, Set[uuid.UUID]]:
        """(tiene_bulk, media_ids con entitlement single)."""
        has_bulk = False
        media: Set[uuid.UUID] = set()
        for ent in await self.list_for_payer(session, event_id, attendee_id, payer_email):
            if ent.entitlement_type == EntitlementType.BULK:
                has_bulk = True
            elif ent.media_id is not None:
                media.add(ent.media_id)
        return has_bulk, media

    async def existing_grant_keys(self, session: AsyncSession, grant_keys: Sequence[str]) -> Set[str]:
        if not grant_keys:
            return set()
        stmt = select(Entitlement.grant_key).where(Entitlement.grant_key.in_(list(grant_keys)))
        return set((await session.execute(stmt)).scalars().all())

    async def list_by_transaction(self, session: AsyncSession, transaction_id: uuid.UUID) -> Sequence[Entitlement]:
        stmt = select(Entitlement).where(Entitlement.transaction_id == transaction_id)
        return (await session.execute(stmt)).scalars().all()


class JournalRepository(BaseRepository[JournalEntry]):
    def __init__(self) -> None:
        super().__init__(JournalEntry)

    async def existing_types(self, session: AsyncSession, transaction_id: uuid.UUID) -> Set[str]:
        stmt = select(JournalEntry.entry_type).where(JournalEntry.transaction_id == transaction_id)
        return {str(t) for t in (await session.execute(stmt)).scalars().all()}


__all__ = ["EntitlementRepository", "JournalRepository"]

# Fin del archivo backend/app/modules/payments/repositories/entitlement_repository.py
