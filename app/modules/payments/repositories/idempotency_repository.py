# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/idempotency_repository.py

Repositorio de idempotency_records.

Todas las transiciones son UPDATE condicionales de una sola fila:
- finalize: WHERE status = 'processing'
- reclaim:  WHERE status = 'failed' (reintento de fallas transitorias)

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.base import utcnow
from app.shared.database.repository import BaseRepository
from app.modules.payments.enums import IdempotencyStatus
from app.modules.payments.models import IdempotencyRecord


class IdempotencyRepository(BaseRepository[IdempotencyRecord]):
    def __init__(self) -> None:
        super().__init__(IdempotencyRecord)

    async def get_by_key(
        self,
        session: AsyncSession,
        scope: str,
        actor_id: str,
        key: str,
    ) -> Optional[IdempotencyRecord]:
        stmt = select(IdempotencyRecord).where(
            IdempotencyRecord.operation_scope == scope,
            IdempotencyRecord.actor_id == actor_id,
            IdempotencyRecord.idempotency_key == key,
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def touch(self, session: AsyncSession, record_id: uuid.UUID) -> None:
        stmt = (
            update(IdempotencyRecord)
            .where(IdempotencyRecord.id == record_id)
            .values(last_seen_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await session.execute(stmt)

    async def finalize(
        self,
        session: AsyncSession,
        record_id: uuid.UUID,
        status: IdempotencyStatus,
        response_code: int,
        response_body: str,
        transaction_id: Optional[uuid.UUID] = None,
    ) -> bool:
        now = utcnow()
        stmt = (
            update(IdempotencyRecord)
            .where(
                IdempotencyRecord.id == record_id,
                IdempotencyRecord.status == IdempotencyStatus.PROCESSING,
            )
            .values(
                status=status,
                response_code=response_code,
                response_body=response_body,
                transaction_id=transaction_id,
                updated_at=now,
                completed_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def reclaim_failed(self, session: AsyncSession, record_id: uuid.UUID) -> bool:
        """failed -> processing; solo un request concurrente lo logra."""
        now = utcnow()
        stmt = (
            update(IdempotencyRecord)
            .where(
                IdempotencyRecord.id == record_id,
                IdempotencyRecord.status == IdempotencyStatus.FAILED,
            )
            .values(
                status=IdempotencyStatus.PROCESSING,
                response_code=None,
                response_body=None,
                completed_at=None,
                updated_at=now,
                last_seen_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def list_stale_processing(
        self,
        session: AsyncSession,
        older_than: datetime,
        limit: int = 100,
    ) -> Sequence[IdempotencyRecord]:
        stmt = (
            select(IdempotencyRecord)
            .where(
                IdempotencyRecord.status == IdempotencyStatus.PROCESSING,
                IdempotencyRecord.updated_at < older_than,
            )
            .order_by(IdempotencyRecord.updated_at.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.scalars().all()


__all__ = ["IdempotencyRepository"]

# Fin del archivo backend/app/modules/payments/repositories/idempotency_repository.py
