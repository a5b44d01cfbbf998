# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/transaction_repository.py

Repositorio de transacciones de compra de medios.

Responsabilidades:
- Búsqueda por sesión del proveedor, por referencia propia y por clave
  idempotente
- Transiciones condicionales pending -> succeeded | failed (una sola vez)

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.base import utcnow
from app.shared.database.repository import BaseRepository
from app.modules.payments.enums import PaymentProvider, TransactionStatus
from app.modules.payments.models import SESSION_COLUMN_BY_PROVIDER, Transaction


class TransactionRepository(BaseRepository[Transaction]):
    def __init__(self) -> None:
        super().__init__(Transaction)

    # -----------------------------------------------------------
    # Búsquedas
    # -----------------------------------------------------------
    async def get_by_session(
        self,
        session: AsyncSession,
        provider: PaymentProvider,
        session_id: str,
    ) -> Optional[Transaction]:
        """Transacción por id de sesión/orden/referencia del proveedor."""
        column = getattr(Transaction, SESSION_COLUMN_BY_PROVIDER[PaymentProvider(provider)])
        stmt = select(Transaction).where(column == session_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_by_reference(self, session: AsyncSession, reference: str) -> Optional[Transaction]:
        stmt = select(Transaction).where(Transaction.transaction_reference == reference)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_by_provider_transaction_id(
        self,
        session: AsyncSession,
        provider: PaymentProvider,
        provider_transaction_id: str,
    ) -> Optional[Transaction]:
        stmt = select(Transaction).where(
            Transaction.provider == provider,
            Transaction.provider_transaction_id == provider_transaction_id,
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_by_idempotency_key(
        self,
        session: AsyncSession,
        idempotency_key: str,
        created_after: Optional[datetime] = None,
    ) -> Optional[Transaction]:
        stmt = select(Transaction).where(Transaction.idempotency_key == idempotency_key)
        if created_after is not None:
            stmt = stmt.where(Transaction.created_at >= created_after)
        stmt = stmt.order_by(Transaction.created_at.desc())
        result = await session.execute(stmt)
        return result.scalars().first()

    # -----------------------------------------------------------
    # Transiciones de estado (condicionales, single-row)
    # -----------------------------------------------------------
    async def mark_succeeded(
        self,
        session: AsyncSession,
        transaction_id: uuid.UUID,
        *,
        provider_fee: int,
        net_amount: int,
        provider_transaction_id: Optional[str],
        metadata: Dict[str, Any],
    ) -> bool:
        """
        pending -> succeeded. Devuelve False si otra ruta ya lo transicionó.
        """
        now = utcnow()
        stmt = (
            update(Transaction)
            .where(
                Transaction.id == transaction_id,
                Transaction.status == TransactionStatus.PENDING,
            )
            .values(
                {
                    Transaction.status: TransactionStatus.SUCCEEDED,
                    Transaction.provider_fee: provider_fee,
                    Transaction.net_amount: net_amount,
                    Transaction.provider_transaction_id: provider_transaction_id,
                    Transaction.meta: metadata,
                    Transaction.completed_at: now,
                    Transaction.updated_at: now,
                }
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def mark_failed(
        self,
        session: AsyncSession,
        transaction_id: uuid.UUID,
        reason: Optional[str],
    ) -> bool:
        now = utcnow()
        stmt = (
            update(Transaction)
            .where(
                Transaction.id == transaction_id,
                Transaction.status == TransactionStatus.PENDING,
            )
            .values(
                status=TransactionStatus.FAILED,
                failure_reason=(reason or "payment_failed")[:500],
                completed_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def update_metadata(
        self,
        session: AsyncSession,
        transaction_id: uuid.UUID,
        metadata: Dict[str, Any],
    ) -> None:
        stmt = (
            update(Transaction)
            .where(Transaction.id == transaction_id)
            .values({Transaction.meta: metadata, Transaction.updated_at: utcnow()})
            .execution_options(synchronize_session=False)
        )
        await session.execute(stmt)


__all__ = ["TransactionRepository"]

# Fin del archivo backend/app/modules/payments/repositories/transaction_repository.py
