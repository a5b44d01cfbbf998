# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/wallet_repository.py

Repositorio de wallets (cuentas de cobro del fotógrafo) y payouts.

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from typing import Optional, Sequence
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.modules.payments.enums import PaymentProvider, WalletStatus
from app.modules.payments.models import Payout, Wallet


class WalletRepository(BaseRepository[Wallet]):
    def __init__(self) -> None:
        super().__init__(Wallet)

    async def list_active(self, session: AsyncSession, photographer_id: uuid.UUID) -> Sequence[Wallet]:
        stmt = select(Wallet).where(
            Wallet.photographer_id == photographer_id,
            Wallet.status == WalletStatus.ACTIVE,
        )
        result = await session.execute(stmt)
        return [w for w in result.scalars().all() if w.is_usable]

    async def get_active_for_provider(
        self,
        session: AsyncSession,
        photographer_id: uuid.UUID,
        provider: PaymentProvider,
    ) -> Optional[Wallet]:
        for wallet in await self.list_active(session, photographer_id):
            if wallet.provider == provider:
                return wallet
        return None

    async def get_by_account_id(
        self,
        session: AsyncSession,
        provider: PaymentProvider,
        account_id: str,
    ) -> Optional[Wallet]:
        stmt = select(Wallet).where(Wallet.provider == provider, Wallet.account_id == account_id)
        result = await session.execute(stmt)
        return result.scalars().first()


class PayoutRepository(BaseRepository[Payout]):
    def __init__(self) -> None:
        super().__init__(Payout)

    async def get_by_reference(
        self,
        session: AsyncSession,
        provider: PaymentProvider,
        reference: str,
    ) -> Optional[Payout]:
        stmt = select(Payout).where(Payout.provider == provider, Payout.provider_reference == reference)
        result = await session.execute(stmt)
        return result.scalars().first()


__all__ = ["WalletRepository", "PayoutRepository"]

# Fin del archivo backend/app/modules/payments/repositories/wallet_repository.py
