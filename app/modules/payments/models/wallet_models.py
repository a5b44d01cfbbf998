# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/wallet_models.py

Cuentas de cobro (wallets) de los fotógrafos por pasarela.

`account_id` guarda la referencia del proveedor usada para dividir el cobro:
- stripe: cuenta Connect (acct_...)
- paypal: merchant id del vendedor
- flutterwave: id de subcuenta
- paystack: código de subcuenta (ACCT_...)

Autor: EventShot Payments
Fecha: 2025-11-21
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, UTCDateTime, utcnow
from app.modules.payments.enums import PaymentProvider, WalletStatus


class Wallet(Base):
    __tablename__ = "wallets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    photographer_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    provider: Mapped[PaymentProvider] = mapped_column(
        PaymentProvider.as_db_enum(),
        nullable=False,
    )

    status: Mapped[WalletStatus] = mapped_column(
        WalletStatus.as_db_enum(),
        nullable=False,
        default=WalletStatus.PENDING,
    )

    account_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        doc="Referencia de la cuenta/subcuenta en el proveedor.",
    )

    charges_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payouts_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint("photographer_id", "provider", name="uq_wallets_photographer_provider"),
    )

    @property
    def is_usable(self) -> bool:
        """Activa y con referencia de cuenta en el proveedor."""
        return self.status == WalletStatus.ACTIVE and bool(self.account_id)

    def __repr__(self) -> str:
        return f"<Wallet id={self.id} provider={self.provider} status={self.status}>"


__all__ = ["Wallet"]

# Fin del archivo backend/app/modules/payments/models/wallet_models.py
