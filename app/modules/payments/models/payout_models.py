# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/payout_models.py

Transferencias (payouts) a fotógrafos. Los webhooks transfer.* de
Flutterwave/Paystack actualizan su estado.

Autor: EventShot Payments
Fecha: 2025-11-21
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, UTCDateTime, utcnow
from app.modules.payments.enums import PaymentProvider, PayoutStatus


class Payout(Base):
    __tablename__ = "payouts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    wallet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("wallets.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    provider: Mapped[PaymentProvider] = mapped_column(PaymentProvider.as_db_enum(), nullable=False)

    provider_reference: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        doc="Referencia de la transferencia en el proveedor.",
    )

    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    status: Mapped[PayoutStatus] = mapped_column(
        PayoutStatus.as_db_enum(),
        nullable=False,
        default=PayoutStatus.PENDING,
    )

    failure_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)


__all__ = ["Payout"]

# Fin del archivo backend/app/modules/payments/models/payout_models.py
