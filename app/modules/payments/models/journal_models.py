# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/journal_models.py

Diario financiero: un asiento por (transacción, tipo). Los reembolsos se
registran como asientos `refund` negativos; la fila original no se toca.

Autor: EventShot Payments
Fecha: 2025-11-21
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, UTCDateTime, utcnow
from app.modules.payments.enums import JournalEntryType


class JournalEntry(Base):
    __tablename__ = "financial_journal_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    transaction_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("transactions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    entry_type: Mapped[JournalEntryType] = mapped_column(JournalEntryType.as_db_enum(), nullable=False)

    amount: Mapped[int] = mapped_column(BigInteger, nullable=False, doc="Unidades menores, con signo.")
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("transaction_id", "entry_type", name="uq_journal_transaction_entry_type"),
    )


__all__ = ["JournalEntry"]

# Fin del archivo backend/app/modules/payments/models/journal_models.py
