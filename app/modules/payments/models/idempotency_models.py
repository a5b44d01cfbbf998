# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/idempotency_models.py

Ledger de idempotencia de operaciones con efectos (checkout, suscripciones).

- (operation_scope, actor_id, idempotency_key) es único.
- processing -> completed | failed, una sola vez (UPDATE condicional).
- response_body guarda el JSON ya serializado para replay byte a byte.

Autor: EventShot Payments
Fecha: 2025-11-21
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, UTCDateTime, utcnow
from app.modules.payments.enums import IdempotencyStatus


class IdempotencyRecord(Base):
    __tablename__ = "idempotency_records"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    operation_scope: Mapped[str] = mapped_column(String(64), nullable=False)
    actor_id: Mapped[str] = mapped_column(String(320), nullable=False)
    idempotency_key: Mapped[str] = mapped_column(String(255), nullable=False)

    request_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    status: Mapped[IdempotencyStatus] = mapped_column(
        IdempotencyStatus.as_db_enum(),
        nullable=False,
        default=IdempotencyStatus.PROCESSING,
    )

    response_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    response_body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    transaction_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    last_seen_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "operation_scope", "actor_id", "idempotency_key",
            name="uq_idempotency_records_scope_actor_key",
        ),
        Index("ix_idempotency_records_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<IdempotencyRecord scope={self.operation_scope} key={self.idempotency_key} status={self.status}>"


__all__ = ["IdempotencyRecord"]

# Fin del archivo backend/app/modules/payments/models/idempotency_models.py
