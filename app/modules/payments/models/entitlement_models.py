# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/entitlement_models.py

Entitlements: acceso de un pagador a un media (single) o a todo un
evento (bulk). Se crean solo como efecto de una transacción que pasa a
succeeded; `grant_key` único evita duplicados ante webhooks repetidos.

Autor: EventShot Payments
Fecha: 2025-11-21
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, UTCDateTime, utcnow
from app.modules.payments.enums import EntitlementType


def build_grant_key(transaction_id: uuid.UUID, media_id: Optional[uuid.UUID]) -> str:
    """Clave de unicidad: '<transaction>:<media>' o '<transaction>:bulk'."""
    return f"{transaction_id}:{media_id if media_id is not None else 'bulk'}"


class Entitlement(Base):
    __tablename__ = "entitlements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    transaction_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("transactions.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    event_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )

    media_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("media.id", ondelete="CASCADE"),
        nullable=True,
    )

    attendee_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    payer_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)

    entitlement_type: Mapped[EntitlementType] = mapped_column(
        EntitlementType.as_db_enum(),
        nullable=False,
    )

    grant_key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_entitlements_event_attendee", "event_id", "attendee_id"),
        Index("ix_entitlements_event_email", "event_id", "payer_email"),
    )


__all__ = ["Entitlement", "build_grant_key"]

# Fin del archivo backend/app/modules/payments/models/entitlement_models.py
