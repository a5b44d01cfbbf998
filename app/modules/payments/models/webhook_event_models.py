# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/webhook_event_models.py

Ledger de eventos webhook por (provider, provider_event_id).

Autor: EventShot Payments
Fecha: 2025-11-20
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, JSONType, UTCDateTime, utcnow
from app.modules.payments.enums import PaymentProvider, WebhookEventStatus


class WebhookEvent(Base):
    __tablename__ = "webhook_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    provider: Mapped[PaymentProvider] = mapped_column(PaymentProvider.as_db_enum(), nullable=False)

    provider_event_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="ID del evento en el proveedor o compuesto evento:referencia.",
    )

    event_type: Mapped[str] = mapped_column(String(120), nullable=False)

    signature_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    payload: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    status: Mapped[WebhookEventStatus] = mapped_column(
        WebhookEventStatus.as_db_enum(),
        nullable=False,
        default=WebhookEventStatus.CLAIMED,
    )

    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    claimed_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    processed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (
        UniqueConstraint("provider", "provider_event_id", name="uq_webhook_events_provider_event"),
    )

    def __repr__(self) -> str:  # pragma: no cover - representacional
        return f"<WebhookEvent {self.provider}:{self.provider_event_id} status={self.status}>"


__all__ = ["WebhookEvent"]

# Fin del archivo backend/app/modules/payments/models/webhook_event_models.py
