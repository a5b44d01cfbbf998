# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/event_models.py

Modelos ORM de eventos fotográficos y sus medios.

Solo se modelan las columnas que el checkout necesita: dueño (fotógrafo),
estado, moneda/país y configuración de precio. El almacenamiento de los
archivos y el matching facial viven fuera de este servicio.

Autor: EventShot Payments
Fecha: 2025-11-20
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, JSONType, UTCDateTime, utcnow
from app.modules.payments.enums import EventStatus, PricingType


class Event(Base):
    """Evento publicado por un fotógrafo."""

    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    photographer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
        doc="Usuario dueño del evento (payee).",
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    status: Mapped[EventStatus] = mapped_column(
        EventStatus.as_db_enum(),
        nullable=False,
        default=EventStatus.DRAFT,
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="USD",
        doc="Moneda nativa en la que el fotógrafo fijó sus precios.",
    )

    country_code: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)

    pricing_type: Mapped[PricingType] = mapped_column(
        PricingType.as_db_enum(),
        nullable=False,
        default=PricingType.PER_PHOTO,
    )

    price_per_media: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
        doc="Precio por foto en unidades menores (per_photo).",
    )

    unlock_all_price: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
        doc="Precio fijo para desbloquear todo el evento.",
    )

    bulk_tiers: Mapped[Optional[list]] = mapped_column(
        JSONType,
        nullable=True,
        doc="Lista de tiers {min_photos, max_photos|null, price} (bulk).",
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Event id={self.id} status={self.status}>"


class Media(Base):
    """Foto perteneciente a un evento."""

    __tablename__ = "media"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    event_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    storage_key: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)


__all__ = ["Event", "Media"]

# Fin del archivo backend/app/modules/payments/models/event_models.py
