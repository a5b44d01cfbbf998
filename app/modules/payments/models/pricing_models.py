# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/pricing_models.py

Configuración regional de comisiones y tabla de tipos de cambio.

Autor: EventShot Payments
Fecha: 2025-11-21
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import BigInteger, Boolean, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, UTCDateTime, utcnow


class RegionConfig(Base):
    """Comisiones por región (código de país ISO-3166 alpha-2)."""

    __tablename__ = "region_configs"

    region_code: Mapped[str] = mapped_column(String(8), primary_key=True)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    platform_fee_percent: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(6, 4),
        nullable=True,
        doc="Piso regional de la comisión de plataforma (fracción, 0.15 = 15%).",
    )

    transaction_fee_percent: Mapped[Decimal] = mapped_column(Numeric(6, 4), nullable=False, default=Decimal("0"))
    transaction_fee_fixed: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class ExchangeRate(Base):
    __tablename__ = "exchange_rates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    from_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    to_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(18, 8), nullable=False)

    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("from_currency", "to_currency", name="uq_exchange_rates_pair"),
    )


__all__ = ["RegionConfig", "ExchangeRate"]

# Fin del archivo backend/app/modules/payments/models/pricing_models.py
