# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/user_payment_preference_models.py

Preferencias de pago por usuario: moneda, pasarela y país preferidos,
más el id de cliente de Stripe reutilizable en suscripciones.

Autor: EventShot Payments
Fecha: 2025-11-21
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, UTCDateTime, utcnow
from app.modules.payments.enums import PaymentProvider


class UserPaymentPreference(Base):
    __tablename__ = "user_payment_preferences"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)

    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    preferred_currency: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    preferred_gateway: Mapped[Optional[PaymentProvider]] = mapped_column(PaymentProvider.as_db_enum(), nullable=True)
    country_code: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)

    stripe_customer_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )


__all__ = ["UserPaymentPreference"]

# Fin del archivo backend/app/modules/payments/models/user_payment_preference_models.py
