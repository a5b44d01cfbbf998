# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/subscription_status_enum.py

Enum de estados canónicos de suscripción.
El ámbito vault usa la grafía "cancelled"; creator y attendee usan "canceled".
Persistido como texto (columna VARCHAR): subscription_status_enum.

Autor: EventShot Payments
Fecha: 20/11/2025 (ajustado)
"""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum

from app.shared.database.base import as_str_enum


class SubscriptionStatus(StrEnum):
    """Estado canónico local de una suscripción recurrente."""

    INCOMPLETE = "incomplete"
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    CANCELLED = "cancelled"

    __db_enum_name__ = "subscription_status_enum"

    @classmethod
    def as_db_enum(cls) -> SAEnum:
        return as_str_enum(cls, name="subscription_status_enum")

    @property
    def is_terminal(self) -> bool:
        return self in (SubscriptionStatus.CANCELED, SubscriptionStatus.CANCELLED)


__all__ = ["SubscriptionStatus"]

# Fin del archivo backend/app/modules/payments/enums/subscription_status_enum.py
