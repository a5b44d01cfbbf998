# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/subscription_scope_enum.py

Enum de ámbitos de suscripción recurrente.
Persistido como texto (columna VARCHAR): subscription_scope_enum.

Autor: EventShot Payments
Fecha: 20/11/2025 (ajustado)
"""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum

from app.shared.database.base import as_str_enum


class SubscriptionScope(StrEnum):
    """Ámbito (tipo de producto) de la suscripción recurrente."""

    CREATOR = "creator_subscription"
    ATTENDEE = "attendee_subscription"
    VAULT = "vault_subscription"

    __db_enum_name__ = "subscription_scope_enum"

    @classmethod
    def as_db_enum(cls) -> SAEnum:
        return as_str_enum(cls, name="subscription_scope_enum")


__all__ = ["SubscriptionScope"]

# Fin del archivo backend/app/modules/payments/enums/subscription_scope_enum.py
