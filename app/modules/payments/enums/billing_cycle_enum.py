# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/billing_cycle_enum.py

Enum de ciclos de facturación.
Persistido como texto (columna VARCHAR): billing_cycle_enum.

Autor: EventShot Payments
Fecha: 20/11/2025 (ajustado)
"""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum

from app.shared.database.base import as_str_enum


class BillingCycle(StrEnum):
    """Ciclo de facturación de un plan recurrente."""

    MONTHLY = "monthly"
    ANNUAL = "annual"

    __db_enum_name__ = "billing_cycle_enum"

    @classmethod
    def as_db_enum(cls) -> SAEnum:
        return as_str_enum(cls, name="billing_cycle_enum")

    @classmethod
    def normalize(cls, value: object) -> "BillingCycle":
        """annual/yearly/annually/year -> ANNUAL; cualquier otro valor -> MONTHLY."""
        token = str(value or "").strip().lower()
        if token in ("annual", "yearly", "annually", "year"):
            return cls.ANNUAL
        return cls.MONTHLY


__all__ = ["BillingCycle"]

# Fin del archivo backend/app/modules/payments/enums/billing_cycle_enum.py
