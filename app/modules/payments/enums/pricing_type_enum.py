# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/pricing_type_enum.py

Enum de modelos de precio de un evento.
Persistido como texto (columna VARCHAR): pricing_type_enum.

Autor: EventShot Payments
Fecha: 20/11/2025 (ajustado)
"""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum

from app.shared.database.base import as_str_enum


class PricingType(StrEnum):
    """Modelo de precio configurado por el fotógrafo."""

    FREE = "free"
    PER_PHOTO = "per_photo"
    BULK = "bulk"

    __db_enum_name__ = "pricing_type_enum"

    @classmethod
    def as_db_enum(cls) -> SAEnum:
        return as_str_enum(cls, name="pricing_type_enum")


__all__ = ["PricingType"]

# Fin del archivo backend/app/modules/payments/enums/pricing_type_enum.py
