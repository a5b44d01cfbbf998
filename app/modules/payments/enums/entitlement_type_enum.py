# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/entitlement_type_enum.py

Enum de tipos de entitlement.
Persistido como texto (columna VARCHAR): entitlement_type_enum.

Autor: EventShot Payments
Fecha: 20/11/2025 (ajustado)
"""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum

from app.shared.database.base import as_str_enum


class EntitlementType(StrEnum):
    """single: un media; bulk: todo el evento."""

    SINGLE = "single"
    BULK = "bulk"

    __db_enum_name__ = "entitlement_type_enum"

    @classmethod
    def as_db_enum(cls) -> SAEnum:
        return as_str_enum(cls, name="entitlement_type_enum")


__all__ = ["EntitlementType"]

# Fin del archivo backend/app/modules/payments/enums/entitlement_type_enum.py
