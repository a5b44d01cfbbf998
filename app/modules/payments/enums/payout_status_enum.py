# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/payout_status_enum.py

Enum de estados de un payout al fotógrafo.
Persistido como texto (columna VARCHAR): payout_status_enum.

Autor: EventShot Payments
Fecha: 20/11/2025 (ajustado)
"""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum

from app.shared.database.base import as_str_enum


class PayoutStatus(StrEnum):
    """Estado de la transferencia al fotógrafo."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    __db_enum_name__ = "payout_status_enum"

    @classmethod
    def as_db_enum(cls) -> SAEnum:
        return as_str_enum(cls, name="payout_status_enum")


__all__ = ["PayoutStatus"]

# Fin del archivo backend/app/modules/payments/enums/payout_status_enum.py
