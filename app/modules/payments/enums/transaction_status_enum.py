# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/transaction_status_enum.py

Enum de estados de una transacción de compra única.
Persistido como texto (columna VARCHAR): transaction_status_enum.

Autor: EventShot Payments
Fecha: 20/11/2025 (ajustado)
"""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum

from app.shared.database.base import as_str_enum


class TransactionStatus(StrEnum):
    """Estado de la transacción: pending -> succeeded | failed, una sola vez."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    __db_enum_name__ = "transaction_status_enum"

    @classmethod
    def as_db_enum(cls) -> SAEnum:
        return as_str_enum(cls, name="transaction_status_enum")


__all__ = ["TransactionStatus"]

# Fin del archivo backend/app/modules/payments/enums/transaction_status_enum.py
