# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/idempotency_status_enum.py

Enum de estados del ledger de idempotencia.
Persistido como texto (columna VARCHAR): idempotency_status_enum.

Autor: EventShot Payments
Fecha: 20/11/2025 (ajustado)
"""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum

from app.shared.database.base import as_str_enum


class IdempotencyStatus(StrEnum):
    """Estado de un registro de idempotencia: processing -> completed | failed."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    __db_enum_name__ = "idempotency_status_enum"

    @classmethod
    def as_db_enum(cls) -> SAEnum:
        return as_str_enum(cls, name="idempotency_status_enum")


__all__ = ["IdempotencyStatus"]

# Fin del archivo backend/app/modules/payments/enums/idempotency_status_enum.py
