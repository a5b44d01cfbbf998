# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/journal_entry_type_enum.py

Enum de tipos de asiento del diario financiero.
Persistido como texto (columna VARCHAR): journal_entry_type_enum.

Autor: EventShot Payments
Fecha: 20/11/2025 (ajustado)
"""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum

from app.shared.database.base import as_str_enum


class JournalEntryType(StrEnum):
    """Tipo de asiento contable de una transacción."""

    GROSS = "gross"
    PLATFORM_FEE = "platform_fee"
    PROVIDER_FEE = "provider_fee"
    TRANSACTION_FEE = "transaction_fee"
    NET = "net"
    REFUND = "refund"

    __db_enum_name__ = "journal_entry_type_enum"

    @classmethod
    def as_db_enum(cls) -> SAEnum:
        return as_str_enum(cls, name="journal_entry_type_enum")


__all__ = ["JournalEntryType"]

# Fin del archivo backend/app/modules/payments/enums/journal_entry_type_enum.py
