# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/wallet_status_enum.py

Enum de estados de una cuenta de cobro (wallet) del fotógrafo.
Persistido como texto (columna VARCHAR): wallet_status_enum.

Autor: EventShot Payments
Fecha: 20/11/2025 (ajustado)
"""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum

from app.shared.database.base import as_str_enum


class WalletStatus(StrEnum):
    """Estado de onboarding de la cuenta de cobro."""

    PENDING = "pending"
    ACTIVE = "active"
    DISABLED = "disabled"

    __db_enum_name__ = "wallet_status_enum"

    @classmethod
    def as_db_enum(cls) -> SAEnum:
        return as_str_enum(cls, name="wallet_status_enum")


__all__ = ["WalletStatus"]

# Fin del archivo backend/app/modules/payments/enums/wallet_status_enum.py
