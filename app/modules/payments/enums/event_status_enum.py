# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/event_status_enum.py

Enum de estados de un evento fotográfico.
Persistido como texto (columna VARCHAR): event_status_enum.

Autor: EventShot Payments
Fecha: 20/11/2025 (ajustado)
"""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum

from app.shared.database.base import as_str_enum


class EventStatus(StrEnum):
    """Solo los eventos active son comprables."""

    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"
    ARCHIVED = "archived"

    __db_enum_name__ = "event_status_enum"

    @classmethod
    def as_db_enum(cls) -> SAEnum:
        return as_str_enum(cls, name="event_status_enum")


__all__ = ["EventStatus"]

# Fin del archivo backend/app/modules/payments/enums/event_status_enum.py
