# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/webhook_event_status_enum.py

Enum de estados del ledger de eventos webhook.
Persistido como texto (columna VARCHAR): webhook_event_status_enum.

Autor: EventShot Payments
Fecha: 20/11/2025 (ajustado)
"""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum

from app.shared.database.base import as_str_enum


class WebhookEventStatus(StrEnum):
    """Estado de procesamiento de un evento webhook."""

    CLAIMED = "claimed"
    PROCESSED = "processed"
    FAILED = "failed"

    __db_enum_name__ = "webhook_event_status_enum"

    @classmethod
    def as_db_enum(cls) -> SAEnum:
        return as_str_enum(cls, name="webhook_event_status_enum")


__all__ = ["WebhookEventStatus"]

# Fin del archivo backend/app/modules/payments/enums/webhook_event_status_enum.py
