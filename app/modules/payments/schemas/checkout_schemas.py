# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/schemas/checkout_schemas.py

Contrato de POST /checkout (compra única de medios de un evento).

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator, model_validator

from app.modules.payments.enums import PaymentProvider
from app.modules.payments.schemas.common_schemas import CamelModel


class CheckoutRequest(CamelModel):
    """
    Request de checkout.

    Exactamente uno de `media_ids` (no vacío) o `unlock_all`.
    `idempotency_key` en el body está deprecado (usar el header
    Idempotency-Key); se acepta con un header Warning.
    """

    event_id: uuid.UUID = Field(description="Evento cuyos medios se compran.")
    media_ids: Optional[List[uuid.UUID]] = Field(
        default=None,
        description="Medios a desbloquear individualmente.",
    )
    unlock_all: bool = Field(default=False, description="Desbloquea todos los medios del evento.")
    provider: Optional[PaymentProvider] = Field(default=None, description="Pasarela explícita (opcional).")
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    customer_email: Optional[str] = Field(
        default=None,
        max_length=320,
        description="Obligatorio para compras de invitados.",
    )
    idempotency_key: Optional[str] = Field(default=None, max_length=255, description="[DEPRECATED]")

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v

    @field_validator("customer_email")
    @classmethod
    def _normalize_email(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("customerEmail must be a valid email address")
        return v

    @model_validator(mode="after")
    def _media_or_unlock_all(self) -> "CheckoutRequest":
        if self.unlock_all and self.media_ids:
            raise ValueError("Send either mediaIds or unlockAll, not both")
        if not self.unlock_all and not self.media_ids:
            raise ValueError("mediaIds must not be empty unless unlockAll is true")
        return self

    def unique_media_ids(self) -> List[uuid.UUID]:
        return sorted(set(self.media_ids or []), key=str)

    def normalized(self) -> Dict[str, Any]:
        """Forma estable usada para el hash de idempotencia."""
        return {
            "eventId": str(self.event_id),
            "mediaIds": [str(m) for m in self.unique_media_ids()],
            "unlockAll": self.unlock_all,
            "provider": self.provider.value if self.provider else None,
            "currency": self.currency,
            "customerEmail": self.customer_email,
        }


__all__ = ["CheckoutRequest"]

# Fin del archivo backend/app/modules/payments/schemas/checkout_schemas.py
