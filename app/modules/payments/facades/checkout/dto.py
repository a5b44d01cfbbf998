# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/checkout/dto.py

DTOs internos del orquestador de checkout.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from app.modules.payments.models import Event, Wallet
from app.modules.payments.services.fee_calculator import FeeCalculation
from app.modules.payments.services.gateway_selector import GatewaySelection


@dataclass(frozen=True)
class CheckoutActor:
    """Quien compra: usuario autenticado o invitado identificado por email."""

    user_id: Optional[uuid.UUID]
    email: Optional[str]

    @property
    def actor_id(self) -> str:
        if self.user_id is not None:
            return str(self.user_id)
        return f"guest:{self.email}"

    @property
    def is_guest(self) -> bool:
        return self.user_id is None


@dataclass
class CheckoutPlan:
    """Resultado de las validaciones (pasos 2-7), listo para crear la sesión."""

    event: Event
    wallet: Wallet
    selection: GatewaySelection
    fees: FeeCalculation
    media_ids: List[uuid.UUID]
    unlock_all: bool
    payer_email: Optional[str]


@dataclass
class CheckoutOutcome:
    """Respuesta HTTP final: body ya serializado (se replaya byte a byte)."""

    status_code: int
    body: str
    headers: Dict[str, str] = field(default_factory=dict)


__all__ = ["CheckoutActor", "CheckoutPlan", "CheckoutOutcome"]

# Fin del archivo backend/app/modules/payments/facades/checkout/dto.py
