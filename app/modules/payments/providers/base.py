# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/providers/base.py

Contrato común de los adaptadores de pasarela.

Los adaptadores traducen entre los DTOs de este módulo y la API de cada
proveedor. Nada de JSON crudo del proveedor sale de esta capa salvo en
`raw`, que solo se usa para logging/diagnóstico.

Montos siempre en unidades menores (centavos, kobo, pesewas...).

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================================
# Parámetros de entrada
# ============================================================================

@dataclass(frozen=True)
class PaymentCheckoutParams:
    """Checkout de compra única (modo payment)."""

    reference: str
    amount: int
    currency: str
    description: str
    success_url: str
    cancel_url: str
    customer_email: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    idempotency_key: Optional[str] = None
    connected_account_id: Optional[str] = None
    application_fee_amount: Optional[int] = None


@dataclass(frozen=True)
class SubscriptionCheckoutParams:
    """Checkout de suscripción recurrente."""

    reference: str
    plan_code: str
    plan_name: str
    billing_cycle: str
    amount: int
    currency: str
    success_url: str
    cancel_url: str
    provider_plan_id: Optional[str] = None
    customer_email: Optional[str] = None
    customer_id: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    idempotency_key: Optional[str] = None


# ============================================================================
# Resultados
# ============================================================================

@dataclass(frozen=True)
class CheckoutSession:
    provider: str
    session_id: str
    checkout_url: str


@dataclass(frozen=True)
class VerifiedPayment:
    """
    Estado de un pago según el proveedor (re-verificación).

    status: succeeded | failed | pending
    paid_at: momento del cobro según el proveedor (ancla de la renovación
    manual); None si el proveedor no lo informa.
    """

    provider: str
    reference: str
    status: str
    amount: Optional[int]
    currency: Optional[str]
    provider_transaction_id: Optional[str] = None
    provider_fee: Optional[int] = None
    paid_at: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


@dataclass(frozen=True)
class ProviderSubscription:
    """Suscripción tal como la reporta el proveedor."""

    provider: str
    external_subscription_id: Optional[str]
    status: Optional[str]
    external_plan_id: Optional[str] = None
    external_customer_id: Optional[str] = None
    currency: Optional[str] = None
    amount_cents: Optional[int] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: Optional[bool] = None
    canceled_at: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def parse_iso_timestamp(value: Any) -> Optional[datetime]:
    """ISO-8601 del proveedor (con o sin "Z") -> datetime UTC; None si no parsea."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


# ============================================================================
# Interfaz
# ============================================================================

class PaymentProviderClient(abc.ABC):
    """Operaciones que el orquestador y el reconciliador piden a una pasarela."""

    name: str = ""

    @abc.abstractmethod
    async def create_checkout(self, params: PaymentCheckoutParams) -> CheckoutSession:
        """Crea la sesión/orden de pago y devuelve la URL de checkout."""

    @abc.abstractmethod
    async def create_subscription_checkout(self, params: SubscriptionCheckoutParams) -> CheckoutSession:
        """Crea el checkout recurrente (plan mapeado o precio dinámico)."""

    @abc.abstractmethod
    async def verify_payment(self, reference: str) -> VerifiedPayment:
        """Consulta al proveedor el estado real de un pago."""

    @abc.abstractmethod
    async def fetch_subscription(self, reference: str) -> ProviderSubscription:
        """Estado de una suscripción (verificación manual)."""


__all__ = [
    "PaymentCheckoutParams",
    "SubscriptionCheckoutParams",
    "CheckoutSession",
    "VerifiedPayment",
    "ProviderSubscription",
    "PaymentProviderClient",
    "parse_iso_timestamp",
]

# Fin del archivo backend/app/modules/payments/providers/base.py
