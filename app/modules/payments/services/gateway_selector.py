# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/gateway_selector.py

Selección de pasarela de pago por transacción.

Orden de resolución (el primero que aplica gana):
    0. Proveedor explícito en el request (debe estar configurado globalmente;
       la wallet de esa pasarela se valida después, en el checkout)
    1. Preferencia guardada del usuario, si está disponible
    2. Tabla país -> orden de pasarelas, intersectada con las disponibles
    3. Primera pasarela disponible por orden de configuración

Disponibles:
- Producto del fotógrafo (compra de medios): wallets activas del payee
  ∩ pasarelas configuradas.
- Producto de plataforma (suscripciones): pasarelas configuradas.

Fail-closed: si no hay candidata se lanza GatewaySelectionError; nunca se
devuelve una pasarela sin credenciales, ni una pasarela para un payee sin
wallets activas (aunque el proveedor venga explícito).

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import PaymentProvider, WalletStatus
from app.modules.payments.facades.errors import GatewaySelectionError
from app.modules.payments.models import Wallet
from app.shared.config.settings_payments import DEFAULT_GATEWAY_ORDER, PaymentsSettings

logger = logging.getLogger(__name__)


REASON_EXPLICIT = "explicit_request"
REASON_USER_PREFERENCE = "user_preference"
REASON_COUNTRY = "country_preference"
REASON_DEFAULT = "default_order"

PRODUCT_PAYEE = "payee"
PRODUCT_PLATFORM = "platform"

_AFRICA_FIRST: Tuple[str, ...] = ("flutterwave", "paystack", "stripe", "paypal")
_STRIPE_FIRST: Tuple[str, ...] = ("stripe", "paypal")

COUNTRY_GATEWAY_PREFERENCES: dict[str, Tuple[str, ...]] = {
    "GH": _AFRICA_FIRST,
    "NG": _AFRICA_FIRST,
    "KE": _AFRICA_FIRST,
    "UG": _AFRICA_FIRST,
    "TZ": _AFRICA_FIRST,
    "ZA": ("stripe", "paystack", "flutterwave", "paypal"),
    "US": _STRIPE_FIRST,
    "GB": _STRIPE_FIRST,
    "CA": _STRIPE_FIRST,
    "AU": _STRIPE_FIRST,
}
DEFAULT_COUNTRY_PREFERENCE: Tuple[str, ...] = _STRIPE_FIRST


@dataclass(frozen=True)
class GatewaySelectionContext:
    """Datos ya cargados del store sobre los que decide el selector."""

    configured_gateways: Sequence[str]
    product_type: str = PRODUCT_PAYEE
    payee_gateways: Sequence[str] = ()
    requested_gateway: Optional[str] = None
    user_preference: Optional[str] = None
    country_code: Optional[str] = None
    currency: Optional[str] = None


@dataclass(frozen=True)
class GatewaySelection:
    gateway: str
    reason: str
    available_gateways: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "gateway": self.gateway,
            "reason": self.reason,
            "availableGateways": list(self.available_gateways),
        }


def _dedupe(values: Iterable[Optional[str]]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def _normalize(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = str(value).strip().lower()
    return value or None


def country_preference(country_code: Optional[str]) -> Tuple[str, ...]:
    if not country_code:
        return DEFAULT_COUNTRY_PREFERENCE
    return COUNTRY_GATEWAY_PREFERENCES.get(country_code.strip().upper(), DEFAULT_COUNTRY_PREFERENCE)


def select_gateway(context: GatewaySelectionContext) -> GatewaySelection:
    """
    Resuelve la pasarela a usar. Función pura: no toca el store.

    Raises:
        GatewaySelectionError: no_gateway_configured (503),
            gateway_not_configured (503) o no_payment_account (400).
    """
    configured = _dedupe(
        gw for gw in (_normalize(g) for g in DEFAULT_GATEWAY_ORDER)
        if gw in {_normalize(c) for c in context.configured_gateways}
    )
    if not configured:
        raise GatewaySelectionError(
            "no_gateway_configured",
            "No payment gateway is configured on this platform",
            status_code=503,
        )

    if context.product_type == PRODUCT_PAYEE:
        payee = {_normalize(g) for g in context.payee_gateways}
        available = [gw for gw in configured if gw in payee]
    else:
        available = list(configured)

    requested = _normalize(context.requested_gateway)
    if requested and requested not in configured:
        raise GatewaySelectionError(
            "gateway_not_configured",
            f"Payment gateway '{requested}' is not configured",
            status_code=503,
            requestedGateway=requested,
        )

    if not available:
        # También con proveedor explícito: un payee sin cuentas activas
        # nunca recibe una pasarela
        raise GatewaySelectionError(
            "no_payment_account",
            "The photographer has no active payment account",
            status_code=400,
        )

    if requested:
        return GatewaySelection(
            gateway=requested,
            reason=REASON_EXPLICIT,
            available_gateways=_dedupe([requested, *available]),
        )

    preference = _normalize(context.user_preference)
    if preference and preference in available:
        return GatewaySelection(preference, REASON_USER_PREFERENCE, _dedupe(available))

    for candidate in country_preference(context.country_code):
        if candidate in available:
            return GatewaySelection(candidate, REASON_COUNTRY, _dedupe(available))

    return GatewaySelection(available[0], REASON_DEFAULT, _dedupe(available))


async def load_payee_gateways(session: AsyncSession, photographer_id: uuid.UUID) -> List[str]:
    """Pasarelas de las wallets activas del fotógrafo."""
    stmt = select(Wallet).where(
        Wallet.photographer_id == photographer_id,
        Wallet.status == WalletStatus.ACTIVE,
    )
    wallets = (await session.execute(stmt)).scalars().all()
    return _dedupe(PaymentProvider(w.provider).value for w in wallets if w.is_usable)


def build_context(
    settings: PaymentsSettings,
    *,
    product_type: str,
    payee_gateways: Sequence[str] = (),
    requested_gateway: Optional[str] = None,
    user_preference: Optional[str] = None,
    country_code: Optional[str] = None,
    currency: Optional[str] = None,
) -> GatewaySelectionContext:
    return GatewaySelectionContext(
        configured_gateways=settings.configured_gateways(),
        product_type=product_type,
        payee_gateways=tuple(payee_gateways),
        requested_gateway=requested_gateway,
        user_preference=user_preference,
        country_code=country_code,
        currency=currency,
    )


__all__ = [
    "REASON_EXPLICIT",
    "REASON_USER_PREFERENCE",
    "REASON_COUNTRY",
    "REASON_DEFAULT",
    "PRODUCT_PAYEE",
    "PRODUCT_PLATFORM",
    "COUNTRY_GATEWAY_PREFERENCES",
    "GatewaySelectionContext",
    "GatewaySelection",
    "country_preference",
    "select_gateway",
    "load_payee_gateways",
    "build_context",
]

# Fin del archivo backend/app/modules/payments/services/gateway_selector.py
