# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/fee_calculator.py

Cálculo de comisiones de una compra de medios.

Todos los montos son enteros en unidades menores (centavos, pesewas, kobo).
La aritmética se hace con Decimal y redondeo ROUND_HALF_UP; nunca con float.

Componentes:
- platform_fee: tasa según el plan del fotógrafo; una región activa puede
  subirla (max(plan, región)), nunca bajarla.
- transaction_fee: porcentaje + fijo de la región.
- provider_fee: tabla por pasarela (Stripe además por moneda).
- net_amount: max(0, gross - fees).

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import PaymentProvider
from app.modules.payments.models import RegionConfig

logger = logging.getLogger(__name__)


# ============================================================================
# Tablas de tasas
# ============================================================================

PLAN_PLATFORM_RATES: Dict[str, Decimal] = {
    "free": Decimal("0.25"),
    "starter": Decimal("0.20"),
    "pro": Decimal("0.15"),
    "studio": Decimal("0.10"),
}
DEFAULT_PLATFORM_RATE = Decimal("0.20")

# (rate, fixed) por moneda; monedas no listadas usan USD
STRIPE_FEES: Dict[str, Tuple[Decimal, int]] = {
    "USD": (Decimal("0.029"), 30),
    "EUR": (Decimal("0.014"), 25),
    "GBP": (Decimal("0.014"), 20),
    "CAD": (Decimal("0.029"), 30),
    "AUD": (Decimal("0.029"), 30),
    "GHS": (Decimal("0.035"), 150),
    "NGN": (Decimal("0.035"), 1500),
    "KES": (Decimal("0.035"), 50),
    "ZAR": (Decimal("0.035"), 300),
}

PROVIDER_FEES: Dict[str, Tuple[Decimal, int]] = {
    PaymentProvider.FLUTTERWAVE.value: (Decimal("0.035"), 100),
    PaymentProvider.PAYSTACK.value: (Decimal("0.015"), 100),
    PaymentProvider.PAYPAL.value: (Decimal("0.0349"), 30),
}
DEFAULT_PROVIDER_FEE: Tuple[Decimal, int] = (Decimal("0.029"), 30)


def round_half_up(value: Decimal) -> int:
    """Redondea a entero con ROUND_HALF_UP (0.5 -> 1)."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def platform_rate_for_plan(plan_code: Optional[str]) -> Decimal:
    return PLAN_PLATFORM_RATES.get((plan_code or "").strip().lower(), DEFAULT_PLATFORM_RATE)


def provider_fee_schedule(provider: str, currency: str) -> Tuple[Decimal, int]:
    """Devuelve (rate, fixed) de la pasarela para la moneda dada."""
    provider = str(provider).lower()
    if provider == PaymentProvider.STRIPE.value:
        return STRIPE_FEES.get(currency.upper(), STRIPE_FEES["USD"])
    return PROVIDER_FEES.get(provider, DEFAULT_PROVIDER_FEE)


# ============================================================================
# DTOs
# ============================================================================

@dataclass(frozen=True)
class RegionFees:
    """Parámetros de comisión de una región activa."""

    region_code: str
    platform_fee_percent: Optional[Decimal] = None
    transaction_fee_percent: Decimal = Decimal("0")
    transaction_fee_fixed: int = 0

    @classmethod
    def from_model(cls, config: RegionConfig) -> "RegionFees":
        return cls(
            region_code=config.region_code,
            platform_fee_percent=(
                Decimal(str(config.platform_fee_percent))
                if config.platform_fee_percent is not None
                else None
            ),
            transaction_fee_percent=Decimal(str(config.transaction_fee_percent or 0)),
            transaction_fee_fixed=int(config.transaction_fee_fixed or 0),
        )


@dataclass(frozen=True)
class FeeCalculation:
    gross_amount: int
    original_amount: int
    platform_fee: int
    transaction_fee: int
    provider_fee: int
    net_amount: int
    exchange_rate: Decimal
    currency: str
    event_currency: str
    breakdown: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_fees(self) -> int:
        return self.platform_fee + self.transaction_fee + self.provider_fee

    def to_dict(self) -> Dict[str, Any]:
        """Representación camelCase para metadata y respuestas."""
        return {
            "grossAmount": self.gross_amount,
            "originalAmount": self.original_amount,
            "platformFee": self.platform_fee,
            "transactionFee": self.transaction_fee,
            "providerFee": self.provider_fee,
            "netAmount": self.net_amount,
            "exchangeRate": str(self.exchange_rate),
            "currency": self.currency,
            "eventCurrency": self.event_currency,
            "breakdown": dict(self.breakdown),
        }


# ============================================================================
# Cálculo
# ============================================================================

def calculate_fees(
    gross_amount: int,
    event_currency: str,
    transaction_currency: str,
    provider: str,
    plan_code: Optional[str] = None,
    region: Optional[RegionFees] = None,
    exchange_rate: Optional[Decimal] = None,
) -> FeeCalculation:
    """
    Calcula el desglose de comisiones.

    Args:
        gross_amount: Monto en la moneda del evento (unidades menores)
        event_currency: Moneda de precio del evento
        transaction_currency: Moneda en la que se cobrará
        provider: Pasarela elegida
        plan_code: Plan del fotógrafo (free/starter/pro/studio)
        region: Configuración regional activa, si existe
        exchange_rate: Tasa event_currency -> transaction_currency; requerida
            si las monedas difieren

    Returns:
        FeeCalculation con gross convertido a la moneda de transacción.
    """
    if gross_amount < 0:
        raise ValueError("gross_amount must be >= 0")

    event_currency = event_currency.upper()
    transaction_currency = transaction_currency.upper()
    original_amount = int(gross_amount)

    if event_currency != transaction_currency:
        if exchange_rate is None:
            raise ValueError(
                f"exchange_rate required for {event_currency}->{transaction_currency}"
            )
        rate = Decimal(str(exchange_rate))
        gross = round_half_up(Decimal(original_amount) * rate)
    else:
        rate = Decimal("1")
        gross = original_amount

    # Plataforma: la región solo puede subir la tasa del plan
    platform_rate = platform_rate_for_plan(plan_code)
    if region is not None and region.platform_fee_percent is not None:
        platform_rate = max(platform_rate, region.platform_fee_percent)
    platform_fee = round_half_up(Decimal(gross) * platform_rate)

    tx_rate = region.transaction_fee_percent if region else Decimal("0")
    tx_fixed = region.transaction_fee_fixed if region else 0
    transaction_fee = round_half_up(Decimal(gross) * tx_rate) + tx_fixed

    provider_rate, provider_fixed = provider_fee_schedule(provider, transaction_currency)
    provider_fee = round_half_up(Decimal(gross) * provider_rate) + provider_fixed

    net_amount = max(0, gross - platform_fee - provider_fee - transaction_fee)

    breakdown = {
        "platformRate": str(platform_rate),
        "transactionRate": str(tx_rate),
        "transactionFixed": tx_fixed,
        "providerRate": str(provider_rate),
        "providerFixed": provider_fixed,
        "planCode": (plan_code or "").lower() or None,
        "regionCode": region.region_code if region else None,
    }

    return FeeCalculation(
        gross_amount=gross,
        original_amount=original_amount,
        platform_fee=platform_fee,
        transaction_fee=transaction_fee,
        provider_fee=provider_fee,
        net_amount=net_amount,
        exchange_rate=rate,
        currency=transaction_currency,
        event_currency=event_currency,
        breakdown=breakdown,
    )


async def load_region_fees(session: AsyncSession, region_code: Optional[str]) -> Optional[RegionFees]:
    """Carga la configuración regional activa, o None."""
    if not region_code:
        return None
    config = await session.get(RegionConfig, region_code.upper())
    if config is None or not config.is_active:
        return None
    return RegionFees.from_model(config)


__all__ = [
    "PLAN_PLATFORM_RATES",
    "DEFAULT_PLATFORM_RATE",
    "STRIPE_FEES",
    "PROVIDER_FEES",
    "DEFAULT_PROVIDER_FEE",
    "RegionFees",
    "FeeCalculation",
    "round_half_up",
    "platform_rate_for_plan",
    "provider_fee_schedule",
    "calculate_fees",
    "load_region_fees",
]

# Fin del archivo backend/app/modules/payments/services/fee_calculator.py
