# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/currency_service.py

Resolución de moneda efectiva y tipos de cambio.

- effective_currency(): request -> preferencia del usuario -> país del
  evento -> moneda del evento.
- CurrencyService.get_exchange_rate(): directa, inversa o cruzada vía USD,
  cacheada en un CacheBackend inyectado. Sin tasa -> ExchangeRateUnavailable
  (503, fail-closed); nunca se asume 1:1.

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.facades.errors import ExchangeRateUnavailable
from app.modules.payments.models import ExchangeRate
from app.shared.cache import CacheBackend, TTLCache

logger = logging.getLogger(__name__)

# Monedas sin subunidades (el monto menor ES el monto mayor)
ZERO_DECIMAL_CURRENCIES = frozenset({
    "BIF", "CLP", "DJF", "GNF", "JPY", "KMF", "KRW", "MGA",
    "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF",
})

_EUR_COUNTRIES = (
    "AT", "BE", "CY", "DE", "EE", "ES", "FI", "FR", "GR", "HR",
    "IE", "IT", "LT", "LU", "LV", "MT", "NL", "PT", "SI", "SK",
)

COUNTRY_CURRENCY: dict[str, str] = {
    "GH": "GHS",
    "NG": "NGN",
    "KE": "KES",
    "ZA": "ZAR",
    "UG": "UGX",
    "TZ": "TZS",
    "US": "USD",
    "GB": "GBP",
    "CA": "CAD",
    "AU": "AUD",
    **{code: "EUR" for code in _EUR_COUNTRIES},
}


def normalize_currency(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip().upper()
    return value if len(value) == 3 and value.isalpha() else None


def currency_for_country(country_code: Optional[str]) -> Optional[str]:
    if not country_code:
        return None
    return COUNTRY_CURRENCY.get(country_code.strip().upper())


def effective_currency(
    requested: Optional[str],
    user_preference: Optional[str],
    country_code: Optional[str],
    event_currency: Optional[str],
) -> str:
    """Primera moneda válida en orden de prioridad; USD como último recurso."""
    for candidate in (
        normalize_currency(requested),
        normalize_currency(user_preference),
        currency_for_country(country_code),
        normalize_currency(event_currency),
    ):
        if candidate:
            return candidate
    return "USD"


def is_zero_decimal(currency: str) -> bool:
    return currency.upper() in ZERO_DECIMAL_CURRENCIES


def to_major_units(amount_minor: int, currency: str) -> Decimal:
    """Unidades menores -> mayores (p.ej. 1050 USD -> 10.50)."""
    if is_zero_decimal(currency):
        return Decimal(amount_minor)
    return (Decimal(amount_minor) / Decimal(100)).quantize(Decimal("0.01"))


def to_minor_units(amount_major: Decimal | int | float | str, currency: str) -> int:
    """Unidades mayores -> menores con ROUND_HALF_UP."""
    value = Decimal(str(amount_major))
    if not is_zero_decimal(currency):
        value = value * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class CurrencyService:
    """
    Lecturas de tipos de cambio con caché TTL inyectado.

    El caché es por instancia de proceso; la fuente de verdad es la tabla
    exchange_rates.
    """

    def __init__(self, cache: Optional[CacheBackend] = None) -> None:
        self.cache = cache or TTLCache(max_size=500, default_ttl=300, name="exchange_rates")

    async def _lookup(self, session: AsyncSession, from_currency: str, to_currency: str) -> Optional[Decimal]:
        stmt = select(ExchangeRate.rate).where(
            ExchangeRate.from_currency == from_currency,
            ExchangeRate.to_currency == to_currency,
        )
        rate = (await session.execute(stmt)).scalar_one_or_none()
        return Decimal(str(rate)) if rate is not None else None

    async def _direct_or_inverse(
        self, session: AsyncSession, from_currency: str, to_currency: str
    ) -> Optional[Decimal]:
        direct = await self._lookup(session, from_currency, to_currency)
        if direct is not None and direct > 0:
            return direct
        inverse = await self._lookup(session, to_currency, from_currency)
        if inverse is not None and inverse > 0:
            return (Decimal(1) / inverse).quantize(Decimal("0.00000001"))
        return None

    async def get_exchange_rate(self, session: AsyncSession, from_currency: str, to_currency: str) -> Decimal:
        """
        Tasa para convertir montos de from_currency a to_currency.

        Raises:
            ExchangeRateUnavailable: no hay tasa directa, inversa ni cruzada.
        """
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()
        if from_currency == to_currency:
            return Decimal("1")

        cache_key = f"{from_currency}:{to_currency}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        rate = await self._direct_or_inverse(session, from_currency, to_currency)
        if rate is None and "USD" not in (from_currency, to_currency):
            to_usd = await self._direct_or_inverse(session, from_currency, "USD")
            from_usd = await self._direct_or_inverse(session, "USD", to_currency)
            if to_usd is not None and from_usd is not None:
                rate = (to_usd * from_usd).quantize(Decimal("0.00000001"))

        if rate is None:
            logger.warning("[currency] no exchange rate %s->%s", from_currency, to_currency)
            raise ExchangeRateUnavailable(from_currency, to_currency)

        self.cache.set(cache_key, rate)
        return rate

    async def convert(self, session: AsyncSession, amount_minor: int, from_currency: str, to_currency: str) -> int:
        """Convierte un monto en unidades menores entre monedas."""
        rate = await self.get_exchange_rate(session, from_currency, to_currency)
        if rate == 1 and from_currency.upper() == to_currency.upper():
            return amount_minor
        major = to_major_units(amount_minor, from_currency) * rate
        return to_minor_units(major, to_currency)


__all__ = [
    "ZERO_DECIMAL_CURRENCIES",
    "COUNTRY_CURRENCY",
    "normalize_currency",
    "currency_for_country",
    "effective_currency",
    "is_zero_decimal",
    "to_major_units",
    "to_minor_units",
    "CurrencyService",
]

# Fin del archivo backend/app/modules/payments/services/currency_service.py
