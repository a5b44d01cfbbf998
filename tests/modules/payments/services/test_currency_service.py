# -*- coding: utf-8 -*-
"""
backend/tests/modules/payments/services/test_currency_service.py

Tests de resolución de moneda y tipos de cambio (directo, inverso, cruzado).

Autor: EventShot Payments
Fecha: 2025-11-27
"""

from decimal import Decimal

import pytest

from app.modules.payments.facades.errors import ExchangeRateUnavailable
from app.modules.payments.models import ExchangeRate
from app.modules.payments.services.currency_service import (
    CurrencyService,
    currency_for_country,
    effective_currency,
    normalize_currency,
    to_major_units,
    to_minor_units,
)
from app.shared.cache import TTLCache


class TestCurrencyHelpers:

    def test_normalize_currency(self):
        assert normalize_currency(" eur ") == "EUR"
        assert normalize_currency("EURO") is None
        assert normalize_currency("") is None

    def test_currency_for_country(self):
        assert currency_for_country("gh") == "GHS"
        assert currency_for_country("DE") == "EUR"
        assert currency_for_country("ZZ") is None

    def test_effective_currency_priority(self):
        assert effective_currency("gbp", "EUR", "NG", "USD") == "GBP"
        assert effective_currency(None, "eur", "NG", "USD") == "EUR"
        assert effective_currency("??", None, "NG", "USD") == "NGN"
        assert effective_currency(None, None, None, "zar") == "ZAR"
        assert effective_currency(None, None, None, None) == "USD"

    def test_unit_conversion(self):
        assert to_major_units(1050, "USD") == Decimal("10.50")
        assert to_major_units(5000, "UGX") == Decimal(5000)
        assert to_minor_units("10.505", "USD") == 1051
        assert to_minor_units(2500, "JPY") == 2500


class TestCurrencyService:

    @pytest.fixture
    async def rates(self, db):
        db.add_all([
            ExchangeRate(from_currency="USD", to_currency="NGN", rate=Decimal("1500")),
            ExchangeRate(from_currency="EUR", to_currency="USD", rate=Decimal("1.1")),
        ])
        await db.commit()

    @pytest.mark.asyncio
    async def test_same_currency_is_one(self, db):
        assert await CurrencyService().get_exchange_rate(db, "usd", "USD") == Decimal("1")

    @pytest.mark.asyncio
    async def test_direct_rate(self, db, rates):
        assert await CurrencyService().get_exchange_rate(db, "USD", "NGN") == Decimal("1500")

    @pytest.mark.asyncio
    async def test_inverse_rate(self, db, rates):
        rate = await CurrencyService().get_exchange_rate(db, "USD", "EUR")

        assert rate == (Decimal(1) / Decimal("1.1")).quantize(Decimal("0.00000001"))

    @pytest.mark.asyncio
    async def test_cross_rate_via_usd(self, db, rates):
        rate = await CurrencyService().get_exchange_rate(db, "EUR", "NGN")

        assert rate == Decimal("1650.00000000")

    @pytest.mark.asyncio
    async def test_missing_rate_fails_closed(self, db, rates):
        with pytest.raises(ExchangeRateUnavailable) as exc:
            await CurrencyService().get_exchange_rate(db, "USD", "KES")

        assert exc.value.status_code == 503
        assert exc.value.to_payload()["toCurrency"] == "KES"

    @pytest.mark.asyncio
    async def test_rate_is_cached(self, db, rates):
        cache = TTLCache(max_size=10, default_ttl=60, name="test_rates")
        service = CurrencyService(cache)

        await service.get_exchange_rate(db, "USD", "NGN")

        assert cache.get("USD:NGN") == Decimal("1500")

    @pytest.mark.asyncio
    async def test_convert(self, db, rates):
        assert await CurrencyService().convert(db, 1000, "USD", "NGN") == 1_500_000
        assert await CurrencyService().convert(db, 1234, "USD", "usd") == 1234

# Fin del archivo backend/tests/modules/payments/services/test_currency_service.py
