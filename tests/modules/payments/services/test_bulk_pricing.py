# -*- coding: utf-8 -*-
"""
backend/tests/modules/payments/services/test_bulk_pricing.py

Tests de tiers por volumen y precio base del evento.

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import pytest

from app.modules.payments.enums import PricingType
from app.modules.payments.facades.errors import BulkPricingError, PaymentsError
from app.modules.payments.models import Event
from app.modules.payments.services.bulk_pricing import (
    BulkTier,
    compute_base_price,
    parse_bulk_tiers,
    resolve_bulk_tier,
    validate_bulk_tiers,
)

TIERS = [
    {"min_photos": 1, "max_photos": 5, "price": 1500},
    {"minPhotos": 6, "maxPhotos": 20, "price": 4000},
    {"min_photos": 21, "max_photos": None, "price": 9000},
]


def _event(**overrides) -> Event:
    data = dict(
        name="Graduación",
        currency="USD",
        pricing_type=PricingType.PER_PHOTO,
        price_per_media=500,
        unlock_all_price=2000,
        bulk_tiers=None,
    )
    data.update(overrides)
    return Event(**data)


class TestParseAndValidate:

    def test_parse_accepts_snake_and_camel(self):
        tiers = parse_bulk_tiers(TIERS)

        assert tiers[1] == BulkTier(min_photos=6, max_photos=20, price=4000)
        assert tiers[2].max_photos is None

    def test_parse_malformed_tier(self):
        with pytest.raises(BulkPricingError):
            parse_bulk_tiers([{"min_photos": 1}])

    def test_validate_orders_by_min(self):
        tiers = parse_bulk_tiers(list(reversed(TIERS)))

        ordered = validate_bulk_tiers(tiers)

        assert [t.min_photos for t in ordered] == [1, 6, 21]

    @pytest.mark.parametrize(
        "tiers, failing_tier",
        [
            ([BulkTier(-1, 5, 100)], 0),
            ([BulkTier(5, 5, 100)], 0),
            ([BulkTier(1, 5, 0)], 0),
            ([BulkTier(1, None, 100), BulkTier(6, 10, 200)], 0),
            ([BulkTier(1, 5, 100), BulkTier(5, 10, 200)], 0),
        ],
    )
    def test_validate_rejects_invalid_tiers(self, tiers, failing_tier):
        with pytest.raises(BulkPricingError) as exc:
            validate_bulk_tiers(tiers)

        assert exc.value.status_code == 503
        assert exc.value.context["tier"] == failing_tier

    def test_validate_rejects_empty(self):
        with pytest.raises(BulkPricingError):
            validate_bulk_tiers([])


class TestResolveTier:

    def test_resolves_matching_tier(self):
        tiers = parse_bulk_tiers(TIERS)

        assert resolve_bulk_tier(tiers, 1).price == 1500
        assert resolve_bulk_tier(tiers, 20).price == 4000
        assert resolve_bulk_tier(tiers, 500).price == 9000

    def test_gap_is_configuration_error(self):
        tiers = [BulkTier(2, 5, 1500)]

        with pytest.raises(BulkPricingError) as exc:
            resolve_bulk_tier(tiers, 1)

        assert exc.value.to_payload()["photoCount"] == 1
        assert exc.value.to_payload()["failClosed"] is True


class TestComputeBasePrice:

    def test_per_photo(self):
        assert compute_base_price(_event(), 3, unlock_all=False) == 1500

    def test_unlock_all(self):
        assert compute_base_price(_event(), 0, unlock_all=True) == 2000

    def test_bulk(self):
        event = _event(pricing_type=PricingType.BULK, bulk_tiers=TIERS)

        assert compute_base_price(event, 7, unlock_all=False) == 4000

    def test_free_event(self):
        with pytest.raises(PaymentsError) as exc:
            compute_base_price(_event(pricing_type=PricingType.FREE), 1, unlock_all=False)

        assert exc.value.status_code == 400
        assert exc.value.error == "event_is_free"

    def test_unlock_all_unavailable(self):
        with pytest.raises(PaymentsError) as exc:
            compute_base_price(_event(unlock_all_price=None), 0, unlock_all=True)

        assert exc.value.error == "unlock_all_unavailable"

    def test_per_photo_without_price_fails_closed(self):
        with pytest.raises(PaymentsError) as exc:
            compute_base_price(_event(price_per_media=0), 2, unlock_all=False)

        assert exc.value.status_code == 503
        assert exc.value.error == "invalid_pricing_configuration"
        assert exc.value.fail_closed is True

# Fin del archivo backend/tests/modules/payments/services/test_bulk_pricing.py
