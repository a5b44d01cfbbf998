# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/bulk_pricing.py

Tiers de precio por volumen y cálculo del precio base de un checkout.

Reglas de un tier:
- min_photos >= 0
- max_photos > min_photos (o None = "o más"; solo el último)
- rangos sin solapamiento
- price > 0 y es el PRECIO TOTAL de la compra, no por foto

Una configuración inválida es un error de configuración del evento
(BulkPricingError, 503), no un error del comprador.

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from app.modules.payments.enums import PricingType
from app.modules.payments.facades.errors import BulkPricingError, PaymentsError
from app.modules.payments.models import Event


@dataclass(frozen=True)
class BulkTier:
    min_photos: int
    max_photos: Optional[int]
    price: int

    def contains(self, count: int) -> bool:
        if count < self.min_photos:
            return False
        return self.max_photos is None or count <= self.max_photos


def _pick(raw: Mapping[str, Any], snake: str, camel: str) -> Any:
    return raw[snake] if snake in raw else raw.get(camel)


def parse_bulk_tiers(raw_tiers: Optional[Iterable[Mapping[str, Any]]]) -> List[BulkTier]:
    """Convierte el JSON del evento (snake_case o camelCase) en BulkTier."""
    tiers: List[BulkTier] = []
    for raw in raw_tiers or []:
        try:
            min_photos = int(_pick(raw, "min_photos", "minPhotos"))
            max_raw = _pick(raw, "max_photos", "maxPhotos")
            max_photos = int(max_raw) if max_raw is not None else None
            price = int(raw["price"])
        except (KeyError, TypeError, ValueError) as e:
            raise BulkPricingError(f"Malformed bulk tier: {raw!r}") from e
        tiers.append(BulkTier(min_photos=min_photos, max_photos=max_photos, price=price))
    return tiers


def validate_bulk_tiers(tiers: Sequence[BulkTier]) -> List[BulkTier]:
    """
    Valida la lista y la devuelve ordenada por min_photos.

    Raises:
        BulkPricingError: lista vacía, rango inválido, solapamiento,
            tier abierto que no es el último o precio no positivo.
    """
    if not tiers:
        raise BulkPricingError("Bulk pricing requires at least one tier")

    ordered = sorted(tiers, key=lambda t: t.min_photos)
    for idx, tier in enumerate(ordered):
        if tier.min_photos < 0:
            raise BulkPricingError("Bulk tier min_photos must be >= 0", tier=idx)
        if tier.max_photos is not None and tier.max_photos <= tier.min_photos:
            raise BulkPricingError("Bulk tier max_photos must be greater than min_photos", tier=idx)
        if tier.price <= 0:
            raise BulkPricingError("Bulk tier price must be positive", tier=idx)

        if idx + 1 < len(ordered):
            following = ordered[idx + 1]
            if tier.max_photos is None:
                raise BulkPricingError("Open-ended bulk tier must be the last one", tier=idx)
            if following.min_photos <= tier.max_photos:
                raise BulkPricingError("Bulk tiers overlap", tier=idx)
    return ordered


def resolve_bulk_tier(tiers: Sequence[BulkTier], count: int) -> BulkTier:
    """Tier cuyo rango contiene `count`; la ausencia de tier es un error de configuración."""
    for tier in validate_bulk_tiers(tiers):
        if tier.contains(count):
            return tier
    raise BulkPricingError(f"No bulk tier covers {count} photos", photoCount=count)


def compute_base_price(event: Event, media_count: int, unlock_all: bool) -> int:
    """
    Precio base (moneda del evento, unidades menores) antes de comisiones.

    Raises:
        PaymentsError: 400 event_is_free / unlock_all_unavailable
        BulkPricingError: tiers inválidos o sin cobertura
    """
    pricing_type = PricingType(event.pricing_type)
    if pricing_type == PricingType.FREE:
        raise PaymentsError("This event is free", error="event_is_free", status_code=400)

    if unlock_all:
        if not event.unlock_all_price or event.unlock_all_price <= 0:
            raise PaymentsError(
                "Unlock-all is not available for this event",
                error="unlock_all_unavailable",
                status_code=400,
            )
        return int(event.unlock_all_price)

    if pricing_type == PricingType.PER_PHOTO:
        if not event.price_per_media or event.price_per_media <= 0:
            raise PaymentsError(
                "Event has no per-photo price configured",
                error="invalid_pricing_configuration",
                status_code=503,
                fail_closed=True,
            )
        return int(event.price_per_media) * media_count

    tier = resolve_bulk_tier(parse_bulk_tiers(event.bulk_tiers), media_count)
    return tier.price


__all__ = [
    "BulkTier",
    "parse_bulk_tiers",
    "validate_bulk_tiers",
    "resolve_bulk_tier",
    "compute_base_price",
]

# Fin del archivo backend/app/modules/payments/services/bulk_pricing.py
