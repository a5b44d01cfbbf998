# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/providers/registry.py

Registro de adaptadores por pasarela.

Las rutas reciben el registro como dependencia (`get_provider_registry`),
lo que permite sustituirlo por mocks en tests vía dependency_overrides.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

from typing import Dict, Optional

from app.modules.payments.enums import PaymentProvider
from app.modules.payments.facades.errors import PaymentsError
from app.modules.payments.providers.base import PaymentProviderClient
from app.modules.payments.providers.flutterwave_provider import FlutterwaveProvider
from app.modules.payments.providers.paypal_provider import PayPalProvider
from app.modules.payments.providers.paystack_provider import PaystackProvider
from app.modules.payments.providers.stripe_provider import StripeProvider
from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings


class ProviderRegistry:
    """Instancia perezosa de un adaptador por pasarela."""

    def __init__(
        self,
        settings: Optional[PaymentsSettings] = None,
        providers: Optional[Dict[str, PaymentProviderClient]] = None,
    ) -> None:
        self.settings = settings or get_payments_settings()
        self._providers: Dict[str, PaymentProviderClient] = dict(providers or {})

    def _build(self, name: str) -> PaymentProviderClient:
        if name == PaymentProvider.STRIPE:
            return StripeProvider(self.settings)
        if name == PaymentProvider.PAYPAL:
            return PayPalProvider(self.settings)
        if name == PaymentProvider.FLUTTERWAVE:
            return FlutterwaveProvider(self.settings)
        if name == PaymentProvider.PAYSTACK:
            return PaystackProvider(self.settings)
        raise PaymentsError(f"Unknown payment provider '{name}'", status_code=400, error="unknown_provider")

    def get(self, name: str) -> PaymentProviderClient:
        key = (name or "").strip().lower()
        if key not in self._providers:
            self._providers[key] = self._build(key)
        return self._providers[key]

    def stripe(self) -> StripeProvider:
        provider = self.get(PaymentProvider.STRIPE.value)
        return provider  # type: ignore[return-value]

    def paypal(self) -> PayPalProvider:
        provider = self.get(PaymentProvider.PAYPAL.value)
        return provider  # type: ignore[return-value]


_registry: Optional[ProviderRegistry] = None


def get_provider_registry() -> ProviderRegistry:
    """Dependencia FastAPI / singleton de proceso."""
    global _registry
    if _registry is None:
        _registry = ProviderRegistry()
    return _registry


def reset_provider_registry() -> None:
    global _registry
    _registry = None


__all__ = ["ProviderRegistry", "get_provider_registry", "reset_provider_registry"]

# Fin del archivo backend/app/modules/payments/providers/registry.py
