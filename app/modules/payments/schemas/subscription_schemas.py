# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/schemas/subscription_schemas.py

Contratos de checkout y verificación manual de suscripciones
(creator, attendee y vault).

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import Field, field_validator

from app.modules.payments.enums import BillingCycle, PaymentProvider, SubscriptionScope
from app.modules.payments.schemas.common_schemas import CamelModel


class SubscriptionCheckoutRequest(CamelModel):
    plan_code: str = Field(min_length=1, max_length=64)
    billing_cycle: str = Field(default="monthly", description="monthly | annual (yearly se acepta)")
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    provider: Optional[PaymentProvider] = None
    scope: Optional[SubscriptionScope] = Field(
        default=None,
        description="Por defecto creator_subscription; /vault/checkout fuerza vault_subscription.",
    )

    @field_validator("plan_code")
    @classmethod
    def _lower_plan(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v

    @property
    def cycle(self) -> BillingCycle:
        return BillingCycle.normalize(self.billing_cycle)

    def normalized(self, scope: SubscriptionScope) -> Dict[str, Any]:
        return {
            "planCode": self.plan_code,
            "billingCycle": self.cycle.value,
            "currency": self.currency,
            "provider": self.provider.value if self.provider else None,
            "scope": scope.value,
        }


class VerifySubscriptionRequest(CamelModel):
    """
    Verificación manual. Se usa la primera referencia presente:
    sessionId, subscriptionId, txRef, reference.
    """

    provider: str = Field(min_length=1)
    session_id: Optional[str] = None
    subscription_id: Optional[str] = None
    tx_ref: Optional[str] = None
    reference: Optional[str] = None
    scope: Optional[SubscriptionScope] = None

    @field_validator("provider")
    @classmethod
    def _lower_provider(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def provider_reference(self) -> Optional[str]:
        for value in (self.session_id, self.subscription_id, self.tx_ref, self.reference):
            if value:
                return value
        return None


__all__ = ["SubscriptionCheckoutRequest", "VerifySubscriptionRequest"]

# Fin del archivo backend/app/modules/payments/schemas/subscription_schemas.py
