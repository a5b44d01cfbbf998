# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/plan_mapping.py

Resolución de plan interno -> plan/precio recurrente del proveedor.

Candidatos por pasarela:
- alias del código de plan (tal cual, con '-' y con '_')
- ciclo (annual también prueba yearly)
- (moneda, región), (USD, región), (moneda, GLOBAL), (USD, GLOBAL)

Orden entre pasarelas:
    1. pasarela seleccionada
    2. resto de pasarelas configuradas
    3. Stripe con price_data dinámico (si Stripe está configurado)
    4. PlanMappingError (503, fail-closed)

El plan nunca se sustituye por otro.

Autor: EventShot Payments
Fecha: 2025-11-23
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import BillingCycle, PaymentProvider, SubscriptionScope
from app.modules.payments.facades.errors import PlanMappingError
from app.modules.payments.models import ProviderPlanMapping
from app.modules.payments.repositories import ProviderPlanMappingRepository

logger = logging.getLogger(__name__)

GLOBAL_REGION = "GLOBAL"
SOURCE_MAPPING = "mapping"
SOURCE_FALLBACK_MAPPING = "fallback_mapping"
SOURCE_DYNAMIC = "stripe_dynamic_price"


@dataclass(frozen=True)
class PlanMappingResolution:
    provider: str
    source: str
    provider_plan_id: Optional[str]
    currency: str
    region_code: Optional[str] = None

    @property
    def is_dynamic(self) -> bool:
        return self.source == SOURCE_DYNAMIC

    def to_dict(self) -> dict:
        return {"source": self.source, "providerPlanId": self.provider_plan_id}


def plan_code_aliases(plan_code: str) -> List[str]:
    code = plan_code.strip()
    aliases = [code, code.replace("_", "-"), code.replace("-", "_")]
    return list(dict.fromkeys(a for a in aliases if a))


def billing_cycle_candidates(cycle: BillingCycle) -> List[str]:
    if cycle == BillingCycle.ANNUAL:
        return ["annual", "yearly"]
    return ["monthly"]


def currency_region_candidates(currency: str, region_code: Optional[str]) -> List[Tuple[str, str]]:
    currency = currency.upper()
    region = (region_code or GLOBAL_REGION).upper()
    candidates = [
        (currency, region),
        ("USD", region),
        (currency, GLOBAL_REGION),
        ("USD", GLOBAL_REGION),
    ]
    return list(dict.fromkeys(candidates))


def pick_mapping(
    mappings: Sequence[ProviderPlanMapping],
    plan_code: str,
    cycle: BillingCycle,
    currency: str,
    region_code: Optional[str],
) -> Optional[ProviderPlanMapping]:
    """Primer mapeo por orden de preferencia (alias, ciclo, moneda/región)."""
    index = {
        (m.plan_code, m.billing_cycle.lower(), m.currency.upper(), (m.region_code or GLOBAL_REGION).upper()): m
        for m in mappings
    }
    for alias in plan_code_aliases(plan_code):
        for cycle_token in billing_cycle_candidates(cycle):
            for cur, region in currency_region_candidates(currency, region_code):
                found = index.get((alias, cycle_token, cur, region))
                if found is not None:
                    return found
    return None


class PlanMappingResolver:
    def __init__(self, repo: Optional[ProviderPlanMappingRepository] = None) -> None:
        self.repo = repo or ProviderPlanMappingRepository()

    async def find(
        self,
        session: AsyncSession,
        provider: str,
        scope: SubscriptionScope,
        plan_code: str,
        cycle: BillingCycle,
        currency: str,
        region_code: Optional[str],
    ) -> Optional[ProviderPlanMapping]:
        mappings = await self.repo.list_candidates(
            session,
            PaymentProvider(provider),
            scope,
            plan_code_aliases(plan_code),
            billing_cycle_candidates(cycle),
        )
        return pick_mapping(mappings, plan_code, cycle, currency, region_code)

    async def resolve(
        self,
        session: AsyncSession,
        *,
        selected_gateway: str,
        configured_gateways: Sequence[str],
        scope: SubscriptionScope,
        plan_code: str,
        cycle: BillingCycle,
        currency: str,
        region_code: Optional[str],
    ) -> PlanMappingResolution:
        """
        Raises:
            PlanMappingError: sin mapeo en ninguna pasarela y Stripe no configurado.
        """
        ordered = [selected_gateway] + [g for g in configured_gateways if g != selected_gateway]
        for gateway in ordered:
            mapping = await self.find(session, gateway, scope, plan_code, cycle, currency, region_code)
            if mapping is not None:
                source = SOURCE_MAPPING if gateway == selected_gateway else SOURCE_FALLBACK_MAPPING
                if source == SOURCE_FALLBACK_MAPPING:
                    logger.info(
                        "[plan_mapping] %s has no mapping for %s/%s; using %s",
                        selected_gateway, plan_code, cycle, gateway,
                    )
                return PlanMappingResolution(
                    provider=gateway,
                    source=source,
                    provider_plan_id=mapping.provider_plan_id,
                    currency=mapping.currency.upper(),
                    region_code=mapping.region_code,
                )

        if PaymentProvider.STRIPE.value in configured_gateways:
            logger.info("[plan_mapping] no mapping for %s/%s; stripe dynamic price", plan_code, cycle)
            return PlanMappingResolution(
                provider=PaymentProvider.STRIPE.value,
                source=SOURCE_DYNAMIC,
                provider_plan_id=None,
                currency=currency.upper(),
            )

        raise PlanMappingError(
            f"No provider plan mapping for plan '{plan_code}' ({cycle})",
            planCode=plan_code,
            billingCycle=str(cycle),
            triedGateways=ordered,
        )


__all__ = [
    "GLOBAL_REGION",
    "SOURCE_MAPPING",
    "SOURCE_FALLBACK_MAPPING",
    "SOURCE_DYNAMIC",
    "PlanMappingResolution",
    "plan_code_aliases",
    "billing_cycle_candidates",
    "currency_region_candidates",
    "pick_mapping",
    "PlanMappingResolver",
]

# Fin del archivo backend/app/modules/payments/services/plan_mapping.py
