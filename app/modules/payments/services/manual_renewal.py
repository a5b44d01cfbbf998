# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/manual_renewal.py

Cobros de renovación manual (Flutterwave/Paystack).

Estas pasarelas no tienen suscripción recurrente nativa en este flujo:
cada pago verificado abre un periodo de 30/365 días. Lo usan el webhook
(charge.completed / charge.success con scope) y la verificación manual,
así que ambos deben llegar exactamente al mismo registro:

- El periodo se ancla en el momento del cobro que informa el proveedor.
  Sin ese dato se reutiliza el inicio ya guardado para la misma
  referencia, de modo que repetir la verificación no extiende el periodo.
- El monto cobrado se compara contra lo esperado, en este orden:
    1. metadata.pending_checkout del registro (misma referencia)
    2. monto guardado del registro si ya aplicó esa misma referencia
    3. precio del plan (regional en la moneda cobrada, o USD)
  Sin referencia de precio el cobro se rechaza.

Autor: EventShot Payments
Fecha: 2025-11-28
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Tuple

from app.modules.payments.enums import BillingCycle
from app.modules.payments.facades.errors import AmountMismatchError
from app.modules.payments.models import RecurringSubscription, SubscriptionPlan
from app.modules.payments.services.recurring_sync import manual_renewal_window
from app.shared.database.base import utcnow

logger = logging.getLogger(__name__)

PAID_STATUSES = frozenset({"success", "successful"})


def _same_reference(record: Optional[RecurringSubscription], reference: Optional[str]) -> bool:
    return bool(record is not None and reference and record.external_subscription_id == reference)


def renewal_period(
    billing_cycle: Optional[str],
    paid_at: Optional[datetime],
    record: Optional[RecurringSubscription],
    reference: Optional[str],
) -> Tuple[datetime, datetime]:
    """Ventana (inicio, fin) del periodo pagado por `reference`."""
    anchor = paid_at
    if anchor is None and _same_reference(record, reference):
        anchor = record.current_period_start
    return manual_renewal_window(billing_cycle, anchor or utcnow())


def expected_renewal_charge(
    record: Optional[RecurringSubscription],
    reference: Optional[str],
    plan: Optional[SubscriptionPlan],
    billing_cycle: Optional[str],
    currency: Optional[str],
) -> Optional[Tuple[int, str]]:
    """(monto en unidades menores, moneda) que debió cobrarse; None si no se sabe."""
    meta = (record.meta or {}) if record is not None else {}
    pending = meta.get("pending_checkout") or {}
    if (
        reference
        and reference in (pending.get("reference"), pending.get("session_id"))
        and pending.get("amount_cents") is not None
    ):
        return int(pending["amount_cents"]), str(pending.get("currency") or "USD").upper()

    if _same_reference(record, reference) and record.amount_cents is not None:
        return int(record.amount_cents), (record.currency or "USD").upper()

    if plan is None:
        return None
    cycle = BillingCycle.normalize(billing_cycle)
    if currency:
        regional = plan.regional_price(currency, cycle)
        if regional:
            return regional, currency.upper()
    return plan.usd_price(cycle), "USD"


def ensure_renewal_charge(
    expected: Optional[Tuple[int, str]],
    amount: Optional[int],
    currency: Optional[str],
    reference: Optional[str],
) -> None:
    """
    Raises:
        AmountMismatchError: cobro distinto a lo esperado, o sin precio de
            referencia contra el cual compararlo.
    """
    received = (amount, (currency or "").upper() or None)
    if expected is not None and received == expected:
        return
    logger.error(
        "[manual_renewal] charge mismatch reference=%s expected=%s got=%s",
        reference, expected, received,
    )
    raise AmountMismatchError(
        "Provider confirmed a charge that does not match the subscription price",
        reference=reference,
        expected={"amount": expected[0], "currency": expected[1]} if expected else None,
        received={"amount": received[0], "currency": received[1]},
    )


__all__ = [
    "PAID_STATUSES",
    "renewal_period",
    "expected_renewal_charge",
    "ensure_renewal_charge",
]

# Fin del archivo backend/app/modules/payments/services/manual_renewal.py
