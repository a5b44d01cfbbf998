# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/recurring_sync.py

Upsert canónico de suscripciones recurrentes.

Lo comparten tres escritores que pueden competir entre sí:
- checkout de suscripción (claim inicial)
- webhooks de los cuatro proveedores
- verificación manual

Reglas:
- Identidad por (owner_user_id, scope); si solo se conoce el id externo se
  busca por (provider, external_subscription_id).
- UPDATE condicional: versión leída + period_end y last_event_at no
  decrecientes (nulos no bloquean). Cada update aplicado incrementa version.
- period_end ausente nunca pisa uno guardado.
- Un cancel de una suscripción externa distinta a la guardada se ignora
  (superseded).
- Mapeo de estados por scope (vault usa "cancelled").

Autor: EventShot Payments
Fecha: 2025-11-23
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.base import utcnow
from app.modules.payments.enums import (
    BillingCycle,
    PaymentProvider,
    SubscriptionScope,
    SubscriptionStatus,
)
from app.modules.payments.metrics import subscription_sync_total
from app.modules.payments.models import RecurringSubscription
from app.modules.payments.repositories import RecurringSubscriptionRepository

logger = logging.getLogger(__name__)

_MAX_CAS_ATTEMPTS = 3


# ============================================================================
# Mapeo de estados por scope
# ============================================================================

def _status_table(canceled: SubscriptionStatus) -> Dict[str, SubscriptionStatus]:
    table: Dict[str, SubscriptionStatus] = {
        "canceled": canceled,
        "cancelled": canceled,
        "expired": canceled,
    }
    for token in ("suspend", "suspended", "past_due", "unpaid", "failed"):
        table[token] = SubscriptionStatus.PAST_DUE
    for token in ("trial", "trialing"):
        table[token] = SubscriptionStatus.TRIALING
    for token in ("active", "completed", "success", "successful", "paid"):
        table[token] = SubscriptionStatus.ACTIVE
    for token in ("incomplete", "pending", "approval_pending"):
        table[token] = SubscriptionStatus.INCOMPLETE
    return table


STATUS_TABLES: Dict[SubscriptionScope, Dict[str, SubscriptionStatus]] = {
    SubscriptionScope.CREATOR: _status_table(SubscriptionStatus.CANCELED),
    SubscriptionScope.ATTENDEE: _status_table(SubscriptionStatus.CANCELED),
    SubscriptionScope.VAULT: _status_table(SubscriptionStatus.CANCELLED),
}


def map_provider_status(scope: SubscriptionScope, provider_status: Optional[str]) -> Optional[SubscriptionStatus]:
    """
    Estado del proveedor -> estado canónico del scope. None si es desconocido
    (el llamador aporta su fallback).
    """
    token = (provider_status or "").strip().lower()
    if not token:
        return None
    table = STATUS_TABLES[SubscriptionScope(scope)]
    if token in table:
        return table[token]
    if "cancel" in token or "expired" in token:
        return table["canceled"]
    if token.startswith("suspend"):
        return table["suspend"]
    if "trial" in token:
        return table["trial"]
    return None


def canceled_status_for(scope: SubscriptionScope) -> SubscriptionStatus:
    return STATUS_TABLES[SubscriptionScope(scope)]["canceled"]


def manual_renewal_window(billing_cycle: Optional[str], start: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """
    Periodo de renovación manual (Flutterwave/Paystack): 30 o 365 días
    desde `start`.
    """
    start = start or utcnow()
    days = 365 if BillingCycle.normalize(billing_cycle) == BillingCycle.ANNUAL else 30
    return start, start + timedelta(days=days)


def attendee_feature_flags(plan_code: Optional[str]) -> Dict[str, bool]:
    code = (plan_code or "").strip().lower().replace("-", "_")
    premium = code in ("premium", "premium_plus")
    return {
        "can_upload_drop_ins": premium,
        "can_discover_non_contacts": premium,
        "can_search_web": code == "premium_plus",
    }


# ============================================================================
# DTOs
# ============================================================================

@dataclass
class SubscriptionSnapshot:
    """Estado entrante normalizado (webhook, verificación o checkout)."""

    scope: SubscriptionScope
    provider: PaymentProvider
    owner_user_id: Optional[uuid.UUID] = None
    plan_code: Optional[str] = None
    plan_id: Optional[uuid.UUID] = None
    billing_cycle: Optional[str] = None
    external_subscription_id: Optional[str] = None
    external_plan_id: Optional[str] = None
    external_customer_id: Optional[str] = None
    currency: Optional[str] = None
    amount_cents: Optional[int] = None
    provider_status: Optional[str] = None
    fallback_status: SubscriptionStatus = SubscriptionStatus.INCOMPLETE
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: Optional[bool] = None
    canceled_at: Optional[datetime] = None
    event_at: Optional[datetime] = None
    event_type: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def canonical_status(self) -> SubscriptionStatus:
        return map_provider_status(self.scope, self.provider_status) or self.fallback_status


@dataclass(frozen=True)
class SubscriptionSyncResult:
    applied: bool
    reason: str
    record: Optional[RecurringSubscription]


def serialize_subscription(record: Optional[RecurringSubscription]) -> Optional[Dict[str, Any]]:
    """Vista camelCase para respuestas HTTP."""
    if record is None:
        return None

    def _iso(value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

    return {
        "id": str(record.id),
        "scope": str(record.scope),
        "planCode": record.plan_code,
        "billingCycle": str(record.billing_cycle),
        "provider": str(record.provider) if record.provider else None,
        "externalSubscriptionId": record.external_subscription_id,
        "status": str(record.status),
        "currency": record.currency,
        "amountCents": record.amount_cents,
        "currentPeriodStart": _iso(record.current_period_start),
        "currentPeriodEnd": _iso(record.current_period_end),
        "cancelAtPeriodEnd": record.cancel_at_period_end,
        "canceledAt": _iso(record.canceled_at),
        "version": record.version,
    }


# ============================================================================
# Upsert canónico
# ============================================================================

class RecurringSubscriptionSync:
    """
    Escritor único del registro canónico. Cada operación hace commit propio.
    """

    def __init__(self, repo: Optional[RecurringSubscriptionRepository] = None) -> None:
        self.repo = repo or RecurringSubscriptionRepository()

    def _merged_metadata(
        self,
        current: Optional[Dict[str, Any]],
        snapshot: SubscriptionSnapshot,
        status: SubscriptionStatus,
        plan_code: Optional[str],
    ) -> Dict[str, Any]:
        merged = dict(current or {})
        merged.update(snapshot.metadata or {})
        if snapshot.event_type:
            merged["provider_event_type"] = snapshot.event_type
        if snapshot.provider_status:
            merged["provider_status"] = snapshot.provider_status
        if status in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING):
            merged.pop("pending_checkout", None)
        if snapshot.scope == SubscriptionScope.ATTENDEE:
            merged["features"] = attendee_feature_flags(plan_code)
        return merged

    async def _find(self, session: AsyncSession, snapshot: SubscriptionSnapshot) -> Optional[RecurringSubscription]:
        if snapshot.owner_user_id is not None:
            return await self.repo.get_for_owner(session, snapshot.owner_user_id, snapshot.scope)
        if snapshot.external_subscription_id:
            return await self.repo.get_by_external_id(
                session, snapshot.provider, snapshot.external_subscription_id
            )
        return None

    async def _create(
        self,
        session: AsyncSession,
        snapshot: SubscriptionSnapshot,
        status: SubscriptionStatus,
    ) -> Optional[RecurringSubscription]:
        """INSERT inicial; None si otro escritor ganó la carrera."""
        now = utcnow()
        try:
            record = await self.repo.create(
                session,
                owner_user_id=snapshot.owner_user_id,
                scope=snapshot.scope,
                plan_id=snapshot.plan_id,
                plan_code=snapshot.plan_code or "unknown",
                billing_cycle=BillingCycle.normalize(snapshot.billing_cycle),
                provider=snapshot.provider,
                external_subscription_id=snapshot.external_subscription_id,
                external_plan_id=snapshot.external_plan_id,
                external_customer_id=snapshot.external_customer_id,
                currency=(snapshot.currency or "USD").upper(),
                amount_cents=snapshot.amount_cents,
                status=status,
                current_period_start=snapshot.current_period_start,
                current_period_end=snapshot.current_period_end,
                cancel_at_period_end=bool(snapshot.cancel_at_period_end),
                canceled_at=snapshot.canceled_at or (now if status.is_terminal else None),
                last_event_at=snapshot.event_at,
                version=1,
                meta=self._merged_metadata({}, snapshot, status, snapshot.plan_code),
                created_at=now,
                updated_at=now,
            )
            await session.commit()
            return record
        except IntegrityError:
            await session.rollback()
            logger.info(
                "[subscription_sync] concurrent insert owner=%s scope=%s; retrying as update",
                snapshot.owner_user_id, snapshot.scope,
            )
            return None

    def _update_values(
        self,
        record: RecurringSubscription,
        snapshot: SubscriptionSnapshot,
        status: SubscriptionStatus,
    ) -> Dict[Any, Any]:
        now = utcnow()
        plan_code = snapshot.plan_code or record.plan_code
        if status.is_terminal:
            canceled_at = snapshot.canceled_at or record.canceled_at or now
        else:
            canceled_at = snapshot.canceled_at

        R = RecurringSubscription
        values: Dict[Any, Any] = {
            R.plan_code: plan_code,
            R.plan_id: snapshot.plan_id or record.plan_id,
            R.billing_cycle: (
                BillingCycle.normalize(snapshot.billing_cycle)
                if snapshot.billing_cycle
                else record.billing_cycle
            ),
            R.provider: snapshot.provider,
            R.external_subscription_id: snapshot.external_subscription_id or record.external_subscription_id,
            R.external_plan_id: snapshot.external_plan_id or record.external_plan_id,
            R.external_customer_id: snapshot.external_customer_id or record.external_customer_id,
            R.currency: (snapshot.currency or record.currency or "USD").upper(),
            R.amount_cents: snapshot.amount_cents if snapshot.amount_cents is not None else record.amount_cents,
            R.status: status,
            R.current_period_start: snapshot.current_period_start or record.current_period_start,
            R.current_period_end: snapshot.current_period_end or record.current_period_end,
            R.cancel_at_period_end: (
                snapshot.cancel_at_period_end
                if snapshot.cancel_at_period_end is not None
                else record.cancel_at_period_end
            ),
            R.canceled_at: canceled_at,
            R.last_event_at: snapshot.event_at or record.last_event_at,
            R.version: record.version + 1,
            R.meta: self._merged_metadata(record.meta, snapshot, status, plan_code),
            R.updated_at: now,
        }
        return values

    async def upsert(self, session: AsyncSession, snapshot: SubscriptionSnapshot) -> SubscriptionSyncResult:
        """
        Aplica el snapshot al registro canónico.

        Returns:
            SubscriptionSyncResult con reason en
            created | updated | stale | superseded | not_found | conflict
        """
        status = snapshot.canonical_status
        scope_label = str(snapshot.scope)

        for _attempt in range(_MAX_CAS_ATTEMPTS):
            record = await self._find(session, snapshot)

            if record is None:
                if snapshot.owner_user_id is None:
                    logger.warning(
                        "[subscription_sync] no record for %s:%s and no owner in payload",
                        snapshot.provider, snapshot.external_subscription_id,
                    )
                    subscription_sync_total.labels(scope_label, "not_found").inc()
                    return SubscriptionSyncResult(False, "not_found", None)
                created = await self._create(session, snapshot, status)
                if created is not None:
                    subscription_sync_total.labels(scope_label, "created").inc()
                    return SubscriptionSyncResult(True, "created", created)
                continue

            if (
                status.is_terminal
                and snapshot.external_subscription_id
                and record.external_subscription_id
                and snapshot.external_subscription_id != record.external_subscription_id
            ):
                logger.info(
                    "[subscription_sync] ignoring cancel of superseded subscription %s (current=%s)",
                    snapshot.external_subscription_id, record.external_subscription_id,
                )
                subscription_sync_total.labels(scope_label, "superseded").inc()
                return SubscriptionSyncResult(False, "superseded", record)

            expected_version = record.version
            applied = await self.repo.conditional_update(
                session,
                record.id,
                expected_version,
                self._update_values(record, snapshot, status),
                incoming_period_end=snapshot.current_period_end,
                incoming_event_at=snapshot.event_at,
            )
            await session.commit()
            await session.refresh(record)

            if applied:
                subscription_sync_total.labels(scope_label, "updated").inc()
                logger.info(
                    "[subscription_sync] applied owner=%s scope=%s status=%s version=%d",
                    record.owner_user_id, scope_label, record.status, record.version,
                )
                return SubscriptionSyncResult(True, "updated", record)

            if record.version == expected_version:
                # Nadie escribió en medio: la guarda de orden rechazó el evento
                subscription_sync_total.labels(scope_label, "stale").inc()
                logger.info(
                    "[subscription_sync] stale event ignored owner=%s scope=%s incoming_period_end=%s stored=%s",
                    record.owner_user_id, scope_label,
                    snapshot.current_period_end, record.current_period_end,
                )
                return SubscriptionSyncResult(False, "stale", record)

        subscription_sync_total.labels(scope_label, "conflict").inc()
        logger.warning("[subscription_sync] gave up after %d CAS attempts", _MAX_CAS_ATTEMPTS)
        return SubscriptionSyncResult(False, "conflict", record)

    async def claim_pending_checkout(
        self,
        session: AsyncSession,
        snapshot: SubscriptionSnapshot,
        pending: Dict[str, Any],
    ) -> RecurringSubscription:
        """
        Claim inicial del checkout de suscripción.

        Sin registro: se crea en `incomplete`. Con registro: solo se agrega
        metadata.pending_checkout y el estado no cambia.
        """
        for _attempt in range(_MAX_CAS_ATTEMPTS):
            record = await self.repo.get_for_owner(session, snapshot.owner_user_id, snapshot.scope)
            if record is None:
                snapshot.metadata = {**(snapshot.metadata or {}), "pending_checkout": pending}
                created = await self._create(session, snapshot, SubscriptionStatus.INCOMPLETE)
                if created is not None:
                    return created
                continue

            meta = dict(record.meta or {})
            meta["pending_checkout"] = pending
            R = RecurringSubscription
            applied = await self.repo.conditional_update(
                session,
                record.id,
                record.version,
                {R.meta: meta, R.version: record.version + 1, R.updated_at: utcnow()},
            )
            await session.commit()
            await session.refresh(record)
            if applied:
                return record

        raise RuntimeError("could not record pending checkout after concurrent updates")


__all__ = [
    "STATUS_TABLES",
    "map_provider_status",
    "canceled_status_for",
    "attendee_feature_flags",
    "manual_renewal_window",
    "SubscriptionSnapshot",
    "SubscriptionSyncResult",
    "serialize_subscription",
    "RecurringSubscriptionSync",
]

# Fin del archivo backend/app/modules/payments/services/recurring_sync.py
