# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/entitlements.py

Efectos de una transacción que pasa a `succeeded`:
- entitlements (uno `bulk` o uno `single` por medio) con grant_key único
- asientos del diario financiero, únicos por (transacción, tipo)

Ambos son idempotentes: un replay del webhook no duplica filas.

Autor: EventShot Payments
Fecha: 2025-11-23
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import EntitlementType, JournalEntryType
from app.modules.payments.models import Entitlement, JournalEntry, Transaction, build_grant_key
from app.modules.payments.repositories import EntitlementRepository, JournalRepository

logger = logging.getLogger(__name__)


def _media_ids(transaction: Transaction) -> List[uuid.UUID]:
    raw = (transaction.meta or {}).get("media_ids") or []
    return [uuid.UUID(str(m)) for m in raw]


async def grant_entitlements(
    session: AsyncSession,
    transaction: Transaction,
    repo: Optional[EntitlementRepository] = None,
) -> int:
    """
    Crea los entitlements de la transacción; devuelve cuántos se crearon.

    Hace flush; el commit queda a cargo del llamador.
    """
    repo = repo or EntitlementRepository()
    unlock_all = bool((transaction.meta or {}).get("unlock_all"))

    if unlock_all:
        wanted = [(None, EntitlementType.BULK)]
    else:
        wanted = [(media_id, EntitlementType.SINGLE) for media_id in _media_ids(transaction)]

    keys = {build_grant_key(transaction.id, media_id): (media_id, kind) for media_id, kind in wanted}
    already = await repo.existing_grant_keys(session, list(keys))

    created = 0
    for grant_key, (media_id, kind) in keys.items():
        if grant_key in already:
            continue
        session.add(
            Entitlement(
                transaction_id=transaction.id,
                event_id=transaction.event_id,
                media_id=media_id,
                attendee_id=transaction.attendee_id,
                payer_email=transaction.payer_email,
                entitlement_type=kind,
                grant_key=grant_key,
            )
        )
        created += 1
    await session.flush()

    logger.info(
        "[entitlements] transaction=%s granted=%d skipped=%d",
        transaction.id, created, len(already),
    )
    return created


def journal_lines(transaction: Transaction, provider_fee: int, net_amount: int) -> Dict[JournalEntryType, int]:
    """Montos con signo por tipo de asiento (moneda de la transacción)."""
    return {
        JournalEntryType.GROSS: transaction.gross_amount,
        JournalEntryType.PLATFORM_FEE: -transaction.platform_fee,
        JournalEntryType.PROVIDER_FEE: -provider_fee,
        JournalEntryType.TRANSACTION_FEE: -transaction.transaction_fee,
        JournalEntryType.NET: net_amount,
    }


async def record_journal_entries(
    session: AsyncSession,
    transaction: Transaction,
    lines: Dict[JournalEntryType, int],
    repo: Optional[JournalRepository] = None,
) -> int:
    """Inserta los asientos que falten; devuelve cuántos se insertaron."""
    repo = repo or JournalRepository()
    existing = await repo.existing_types(session, transaction.id)

    inserted = 0
    for entry_type, amount in lines.items():
        if entry_type.value in existing:
            continue
        session.add(
            JournalEntry(
                transaction_id=transaction.id,
                entry_type=entry_type,
                amount=int(amount),
                currency=transaction.currency,
            )
        )
        inserted += 1
    await session.flush()
    return inserted


def refund_metadata(transaction: Transaction, refund: Dict[str, Any]) -> Dict[str, Any]:
    meta = dict(transaction.meta or {})
    meta["refund"] = refund
    return meta


async def apply_success_effects(
    session: AsyncSession,
    transaction: Transaction,
    provider_fee: int,
    net_amount: int,
) -> None:
    """Entitlements + diario en la misma transacción del store que la transición."""
    await grant_entitlements(session, transaction)
    await record_journal_entries(session, transaction, journal_lines(transaction, provider_fee, net_amount))


__all__ = [
    "grant_entitlements",
    "journal_lines",
    "record_journal_entries",
    "refund_metadata",
    "apply_success_effects",
]

# Fin del archivo backend/app/modules/payments/services/entitlements.py
