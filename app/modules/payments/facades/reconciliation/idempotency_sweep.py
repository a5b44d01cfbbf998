# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/reconciliation/idempotency_sweep.py

Job de reconciliación de registros de idempotencia atascados en
`processing` (el proceso murió entre el claim y el finalize).

Para cada registro más viejo que idempotency_stale_after_seconds:
- checkout con Transaction registrada para la misma clave y actor:
  se reconstruye la respuesta original y se finaliza `completed`
- resto: `failed` con 500 checkout_interrupted (el cliente puede
  reintentar con la misma clave)

El finalize es condicional a `processing`: si el request original
termina en paralelo, su resultado prevalece.

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, AsyncContextManager, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import IdempotencyStatus
from app.modules.payments.facades.checkout.start_checkout import CHECKOUT_SCOPE, checkout_response_body
from app.modules.payments.models import IdempotencyRecord, Transaction
from app.modules.payments.repositories import IdempotencyRepository, TransactionRepository
from app.modules.payments.services.idempotency_ledger import IdempotencyLedger, dump_body
from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings
from app.shared.database import session_scope
from app.shared.database.base import utcnow

logger = logging.getLogger(__name__)

JOB_ID = "payments_idempotency_sweep"

INTERRUPTED_BODY = dump_body(
    {"error": "checkout_interrupted", "message": "Checkout was interrupted; retry with the same key"}
)


def _owned_by(tx: Transaction, actor_id: str) -> bool:
    if tx.attendee_id is not None:
        return str(tx.attendee_id) == actor_id
    return bool(tx.payer_email) and f"guest:{tx.payer_email}" == actor_id


async def _recover_checkout(
    session: AsyncSession,
    record: IdempotencyRecord,
    transactions: TransactionRepository,
) -> Optional[Dict[str, Any]]:
    tx = await transactions.get_by_idempotency_key(session, record.idempotency_key, created_after=record.created_at)
    if tx is None or not tx.checkout_url or not _owned_by(tx, record.actor_id):
        return None
    meta = tx.meta or {}
    return {
        "transaction_id": tx.id,
        "body": checkout_response_body(
            checkout_url=tx.checkout_url,
            session_id=tx.session_id,
            provider=str(tx.provider),
            transaction_id=tx.id,
            gateway_selection=meta.get("gateway_selection") or {},
            gross_amount=tx.gross_amount,
            currency=tx.currency,
        ),
    }


async def sweep_stale_idempotency_records(
    session: AsyncSession,
    settings: Optional[PaymentsSettings] = None,
    limit: int = 100,
) -> Dict[str, int]:
    """Devuelve {'recovered': n, 'failed': n, 'skipped': n}."""
    settings = settings or get_payments_settings()
    ledger = IdempotencyLedger(settings)
    records_repo = IdempotencyRepository()
    transactions = TransactionRepository()

    cutoff = utcnow() - timedelta(seconds=settings.idempotency_stale_after_seconds)
    stale = list(await records_repo.list_stale_processing(session, cutoff, limit=limit))
    stats = {"recovered": 0, "failed": 0, "skipped": 0}

    for record in stale:
        record_id = record.id
        recovered = None
        if record.operation_scope == CHECKOUT_SCOPE:
            recovered = await _recover_checkout(session, record, transactions)

        if recovered is not None:
            applied = await ledger.finalize(
                session,
                record_id,
                IdempotencyStatus.COMPLETED,
                200,
                dump_body(recovered["body"]),
                recovered["transaction_id"],
            )
            stats["recovered" if applied else "skipped"] += 1
        else:
            applied = await ledger.finalize(session, record_id, IdempotencyStatus.FAILED, 500, INTERRUPTED_BODY)
            stats["failed" if applied else "skipped"] += 1

    if stale:
        logger.info(
            "[idempotency_sweep] stale=%d recovered=%d failed=%d skipped=%d",
            len(stale), stats["recovered"], stats["failed"], stats["skipped"],
        )
    return stats


async def run_idempotency_sweep(
    session_factory: Callable[[], AsyncContextManager[AsyncSession]] = session_scope,
) -> Dict[str, int]:
    """Entrada del scheduler: abre su propia sesión."""
    async with session_factory() as session:
        return await sweep_stale_idempotency_records(session)


def register_idempotency_sweep_job(scheduler, settings: Optional[PaymentsSettings] = None) -> str:
    settings = settings or get_payments_settings()
    scheduler.add_interval_job(
        func=run_idempotency_sweep,
        job_id=JOB_ID,
        seconds=settings.idempotency_sweep_interval_seconds,
    )
    logger.info(
        "[idempotency_sweep] Job '%s' registered: every %ds",
        JOB_ID, settings.idempotency_sweep_interval_seconds,
    )
    return JOB_ID


__all__ = [
    "JOB_ID",
    "INTERRUPTED_BODY",
    "sweep_stale_idempotency_records",
    "run_idempotency_sweep",
    "register_idempotency_sweep_job",
]

# Fin del archivo backend/app/modules/payments/facades/reconciliation/idempotency_sweep.py
