# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/idempotency_ledger.py

Ledger de idempotencia para operaciones con efectos en proveedores.

Contrato:
- claim(scope, actor, key, hash): INSERT de una fila `processing`; en
  violación de unicidad hace rollback, relee la fila existente y toca
  last_seen_at.
- resolve_existing(record, hash):
    hash distinto          -> 409 idempotency_key_reused
    completed              -> replay byte a byte (body + código)
    failed                 -> replay del error; 5xx se re-reclama si
                              retry_transient_failures está activo
    processing             -> espera acotada y replay, o 409 in-flight
- finalize(record_id, ...): UPDATE ... WHERE status='processing'.
  Llamadas posteriores son no-op y devuelven False.
- guard(claim): context manager async que finaliza como `failed` en
  cualquier salida sin finalize (incluidas excepciones).
- La referencia enviada al proveedor se deriva del registro: reintentar
  tras un 5xx reenvía los mismos parámetros con la misma clave de
  idempotencia del proveedor.

Cada paso hace commit propio: la llamada al proveedor ocurre fuera de
cualquier transacción del store.

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import IdempotencyStatus
from app.modules.payments.facades.errors import IdempotencyConflictError, PaymentsError
from app.modules.payments.metrics import idempotency_outcomes_total
from app.modules.payments.models import IdempotencyRecord
from app.modules.payments.repositories import IdempotencyRepository
from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings

logger = logging.getLogger(__name__)

REPLAY_HEADER = "Idempotency-Replayed"


def dump_body(payload: Mapping[str, Any]) -> str:
    """Serialización compacta y estable; es el texto que se guarda y se replaya."""
    return json.dumps(payload, separators=(",", ":"), sort_keys=True, default=str)


def request_hash(payload: Mapping[str, Any]) -> str:
    """sha256 de la forma JSON estable del payload normalizado."""
    return hashlib.sha256(dump_body(payload).encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class IdempotencyClaim:
    claimed: bool
    record_id: uuid.UUID
    existing: Optional[IdempotencyRecord] = None

    def reference(self, prefix: str) -> str:
        """Referencia de proveedor estable por registro (igual en un reclaim)."""
        return f"{prefix}_{self.record_id.hex}"


@dataclass(frozen=True)
class IdempotencyReplay:
    """Respuesta almacenada que se devuelve tal cual."""

    status_code: int
    body: str
    record_status: IdempotencyStatus

    @property
    def headers(self) -> dict[str, str]:
        return {REPLAY_HEADER: "true"}


Resolution = Union[IdempotencyReplay, IdempotencyClaim]


class IdempotencyGuard:
    """
    Estado de un claim dentro de `IdempotencyLedger.guard()`.

    El orquestador llama complete()/fail() exactamente una vez; si no lo
    hace, el guard finaliza como failed al salir del bloque.
    """

    def __init__(self, ledger: "IdempotencyLedger", session: AsyncSession, claim: IdempotencyClaim) -> None:
        self._ledger = ledger
        self._session = session
        self.claim = claim
        self.finalized = False

    async def complete(
        self,
        response_code: int,
        body: str,
        transaction_id: Optional[uuid.UUID] = None,
    ) -> bool:
        self.finalized = True
        return await self._ledger.finalize(
            self._session,
            self.claim.record_id,
            IdempotencyStatus.COMPLETED,
            response_code,
            body,
            transaction_id,
        )

    async def fail(self, response_code: int, body: str) -> bool:
        self.finalized = True
        return await self._ledger.finalize(
            self._session,
            self.claim.record_id,
            IdempotencyStatus.FAILED,
            response_code,
            body,
        )


class IdempotencyLedger:
    """Claim / resolve / finalize sobre idempotency_records."""

    def __init__(
        self,
        settings: Optional[PaymentsSettings] = None,
        repo: Optional[IdempotencyRepository] = None,
    ) -> None:
        self.settings = settings or get_payments_settings()
        self.repo = repo or IdempotencyRepository()

    # ------------------------------------------------------------------
    # Lecturas
    # ------------------------------------------------------------------
    async def peek(
        self,
        session: AsyncSession,
        scope: str,
        actor_id: str,
        key: str,
    ) -> Optional[IdempotencyRecord]:
        """Lectura sin efectos (pre-check antes de validar el request)."""
        return await self.repo.get_by_key(session, scope, actor_id, key)

    # ------------------------------------------------------------------
    # Claim
    # ------------------------------------------------------------------
    async def claim(
        self,
        session: AsyncSession,
        scope: str,
        actor_id: str,
        key: str,
        req_hash: str,
    ) -> IdempotencyClaim:
        try:
            record = await self.repo.create(
                session,
                operation_scope=scope,
                actor_id=actor_id,
                idempotency_key=key,
                request_hash=req_hash,
                status=IdempotencyStatus.PROCESSING,
            )
            record_id = record.id
            await session.commit()
        except IntegrityError:
            await session.rollback()
            existing = await self.repo.get_by_key(session, scope, actor_id, key)
            if existing is None:
                raise
            await self.repo.touch(session, existing.id)
            await session.commit()
            logger.info("[idempotency] key already claimed scope=%s key=%s status=%s", scope, key, existing.status)
            return IdempotencyClaim(claimed=False, record_id=existing.id, existing=existing)

        idempotency_outcomes_total.labels("claimed").inc()
        logger.debug("[idempotency] claimed scope=%s actor=%s key=%s", scope, actor_id, key)
        return IdempotencyClaim(claimed=True, record_id=record_id)

    # ------------------------------------------------------------------
    # Resolución de un registro existente
    # ------------------------------------------------------------------
    async def resolve_existing(
        self,
        session: AsyncSession,
        record: IdempotencyRecord,
        req_hash: str,
    ) -> Resolution:
        """
        Decide qué hacer con un registro ya existente.

        Returns:
            IdempotencyReplay para replays, o IdempotencyClaim(claimed=True)
            si un failed transitorio fue re-reclamado.

        Raises:
            IdempotencyConflictError: clave reutilizada o request en vuelo.
        """
        if record.request_hash != req_hash:
            idempotency_outcomes_total.labels("conflict").inc()
            raise IdempotencyConflictError(
                "Idempotency-Key was already used with a different request payload",
                error="idempotency_key_reused",
            )

        record = await self._wait_if_processing(session, record)
        status = IdempotencyStatus(record.status)

        if status == IdempotencyStatus.COMPLETED:
            idempotency_outcomes_total.labels("replayed").inc()
            return self._replay(record)

        if status == IdempotencyStatus.FAILED:
            code = record.response_code or 500
            if self.settings.idempotency_retry_transient_failures and code >= 500:
                if await self.repo.reclaim_failed(session, record.id):
                    await session.commit()
                    idempotency_outcomes_total.labels("reclaimed").inc()
                    logger.info("[idempotency] reclaimed transient failure key=%s code=%s", record.idempotency_key, code)
                    return IdempotencyClaim(claimed=True, record_id=record.id)
                # Otro request lo re-reclamó primero
                await session.commit()
                idempotency_outcomes_total.labels("in_flight").inc()
                raise self._in_flight()
            idempotency_outcomes_total.labels("replayed").inc()
            return self._replay(record)

        idempotency_outcomes_total.labels("in_flight").inc()
        raise self._in_flight()

    async def _wait_if_processing(self, session: AsyncSession, record: IdempotencyRecord) -> IdempotencyRecord:
        if record.status != IdempotencyStatus.PROCESSING:
            return record
        deadline = time.monotonic() + max(0.0, self.settings.idempotency_inflight_wait_seconds)
        interval = max(0.01, self.settings.idempotency_poll_interval_seconds)
        while time.monotonic() < deadline:
            await asyncio.sleep(interval)
            await session.refresh(record)
            if record.status != IdempotencyStatus.PROCESSING:
                break
        return record

    @staticmethod
    def _replay(record: IdempotencyRecord) -> IdempotencyReplay:
        return IdempotencyReplay(
            status_code=record.response_code or 500,
            body=record.response_body or dump_body({"error": "checkout_failed", "message": "Checkout failed"}),
            record_status=IdempotencyStatus(record.status),
        )

    @staticmethod
    def _in_flight() -> IdempotencyConflictError:
        return IdempotencyConflictError(
            "A request with this Idempotency-Key is still being processed",
            error="idempotency_request_in_flight",
        )

    # ------------------------------------------------------------------
    # Finalize + guard
    # ------------------------------------------------------------------
    async def finalize(
        self,
        session: AsyncSession,
        record_id: uuid.UUID,
        status: IdempotencyStatus,
        response_code: int,
        body: str,
        transaction_id: Optional[uuid.UUID] = None,
    ) -> bool:
        updated = await self.repo.finalize(session, record_id, status, response_code, body, transaction_id)
        await session.commit()
        if not updated:
            logger.debug("[idempotency] finalize no-op record=%s", record_id)
        return updated

    @asynccontextmanager
    async def guard(self, session: AsyncSession, claim: IdempotencyClaim) -> AsyncIterator[IdempotencyGuard]:
        """
        Garantiza que el registro no quede en `processing` al salir.

        - PaymentsError: se guarda su payload y status (el replay devuelve
          el mismo error).
        - Cualquier otra excepción o salida sin finalize: 500 checkout_failed.
        """
        state = IdempotencyGuard(self, session, claim)
        try:
            yield state
        except PaymentsError as exc:
            if not state.finalized:
                await session.rollback()
                await state.fail(exc.status_code, dump_body(exc.to_payload()))
            raise
        except Exception:
            if not state.finalized:
                await session.rollback()
                await state.fail(500, dump_body({"error": "checkout_failed", "message": "Checkout failed"}))
            raise
        else:
            if not state.finalized:
                logger.error("[idempotency] block exited without finalize record=%s", claim.record_id)
                await state.fail(500, dump_body({"error": "checkout_failed", "message": "Checkout failed"}))


__all__ = [
    "REPLAY_HEADER",
    "dump_body",
    "request_hash",
    "IdempotencyClaim",
    "IdempotencyReplay",
    "IdempotencyGuard",
    "IdempotencyLedger",
]

# Fin del archivo backend/app/modules/payments/services/idempotency_ledger.py
