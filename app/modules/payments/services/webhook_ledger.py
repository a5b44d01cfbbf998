# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/webhook_ledger.py

Ledger de eventos de webhook: claim / mark processed / mark failed.

Identidad: (provider, provider_event_id). Un evento se procesa a lo sumo
una vez; los replays de un evento `processed` se responden 200 sin volver
a ejecutar efectos.

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.base import utcnow
from app.modules.payments.enums import PaymentProvider, WebhookEventStatus
from app.modules.payments.repositories import WebhookEventRepository
from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings

logger = logging.getLogger(__name__)


class ClaimOutcome(str, enum.Enum):
    CLAIMED = "claimed"
    RECLAIMED = "reclaimed"
    ALREADY_PROCESSED = "already_processed"
    IN_FLIGHT = "in_flight"


@dataclass(frozen=True)
class WebhookClaim:
    outcome: ClaimOutcome
    event_id: uuid.UUID
    status: WebhookEventStatus

    @property
    def should_process(self) -> bool:
        return self.outcome in (ClaimOutcome.CLAIMED, ClaimOutcome.RECLAIMED)


class WebhookLedger:
    def __init__(
        self,
        settings: Optional[PaymentsSettings] = None,
        repo: Optional[WebhookEventRepository] = None,
    ) -> None:
        self.settings = settings or get_payments_settings()
        self.repo = repo or WebhookEventRepository()

    async def claim(
        self,
        session: AsyncSession,
        provider: PaymentProvider,
        provider_event_id: str,
        event_type: str,
        payload: Optional[Dict[str, Any]],
        signature_verified: bool,
    ) -> WebhookClaim:
        try:
            event = await self.repo.create(
                session,
                provider=provider,
                provider_event_id=provider_event_id,
                event_type=event_type[:120],
                payload=payload,
                signature_verified=signature_verified,
                status=WebhookEventStatus.CLAIMED,
            )
            event_id = event.id
            await session.commit()
            return WebhookClaim(ClaimOutcome.CLAIMED, event_id, WebhookEventStatus.CLAIMED)
        except IntegrityError:
            await session.rollback()

        existing = await self.repo.get_by_identity(session, provider, provider_event_id)
        if existing is None:
            raise RuntimeError(f"webhook event {provider}:{provider_event_id} vanished after conflict")

        status = WebhookEventStatus(existing.status)
        if status == WebhookEventStatus.PROCESSED:
            logger.info("[webhook] replay of processed event %s:%s", provider, provider_event_id)
            return WebhookClaim(ClaimOutcome.ALREADY_PROCESSED, existing.id, status)

        stale_before = utcnow() - timedelta(seconds=self.settings.webhook_claim_stale_seconds)
        if await self.repo.reclaim(session, existing.id, stale_before):
            await session.commit()
            logger.info(
                "[webhook] reclaimed event %s:%s (previous status=%s, attempt=%d)",
                provider, provider_event_id, status, (existing.attempts or 0) + 1,
            )
            return WebhookClaim(ClaimOutcome.RECLAIMED, existing.id, WebhookEventStatus.CLAIMED)

        await session.commit()
        return WebhookClaim(ClaimOutcome.IN_FLIGHT, existing.id, status)

    async def mark_processed(self, session: AsyncSession, event_id: uuid.UUID) -> None:
        await self.repo.mark(session, event_id, WebhookEventStatus.PROCESSED)
        await session.commit()

    async def mark_failed(self, session: AsyncSession, event_id: uuid.UUID, error: str) -> None:
        await self.repo.mark(session, event_id, WebhookEventStatus.FAILED, error=error[:2000])
        await session.commit()


__all__ = ["ClaimOutcome", "WebhookClaim", "WebhookLedger"]

# Fin del archivo backend/app/modules/payments/services/webhook_ledger.py
