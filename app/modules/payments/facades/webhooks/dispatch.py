# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/webhooks/dispatch.py

Aplicación de eventos normalizados al estado local.

- payment_succeeded: re-verificación con el proveedor (nunca se confía en
  el monto del body) -> Transaction `succeeded` -> entitlements + diario,
  todo en un solo commit.
- payment_failed: Transaction `failed` (solo desde `pending`).
- payment_refunded: asiento de reverso + metadata.refund.
- payout_updated: estado del Payout.
- account_updated: habilita/pausa la wallet de la cuenta conectada.
- subscription_changed: upsert canónico compartido con la verificación
  manual (services/recurring_sync.py). Los cobros de renovación manual
  se re-verifican con el proveedor y se comparan con el precio esperado
  (services/manual_renewal.py).

Ninguna llamada al proveedor ocurre con una transacción del store
abierta.

Autor: EventShot Payments
Fecha: 2025-11-25
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import (
    JournalEntryType,
    PaymentProvider,
    PayoutStatus,
    SubscriptionScope,
    TransactionStatus,
    WalletStatus,
)
from app.modules.payments.facades.errors import AmountMismatchError
from app.modules.payments.models import Transaction
from app.modules.payments.providers.registry import ProviderRegistry
from app.modules.payments.repositories import (
    PayoutRepository,
    RecurringSubscriptionRepository,
    SubscriptionPlanRepository,
    TransactionRepository,
    WalletRepository,
)
from app.modules.payments.schemas import (
    AccountUpdated,
    Ignored,
    NormalizedEvent,
    PaymentFailed,
    PaymentRefunded,
    PaymentSucceeded,
    PayoutUpdated,
    SubscriptionChanged,
)
from app.modules.payments.services.entitlements import (
    apply_success_effects,
    record_journal_entries,
    refund_metadata,
)
from app.modules.payments.services.manual_renewal import (
    PAID_STATUSES,
    ensure_renewal_charge,
    expected_renewal_charge,
    renewal_period,
)
from app.modules.payments.services.recurring_sync import RecurringSubscriptionSync, SubscriptionSnapshot
from app.shared.database.base import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettlementResult:
    transaction_id: Optional[uuid.UUID]
    outcome: str
    status: Optional[str] = None


def _parse_scope(value: Any) -> Optional[SubscriptionScope]:
    try:
        return SubscriptionScope(str(value)) if value else None
    except ValueError:
        return None


def _parse_uuid(value: Any) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value)) if value else None
    except ValueError:
        return None


class WebhookDispatcher:
    def __init__(
        self,
        registry: ProviderRegistry,
        sync: Optional[RecurringSubscriptionSync] = None,
    ) -> None:
        self.registry = registry
        self.sync = sync or RecurringSubscriptionSync()
        self.transactions = TransactionRepository()
        self.payouts = PayoutRepository()
        self.wallets = WalletRepository()
        self.subscriptions = RecurringSubscriptionRepository()
        self.plans = SubscriptionPlanRepository()

    async def dispatch(self, session: AsyncSession, event: NormalizedEvent) -> str:
        """Aplica el evento; devuelve una etiqueta de resultado para logs/ledger."""
        if isinstance(event, PaymentSucceeded):
            return (await self._payment_succeeded(session, event)).outcome
        if isinstance(event, PaymentFailed):
            return await self._payment_failed(session, event)
        if isinstance(event, PaymentRefunded):
            return await self._payment_refunded(session, event)
        if isinstance(event, PayoutUpdated):
            return await self._payout_updated(session, event)
        if isinstance(event, AccountUpdated):
            return await self._account_updated(session, event)
        if isinstance(event, SubscriptionChanged):
            return await self._subscription_changed(session, event)
        if isinstance(event, Ignored):
            logger.info("[webhooks] ignored %s %s (%s)", event.provider, event.event_type, event.reason)
            return "ignored"
        raise TypeError(f"unsupported normalized event {type(event).__name__}")

    # ------------------------------------------------------------------
    # Transacciones
    # ------------------------------------------------------------------
    async def find_transaction(
        self,
        session: AsyncSession,
        provider: PaymentProvider,
        reference: Optional[str] = None,
        transaction_reference: Optional[str] = None,
        provider_transaction_id: Optional[str] = None,
    ) -> Optional[Transaction]:
        if reference:
            tx = await self.transactions.get_by_session(session, provider, reference)
            if tx is not None:
                return tx
        if transaction_reference:
            tx = await self.transactions.get_by_reference(session, transaction_reference)
            if tx is not None:
                return tx
        if provider_transaction_id:
            return await self.transactions.get_by_provider_transaction_id(session, provider, provider_transaction_id)
        return None

    async def settle_transaction(self, session: AsyncSession, tx: Transaction) -> SettlementResult:
        """
        Re-verifica una transacción pendiente con el proveedor y aplica el
        resultado. Compartido por el webhook y por la verificación manual.

        Raises:
            AmountMismatchError: el proveedor confirmó otro monto/moneda.
        """
        tx_id = tx.id
        if tx.status != TransactionStatus.PENDING:
            await session.commit()
            return SettlementResult(tx_id, f"already_{tx.status}", str(tx.status))

        provider = PaymentProvider(tx.provider)
        provider_reference = tx.session_id
        gross, currency = tx.gross_amount, tx.currency.upper()
        # Cierra la lectura: la llamada al proveedor va fuera del store
        await session.commit()

        verified = await self.registry.get(provider.value).verify_payment(provider_reference)

        if verified.status == "pending":
            logger.info("[webhooks] transaction=%s still pending at %s", tx_id, provider.value)
            return SettlementResult(tx_id, "pending", TransactionStatus.PENDING.value)

        if not verified.succeeded:
            changed = await self.transactions.mark_failed(session, tx_id, "provider_reported_failure")
            await session.commit()
            return SettlementResult(tx_id, "failed" if changed else "already_final", TransactionStatus.FAILED.value)

        if verified.amount != gross or (verified.currency or "").upper() != currency:
            logger.error(
                "[webhooks] amount mismatch transaction=%s expected=%s %s got=%s %s",
                tx_id, gross, currency, verified.amount, verified.currency,
            )
            raise AmountMismatchError(
                "Provider confirmed a different amount",
                transactionId=str(tx_id),
                expected={"amount": gross, "currency": currency},
                received={"amount": verified.amount, "currency": verified.currency},
            )

        provider_fee = verified.provider_fee if verified.provider_fee is not None else tx.provider_fee
        net_amount = gross - tx.platform_fee - provider_fee - tx.transaction_fee
        metadata: Dict[str, Any] = dict(tx.meta or {})
        metadata["verified_at"] = utcnow().isoformat()
        metadata["provider_fee_source"] = "provider" if verified.provider_fee is not None else "estimate"

        changed = await self.transactions.mark_succeeded(
            session,
            tx_id,
            provider_fee=provider_fee,
            net_amount=net_amount,
            provider_transaction_id=verified.provider_transaction_id,
            metadata=metadata,
        )
        if not changed:
            await session.rollback()
            return SettlementResult(tx_id, "already_final")

        await apply_success_effects(session, tx, provider_fee, net_amount)
        await session.commit()
        logger.info(
            "[webhooks] transaction=%s succeeded gross=%d net=%d %s",
            tx_id, gross, net_amount, currency,
        )
        return SettlementResult(tx_id, "succeeded", TransactionStatus.SUCCEEDED.value)

    async def _payment_succeeded(self, session: AsyncSession, event: PaymentSucceeded) -> SettlementResult:
        tx = await self.find_transaction(
            session, event.provider, event.reference, event.transaction_reference, event.provider_transaction_id
        )
        if tx is None:
            logger.warning(
                "[webhooks] %s %s: no transaction for reference=%s",
                event.provider, event.event_type, event.reference or event.transaction_reference,
            )
            return SettlementResult(None, "transaction_not_found")
        return await self.settle_transaction(session, tx)

    async def _payment_failed(self, session: AsyncSession, event: PaymentFailed) -> str:
        tx = await self.find_transaction(session, event.provider, event.reference, event.transaction_reference)
        if tx is None:
            return "transaction_not_found"
        changed = await self.transactions.mark_failed(session, tx.id, event.reason)
        await session.commit()
        return "failed" if changed else "already_final"

    async def _payment_refunded(self, session: AsyncSession, event: PaymentRefunded) -> str:
        tx = await self.find_transaction(
            session, event.provider, event.reference, event.transaction_reference, event.provider_transaction_id
        )
        if tx is None:
            return "transaction_not_found"
        previous = (tx.meta or {}).get("refund") or {}
        if event.refund_id and previous.get("refund_id") == event.refund_id:
            return "already_refunded"

        amount = event.amount if event.amount is not None else tx.gross_amount
        await record_journal_entries(session, tx, {JournalEntryType.REFUND: -int(amount)})
        await self.transactions.update_metadata(
            session,
            tx.id,
            refund_metadata(
                tx,
                {
                    "refund_id": event.refund_id,
                    "amount": int(amount),
                    "currency": event.currency or tx.currency,
                    "refunded_at": (event.occurred_at or utcnow()).isoformat(),
                },
            ),
        )
        await session.commit()
        logger.info("[webhooks] transaction=%s refunded amount=%s", tx.id, amount)
        return "refunded"

    # ------------------------------------------------------------------
    # Payouts y cuentas conectadas
    # ------------------------------------------------------------------
    async def _payout_updated(self, session: AsyncSession, event: PayoutUpdated) -> str:
        payout = await self.payouts.get_by_reference(session, event.provider, event.reference)
        if payout is None:
            logger.warning("[webhooks] payout %s:%s not found", event.provider, event.reference)
            return "payout_not_found"
        target = PayoutStatus.COMPLETED if event.succeeded else PayoutStatus.FAILED
        if payout.status == target:
            return "unchanged"
        payout.status = target
        payout.failure_reason = None if event.succeeded else (event.reason or "transfer_failed")
        payout.completed_at = utcnow()
        await session.commit()
        return f"payout_{target.value}"

    async def _account_updated(self, session: AsyncSession, event: AccountUpdated) -> str:
        wallet = await self.wallets.get_by_account_id(session, event.provider, event.account_id)
        if wallet is None:
            return "wallet_not_found"
        wallet.charges_enabled = event.charges_enabled
        wallet.payouts_enabled = event.payouts_enabled
        if wallet.status != WalletStatus.DISABLED:
            wallet.status = WalletStatus.ACTIVE if event.charges_enabled else WalletStatus.PENDING
        await session.commit()
        return f"wallet_{wallet.status}"

    # ------------------------------------------------------------------
    # Suscripciones
    # ------------------------------------------------------------------
    async def _subscription_changed(self, session: AsyncSession, event: SubscriptionChanged) -> str:
        fields = event.model_dump(exclude={"kind", "provider", "event_id", "event_type", "occurred_at"})
        metadata: Dict[str, Any] = dict(event.metadata or {})
        external_id = fields.get("external_subscription_id")

        if event.checkout_session_id:
            # checkout.session.completed (modo subscription): la suscripción
            # real se lee del proveedor antes de tocar el store
            remote = await self.registry.get(event.provider.value).fetch_subscription(
                event.external_subscription_id or event.checkout_session_id
            )
            metadata = {**metadata, **(remote.metadata or {})}
            fields.update(
                external_subscription_id=remote.external_subscription_id,
                provider_status=remote.status,
                external_plan_id=remote.external_plan_id,
                external_customer_id=remote.external_customer_id or event.external_customer_id,
                currency=remote.currency,
                amount_cents=remote.amount_cents,
                current_period_start=remote.current_period_start,
                current_period_end=remote.current_period_end,
                cancel_at_period_end=remote.cancel_at_period_end,
                canceled_at=remote.canceled_at,
            )
            external_id = remote.external_subscription_id

        paid_renewal = event.manual_renewal and fields.get("provider_status") in PAID_STATUSES
        paid_at = None
        if paid_renewal:
            # Renovación manual: el body del webhook no otorga nada por sí
            # mismo; monto, moneda y metadata salen del proveedor
            verified = await self.registry.get(event.provider.value).verify_payment(external_id)
            if not verified.succeeded:
                logger.warning(
                    "[webhooks] %s %s: charge %s not confirmed by provider (status=%s)",
                    event.provider, event.event_type, external_id, verified.status,
                )
                return "subscription_payment_not_verified"
            metadata = {**metadata, **(verified.metadata or {})}
            fields.update(currency=verified.currency, amount_cents=verified.amount)
            paid_at = verified.paid_at or event.occurred_at

        scope = _parse_scope(metadata.get("scope"))
        owner_user_id = _parse_uuid(metadata.get("owner_user_id"))
        record = None
        if scope is not None and owner_user_id is not None:
            record = await self.subscriptions.get_for_owner(session, owner_user_id, scope)
        elif external_id:
            record = await self.subscriptions.get_by_external_id(session, event.provider, external_id)
            if record is not None and scope is None:
                scope = SubscriptionScope(record.scope)
        if scope is None:
            logger.warning(
                "[webhooks] %s %s: cannot resolve subscription scope (external_id=%s)",
                event.provider, event.event_type, external_id,
            )
            return "subscription_not_found"

        plan_code = metadata.get("plan_code")
        billing_cycle = metadata.get("billing_cycle")
        plan = await self.plans.get_active(session, plan_code, scope) if plan_code else None
        plan_id = plan.id if plan is not None else None

        period_start = fields.get("current_period_start")
        period_end = fields.get("current_period_end")
        cancel_at_period_end = fields.get("cancel_at_period_end")
        if paid_renewal:
            ensure_renewal_charge(
                expected_renewal_charge(record, external_id, plan, billing_cycle, fields.get("currency")),
                fields.get("amount_cents"),
                fields.get("currency"),
                external_id,
            )
            period_start, period_end = renewal_period(billing_cycle, paid_at, record, external_id)
            cancel_at_period_end = True

        if event.manual_renewal:
            metadata["manual_renewal"] = True

        result = await self.sync.upsert(
            session,
            SubscriptionSnapshot(
                scope=scope,
                provider=event.provider,
                owner_user_id=owner_user_id,
                plan_code=plan_code,
                plan_id=plan_id,
                billing_cycle=billing_cycle,
                external_subscription_id=external_id,
                external_plan_id=fields.get("external_plan_id"),
                external_customer_id=fields.get("external_customer_id"),
                currency=fields.get("currency"),
                amount_cents=fields.get("amount_cents"),
                provider_status=fields.get("provider_status"),
                current_period_start=period_start,
                current_period_end=period_end,
                cancel_at_period_end=cancel_at_period_end,
                canceled_at=fields.get("canceled_at"),
                event_at=paid_at or event.occurred_at or utcnow(),
                event_type=event.event_type,
                metadata={k: v for k, v in metadata.items() if k not in ("owner_user_id", "scope")},
            ),
        )
        return f"subscription_{result.reason}"


__all__ = ["SettlementResult", "WebhookDispatcher"]

# Fin del archivo backend/app/modules/payments/facades/webhooks/dispatch.py
