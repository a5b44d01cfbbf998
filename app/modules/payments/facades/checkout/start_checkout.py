# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/checkout/start_checkout.py

Fachada de alto nivel para el checkout de compra única de medios.

Orquesta (en orden):
 1. rate limit por IP (dependencia de la ruta)
 -  pre-check de idempotencia (lectura sin efectos)
 2. evento activo
 3. plan de creador pagado del fotógrafo
 4. moneda efectiva + selección de pasarela
 5. wallet activa del fotógrafo para la pasarela
 6. medios del evento y no comprados previamente
 7. precio base + comisiones
 8. claim de idempotencia (a partir de aquí todo sale por el guard)
 9. sesión en el proveedor (acotada por provider_timeout_seconds)
10. Transaction `pending` (sesión única por proveedor)
11. finalize `completed` con la respuesta serializada

Ninguna transacción del store queda abierta durante la llamada al
proveedor: el claim hace commit antes y el INSERT ocurre después.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import (
    PaymentProvider,
    SubscriptionScope,
    SubscriptionStatus,
    TransactionStatus,
)
from app.modules.payments.facades.checkout.dto import (
    CheckoutActor,
    CheckoutOutcome,
    CheckoutPlan,
)
from app.modules.payments.facades.errors import PaymentsError
from app.modules.payments.metrics import checkout_sessions_total
from app.modules.payments.models import SESSION_COLUMN_BY_PROVIDER, UserPaymentPreference
from app.modules.payments.providers.base import CheckoutSession, PaymentCheckoutParams
from app.modules.payments.providers.registry import ProviderRegistry
from app.modules.payments.repositories import (
    EntitlementRepository,
    EventRepository,
    RecurringSubscriptionRepository,
    TransactionRepository,
    WalletRepository,
)
from app.modules.payments.schemas import CheckoutRequest
from app.modules.payments.services.bulk_pricing import compute_base_price
from app.modules.payments.services.currency_service import CurrencyService, effective_currency
from app.modules.payments.services.fee_calculator import calculate_fees, load_region_fees
from app.modules.payments.services.gateway_selector import (
    PRODUCT_PAYEE,
    build_context,
    load_payee_gateways,
    select_gateway,
)
from app.modules.payments.services.idempotency_ledger import (
    IdempotencyClaim,
    IdempotencyGuard,
    IdempotencyLedger,
    IdempotencyReplay,
    dump_body,
    request_hash,
)
from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings

logger = logging.getLogger(__name__)

CHECKOUT_SCOPE = "checkout"
_STRIPE_METADATA_VALUE_LIMIT = 500


def _replay_outcome(replay: IdempotencyReplay, extra_headers: Dict[str, str]) -> CheckoutOutcome:
    return CheckoutOutcome(
        status_code=replay.status_code,
        body=replay.body,
        headers={**extra_headers, **replay.headers},
    )


def provider_metadata(
    reference: str,
    plan: CheckoutPlan,
    actor: CheckoutActor,
    idempotency_key: str,
) -> Dict[str, str]:
    """Metadata plana (str -> str) que viaja con la sesión del proveedor."""
    meta: Dict[str, str] = {
        "transaction_reference": reference,
        "event_id": str(plan.event.id),
        "wallet_id": str(plan.wallet.id),
        "event_currency": plan.fees.event_currency,
        "exchange_rate": str(plan.fees.exchange_rate),
        "idempotency_key": idempotency_key,
    }
    if actor.user_id is not None:
        meta["attendee_id"] = str(actor.user_id)
    if plan.payer_email:
        meta["payer_email"] = plan.payer_email
    if plan.unlock_all:
        meta["unlock_all"] = "true"
    else:
        joined = ",".join(str(m) for m in plan.media_ids)
        if len(joined) <= _STRIPE_METADATA_VALUE_LIMIT:
            meta["media_ids"] = joined
        meta["media_count"] = str(len(plan.media_ids))
    return meta


def checkout_response_body(
    *,
    checkout_url: str,
    session_id: str,
    provider: str,
    transaction_id: uuid.UUID,
    gateway_selection: Dict[str, Any],
    gross_amount: int,
    currency: str,
) -> Dict[str, Any]:
    """Respuesta 200 del checkout (también la reconstruye el sweep de idempotencia)."""
    return {
        "checkoutUrl": checkout_url,
        "sessionId": session_id,
        "provider": provider,
        "transactionId": str(transaction_id),
        "gatewaySelection": gateway_selection,
        "amount": {"gross": gross_amount, "currency": currency},
    }


class CheckoutOrchestrator:
    """Checkout de compra única con idempotencia de extremo a extremo."""

    def __init__(
        self,
        registry: ProviderRegistry,
        settings: Optional[PaymentsSettings] = None,
        ledger: Optional[IdempotencyLedger] = None,
        currency_service: Optional[CurrencyService] = None,
    ) -> None:
        self.registry = registry
        self.settings = settings or get_payments_settings()
        self.ledger = ledger or IdempotencyLedger(self.settings)
        self.currency_service = currency_service or CurrencyService()
        self.events = EventRepository()
        self.wallets = WalletRepository()
        self.entitlements = EntitlementRepository()
        self.subscriptions = RecurringSubscriptionRepository()
        self.transactions = TransactionRepository()

    # ------------------------------------------------------------------
    # Entrada
    # ------------------------------------------------------------------
    async def run(
        self,
        session: AsyncSession,
        *,
        payload: CheckoutRequest,
        actor: CheckoutActor,
        idempotency_key: str,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> CheckoutOutcome:
        extra_headers = dict(extra_headers or {})
        req_hash = request_hash(payload.normalized())

        claim: Optional[IdempotencyClaim] = None
        existing = await self.ledger.peek(session, CHECKOUT_SCOPE, actor.actor_id, idempotency_key)
        if existing is not None:
            resolution = await self.ledger.resolve_existing(session, existing, req_hash)
            if isinstance(resolution, IdempotencyReplay):
                logger.info("[checkout] replay key=%s actor=%s", idempotency_key, actor.actor_id)
                return _replay_outcome(resolution, extra_headers)
            claim = resolution

        if claim is None:
            plan = await self.prepare(session, payload, actor)
            claim = await self.ledger.claim(session, CHECKOUT_SCOPE, actor.actor_id, idempotency_key, req_hash)
            if not claim.claimed:
                resolution = await self.ledger.resolve_existing(session, claim.existing, req_hash)
                if isinstance(resolution, IdempotencyReplay):
                    return _replay_outcome(resolution, extra_headers)
                claim = resolution
            async with self.ledger.guard(session, claim) as guard:
                outcome = await self.execute(session, plan, actor, idempotency_key, guard)
        else:
            # Fallo transitorio re-reclamado en el pre-check: las
            # validaciones ya corren bajo el guard.
            async with self.ledger.guard(session, claim) as guard:
                plan = await self.prepare(session, payload, actor)
                outcome = await self.execute(session, plan, actor, idempotency_key, guard)

        outcome.headers = {**extra_headers, **outcome.headers}
        return outcome

    # ------------------------------------------------------------------
    # Pasos 2-7
    # ------------------------------------------------------------------
    async def prepare(
        self,
        session: AsyncSession,
        payload: CheckoutRequest,
        actor: CheckoutActor,
    ) -> CheckoutPlan:
        # 2) Evento activo
        event = await self.events.get_active(session, payload.event_id)
        if event is None:
            raise PaymentsError("Event not found", status_code=404, error="event_not_found")

        # 3) Plan del fotógrafo
        creator_plan = await self.subscriptions.get_for_owner(
            session, event.photographer_id, SubscriptionScope.CREATOR
        )
        if (
            creator_plan is None
            or creator_plan.status not in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)
            or (creator_plan.plan_code or "").lower() == "free"
        ):
            raise PaymentsError(
                "The photographer's plan does not allow paid sales",
                status_code=403,
                error="creator_subscription_required",
            )
        plan_code = creator_plan.plan_code

        # 4) Moneda + pasarela
        preference: Optional[UserPaymentPreference] = None
        if actor.user_id is not None:
            preference = await session.get(UserPaymentPreference, actor.user_id)

        currency = effective_currency(
            payload.currency,
            preference.preferred_currency if preference else None,
            event.country_code,
            event.currency,
        )
        payee_gateways = await load_payee_gateways(session, event.photographer_id)
        selection = select_gateway(
            build_context(
                self.settings,
                product_type=PRODUCT_PAYEE,
                payee_gateways=payee_gateways,
                requested_gateway=payload.provider.value if payload.provider else None,
                user_preference=(
                    PaymentProvider(preference.preferred_gateway).value
                    if preference and preference.preferred_gateway
                    else None
                ),
                country_code=event.country_code,
                currency=currency,
            )
        )
        gateway = selection.gateway

        # 5) Wallet para la pasarela
        wallet = await self.wallets.get_active_for_provider(session, event.photographer_id, PaymentProvider(gateway))
        if wallet is None:
            alternatives = [g for g in selection.available_gateways if g != gateway and g in payee_gateways]
            if alternatives:
                raise PaymentsError(
                    f"The photographer cannot receive payments with {gateway}",
                    status_code=400,
                    error="payment_method_unavailable",
                    provider=gateway,
                    suggestedProvider=alternatives[0],
                )
            raise PaymentsError(
                "The photographer has no payment method configured",
                status_code=400,
                error="no_payment_method_configured",
                provider=gateway,
            )

        # 6) Medios
        payer_email = actor.email or (preference.email if preference else None)
        has_bulk, owned = await self.entitlements.owned_media(session, event.id, actor.user_id, actor.email)
        media_ids: List[uuid.UUID] = []
        if payload.unlock_all:
            if has_bulk:
                raise PaymentsError("You already own every photo of this event", status_code=400, error="already_owned")
        else:
            media_ids = payload.unique_media_ids()
            in_event = await self.events.media_ids_in_event(session, event.id, media_ids)
            invalid = [str(m) for m in media_ids if m not in in_event]
            if invalid:
                raise PaymentsError(
                    "Some media do not belong to this event",
                    status_code=400,
                    error="invalid_media",
                    invalidMediaIds=invalid,
                )
            already = media_ids if has_bulk else [m for m in media_ids if m in owned]
            if already:
                raise PaymentsError(
                    "Some media are already owned",
                    status_code=400,
                    error="already_owned",
                    alreadyOwned=[str(m) for m in already],
                )

        # 7) Precio + comisiones
        base_price = compute_base_price(event, len(media_ids), payload.unlock_all)
        rate = None
        if currency != event.currency.upper():
            rate = await self.currency_service.get_exchange_rate(session, event.currency, currency)
        region = await load_region_fees(session, event.country_code)
        fees = calculate_fees(
            base_price,
            event.currency,
            currency,
            gateway,
            plan_code=plan_code,
            region=region,
            exchange_rate=rate,
        )

        return CheckoutPlan(
            event=event,
            wallet=wallet,
            selection=selection,
            fees=fees,
            media_ids=media_ids,
            unlock_all=payload.unlock_all,
            payer_email=payer_email,
        )

    # ------------------------------------------------------------------
    # Pasos 9-11 (bajo el guard)
    # ------------------------------------------------------------------
    async def execute(
        self,
        session: AsyncSession,
        plan: CheckoutPlan,
        actor: CheckoutActor,
        idempotency_key: str,
        guard: IdempotencyGuard,
    ) -> CheckoutOutcome:
        gateway = plan.selection.gateway
        reference = guard.claim.reference("tx")
        fees = plan.fees

        # Valores planos: un rollback posterior expira los objetos ORM
        event_id = plan.event.id
        event_name = plan.event.name
        wallet_id = plan.wallet.id
        account_id = plan.wallet.account_id

        base_url = self.settings.frontend_url
        params = PaymentCheckoutParams(
            reference=reference,
            amount=fees.gross_amount,
            currency=fees.currency,
            description=(
                f"{event_name} - all photos" if plan.unlock_all else f"{event_name} - {len(plan.media_ids)} photo(s)"
            ),
            success_url=f"{base_url}/events/{event_id}/checkout/success?reference={reference}",
            cancel_url=f"{base_url}/events/{event_id}/checkout/cancel?reference={reference}",
            customer_email=plan.payer_email,
            metadata=provider_metadata(reference, plan, actor, idempotency_key),
            idempotency_key=idempotency_key,
            connected_account_id=account_id if gateway == PaymentProvider.STRIPE else None,
            application_fee_amount=fees.platform_fee + fees.transaction_fee,
        )

        # 9) Proveedor (fuera de cualquier transacción del store)
        try:
            provider_session: CheckoutSession = await self.registry.get(gateway).create_checkout(params)
        except PaymentsError as exc:
            checkout_sessions_total.labels(gateway, exc.error).inc()
            raise

        # 10) Transaction pending
        transaction_id, checkout_url, session_id = await self._insert_transaction(
            session, plan, actor, idempotency_key, reference, provider_session, event_id, wallet_id
        )

        # 11) Respuesta final
        body = checkout_response_body(
            checkout_url=checkout_url,
            session_id=session_id,
            provider=gateway,
            transaction_id=transaction_id,
            gateway_selection=plan.selection.to_dict(),
            gross_amount=fees.gross_amount,
            currency=fees.currency,
        )
        body_text = dump_body(body)
        await guard.complete(200, body_text, transaction_id)
        checkout_sessions_total.labels(gateway, "created").inc()
        logger.info(
            "[checkout] created transaction=%s provider=%s gross=%d %s",
            transaction_id, gateway, fees.gross_amount, fees.currency,
        )
        return CheckoutOutcome(status_code=200, body=body_text)

    async def _insert_transaction(
        self,
        session: AsyncSession,
        plan: CheckoutPlan,
        actor: CheckoutActor,
        idempotency_key: str,
        reference: str,
        provider_session: CheckoutSession,
        event_id: uuid.UUID,
        wallet_id: uuid.UUID,
    ) -> tuple[uuid.UUID, str, str]:
        """
        INSERT de la transacción pendiente.

        Si la sesión del proveedor ya está registrada (retry con la misma
        clave que el proveedor deduplicó), se reutiliza la URL guardada.
        """
        gateway = PaymentProvider(plan.selection.gateway)
        fees = plan.fees
        meta: Dict[str, Any] = {
            "media_ids": [str(m) for m in plan.media_ids],
            "unlock_all": plan.unlock_all,
            "fees": fees.to_dict(),
            "checkout_url": provider_session.checkout_url,
            "idempotency_key": idempotency_key,
            "gateway_selection": plan.selection.to_dict(),
        }
        values: Dict[str, Any] = {
            "transaction_reference": reference,
            "event_id": event_id,
            "wallet_id": wallet_id,
            "attendee_id": actor.user_id,
            "payer_email": plan.payer_email,
            "provider": gateway,
            SESSION_COLUMN_BY_PROVIDER[gateway]: provider_session.session_id,
            "gross_amount": fees.gross_amount,
            "original_amount": fees.original_amount,
            "platform_fee": fees.platform_fee,
            "provider_fee": fees.provider_fee,
            "transaction_fee": fees.transaction_fee,
            "net_amount": fees.net_amount,
            "currency": fees.currency,
            "event_currency": fees.event_currency,
            "exchange_rate": fees.exchange_rate,
            "status": TransactionStatus.PENDING,
            "idempotency_key": idempotency_key,
            "meta": meta,
        }

        try:
            transaction = await self.transactions.create(session, **values)
            transaction_id = transaction.id
            await session.commit()
            return transaction_id, provider_session.checkout_url, provider_session.session_id
        except IntegrityError:
            await session.rollback()

        existing = await self.transactions.get_by_session(session, gateway, provider_session.session_id)
        if existing is None or not existing.checkout_url:
            raise PaymentsError(
                "Checkout session could not be recorded",
                status_code=500,
                error="checkout_failed",
            )
        logger.info(
            "[checkout] provider session %s already recorded as transaction=%s",
            provider_session.session_id, existing.id,
        )
        return existing.id, existing.checkout_url, provider_session.session_id


__all__ = ["CHECKOUT_SCOPE", "CheckoutOrchestrator", "checkout_response_body", "provider_metadata"]

# Fin del archivo backend/app/modules/payments/facades/checkout/start_checkout.py
