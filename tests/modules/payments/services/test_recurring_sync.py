# -*- coding: utf-8 -*-
"""
backend/tests/modules/payments/services/test_recurring_sync.py

Tests del registro canónico de suscripciones: mapeo de estados,
upsert con guardas de orden y claim de checkout pendiente.

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from app.modules.payments.enums import (
    BillingCycle,
    PaymentProvider,
    SubscriptionScope,
    SubscriptionStatus,
)
from app.modules.payments.services.recurring_sync import (
    RecurringSubscriptionSync,
    SubscriptionSnapshot,
    attendee_feature_flags,
    canceled_status_for,
    manual_renewal_window,
    map_provider_status,
    serialize_subscription,
)

T0 = datetime(2025, 11, 1, tzinfo=timezone.utc)


def _snapshot(owner, **kwargs) -> SubscriptionSnapshot:
    data = dict(
        scope=SubscriptionScope.ATTENDEE,
        provider=PaymentProvider.STRIPE,
        owner_user_id=owner,
        plan_code="premium",
        billing_cycle="monthly",
        external_subscription_id="sub_1",
        provider_status="active",
        current_period_start=T0,
        current_period_end=T0 + timedelta(days=30),
        event_at=T0,
        event_type="customer.subscription.created",
    )
    data.update(kwargs)
    return SubscriptionSnapshot(**data)


class TestStatusMapping:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("active", SubscriptionStatus.ACTIVE),
            ("SUCCESSFUL", SubscriptionStatus.ACTIVE),
            ("paid", SubscriptionStatus.ACTIVE),
            ("past_due", SubscriptionStatus.PAST_DUE),
            ("SUSPENDED", SubscriptionStatus.PAST_DUE),
            ("unpaid", SubscriptionStatus.PAST_DUE),
            ("trialing", SubscriptionStatus.TRIALING),
            ("APPROVAL_PENDING", SubscriptionStatus.INCOMPLETE),
            ("expired", SubscriptionStatus.CANCELED),
            ("cancel_requested", SubscriptionStatus.CANCELED),
            ("mystery", None),
            ("", None),
            (None, None),
        ],
    )
    def test_creator_scope(self, raw, expected):
        assert map_provider_status(SubscriptionScope.CREATOR, raw) == expected

    def test_vault_uses_cancelled_spelling(self):
        assert map_provider_status(SubscriptionScope.VAULT, "canceled") == SubscriptionStatus.CANCELLED
        assert canceled_status_for(SubscriptionScope.VAULT) == SubscriptionStatus.CANCELLED
        assert canceled_status_for(SubscriptionScope.ATTENDEE) == SubscriptionStatus.CANCELED

    def test_snapshot_fallback_status(self):
        snap = _snapshot(None, provider_status="weird", fallback_status=SubscriptionStatus.ACTIVE)

        assert snap.canonical_status == SubscriptionStatus.ACTIVE


class TestHelpers:

    def test_attendee_feature_flags(self):
        assert attendee_feature_flags("premium") == {
            "can_upload_drop_ins": True,
            "can_discover_non_contacts": True,
            "can_search_web": False,
        }
        assert all(attendee_feature_flags("premium-plus").values())
        assert not any(attendee_feature_flags("basic").values())

    def test_manual_renewal_window(self):
        start, end = manual_renewal_window("yearly", T0)
        assert (end - start).days == 365

        start, end = manual_renewal_window(None, T0)
        assert start == T0
        assert (end - start).days == 30


class TestUpsert:

    @pytest.mark.asyncio
    async def test_creates_record(self, db):
        owner = uuid.uuid4()

        result = await RecurringSubscriptionSync().upsert(db, _snapshot(owner))

        assert result.applied is True
        assert result.reason == "created"
        record = result.record
        assert record.status == SubscriptionStatus.ACTIVE
        assert record.version == 1
        assert record.billing_cycle == BillingCycle.MONTHLY
        assert record.meta["features"]["can_upload_drop_ins"] is True
        assert record.meta["provider_event_type"] == "customer.subscription.created"

    @pytest.mark.asyncio
    async def test_newer_event_updates_and_bumps_version(self, db):
        owner = uuid.uuid4()
        sync = RecurringSubscriptionSync()
        await sync.upsert(db, _snapshot(owner))

        result = await sync.upsert(
            db,
            _snapshot(
                owner,
                provider_status="past_due",
                current_period_end=T0 + timedelta(days=30),
                event_at=T0 + timedelta(days=2),
                event_type="invoice.payment_failed",
            ),
        )

        assert result.reason == "updated"
        assert result.record.status == SubscriptionStatus.PAST_DUE
        assert result.record.version == 2

    @pytest.mark.asyncio
    async def test_older_period_is_stale(self, db):
        owner = uuid.uuid4()
        sync = RecurringSubscriptionSync()
        await sync.upsert(db, _snapshot(owner, current_period_end=T0 + timedelta(days=60)))

        result = await sync.upsert(
            db,
            _snapshot(owner, provider_status="past_due", current_period_end=T0 + timedelta(days=30)),
        )

        assert result.applied is False
        assert result.reason == "stale"
        assert result.record.status == SubscriptionStatus.ACTIVE
        assert result.record.version == 1

    @pytest.mark.asyncio
    async def test_older_event_time_is_stale(self, db):
        owner = uuid.uuid4()
        sync = RecurringSubscriptionSync()
        await sync.upsert(db, _snapshot(owner, event_at=T0 + timedelta(hours=5)))

        result = await sync.upsert(
            db, _snapshot(owner, provider_status="canceled", current_period_end=None, event_at=T0)
        )

        assert result.reason == "stale"

    @pytest.mark.asyncio
    async def test_cancel_of_replaced_subscription_is_superseded(self, db):
        owner = uuid.uuid4()
        sync = RecurringSubscriptionSync()
        await sync.upsert(db, _snapshot(owner, external_subscription_id="sub_new"))

        result = await sync.upsert(
            db,
            _snapshot(
                owner,
                external_subscription_id="sub_old",
                provider_status="canceled",
                event_at=T0 + timedelta(days=1),
            ),
        )

        assert result.reason == "superseded"
        assert result.record.status == SubscriptionStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_lookup_by_external_id_without_owner(self, db):
        owner = uuid.uuid4()
        sync = RecurringSubscriptionSync()
        await sync.upsert(db, _snapshot(owner))

        result = await sync.upsert(
            db,
            _snapshot(
                None,
                provider_status="canceled",
                current_period_end=None,
                event_at=T0 + timedelta(days=3),
            ),
        )

        assert result.reason == "updated"
        assert result.record.owner_user_id == owner
        assert result.record.status == SubscriptionStatus.CANCELED
        assert result.record.canceled_at is not None

    @pytest.mark.asyncio
    async def test_unknown_subscription_without_owner(self, db):
        result = await RecurringSubscriptionSync().upsert(
            db, _snapshot(None, external_subscription_id="sub_unknown")
        )

        assert result.applied is False
        assert result.reason == "not_found"
        assert result.record is None


class TestPendingCheckout:

    @pytest.mark.asyncio
    async def test_claim_creates_incomplete_record(self, db):
        owner = uuid.uuid4()
        snap = _snapshot(owner, scope=SubscriptionScope.VAULT, provider_status=None, plan_code="vault_pro")

        record = await RecurringSubscriptionSync().claim_pending_checkout(db, snap, {"sessionId": "cs_1"})

        assert record.status == SubscriptionStatus.INCOMPLETE
        assert record.meta["pending_checkout"] == {"sessionId": "cs_1"}

    @pytest.mark.asyncio
    async def test_claim_keeps_status_of_existing_record(self, db):
        owner = uuid.uuid4()
        sync = RecurringSubscriptionSync()
        await sync.upsert(db, _snapshot(owner))

        record = await sync.claim_pending_checkout(db, _snapshot(owner), {"sessionId": "cs_2"})

        assert record.status == SubscriptionStatus.ACTIVE
        assert record.version == 2
        assert record.meta["pending_checkout"]["sessionId"] == "cs_2"

    @pytest.mark.asyncio
    async def test_activation_clears_pending_checkout(self, db):
        owner = uuid.uuid4()
        sync = RecurringSubscriptionSync()
        await sync.claim_pending_checkout(db, _snapshot(owner, provider_status=None), {"sessionId": "cs_3"})

        result = await sync.upsert(db, _snapshot(owner, event_at=T0 + timedelta(minutes=5)))

        assert result.record.status == SubscriptionStatus.ACTIVE
        assert "pending_checkout" not in result.record.meta

    @pytest.mark.asyncio
    async def test_serialize_subscription(self, db):
        owner = uuid.uuid4()
        result = await RecurringSubscriptionSync().upsert(db, _snapshot(owner))

        data = serialize_subscription(result.record)

        assert data["status"] == "active"
        assert data["scope"] == "attendee_subscription"
        assert data["currentPeriodEnd"].startswith("2025-12-01")
        assert serialize_subscription(None) is None

# Fin del archivo backend/tests/modules/payments/services/test_recurring_sync.py
