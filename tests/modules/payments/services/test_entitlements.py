# -*- coding: utf-8 -*-
"""
backend/tests/modules/payments/services/test_entitlements.py

Tests de entitlements y asientos del diario al confirmar un pago.

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import pytest

from app.modules.payments.enums import EntitlementType, JournalEntryType
from app.modules.payments.models import build_grant_key
from app.modules.payments.repositories import EntitlementRepository, JournalRepository
from app.modules.payments.services.entitlements import (
    apply_success_effects,
    grant_entitlements,
    journal_lines,
    record_journal_entries,
    refund_metadata,
)


class TestGrantEntitlements:

    @pytest.mark.asyncio
    async def test_single_entitlement_per_media(self, db, seeded, make_transaction):
        tx = await make_transaction()

        created = await grant_entitlements(db, tx)
        await db.commit()

        assert created == 2
        rows = await EntitlementRepository().list_by_transaction(db, tx.id)
        assert {r.entitlement_type for r in rows} == {EntitlementType.SINGLE}
        assert {r.media_id for r in rows} == {m.id for m in seeded["media"][:2]}
        assert all(r.payer_email == "buyer@example.com" for r in rows)

    @pytest.mark.asyncio
    async def test_unlock_all_grants_one_bulk(self, db, make_transaction):
        tx = await make_transaction(meta={"media_ids": [], "unlock_all": True})

        assert await grant_entitlements(db, tx) == 1
        await db.commit()

        rows = await EntitlementRepository().list_by_transaction(db, tx.id)
        assert len(rows) == 1
        assert rows[0].entitlement_type == EntitlementType.BULK
        assert rows[0].media_id is None
        assert rows[0].grant_key == build_grant_key(tx.id, None)

    @pytest.mark.asyncio
    async def test_grant_is_idempotent(self, db, make_transaction):
        tx = await make_transaction()
        await grant_entitlements(db, tx)
        await db.commit()

        assert await grant_entitlements(db, tx) == 0

    @pytest.mark.asyncio
    async def test_owned_media_for_guest_email(self, db, seeded, make_transaction):
        tx = await make_transaction()
        await grant_entitlements(db, tx)
        await db.commit()

        has_bulk, owned = await EntitlementRepository().owned_media(
            db, seeded["event"].id, None, "buyer@example.com"
        )

        assert has_bulk is False
        assert owned == {m.id for m in seeded["media"][:2]}


class TestJournal:

    @pytest.mark.asyncio
    async def test_journal_lines_are_signed(self, make_transaction):
        tx = await make_transaction(transaction_fee=20)

        lines = journal_lines(tx, provider_fee=61, net_amount=769)

        assert lines == {
            JournalEntryType.GROSS: 1000,
            JournalEntryType.PLATFORM_FEE: -150,
            JournalEntryType.PROVIDER_FEE: -61,
            JournalEntryType.TRANSACTION_FEE: -20,
            JournalEntryType.NET: 769,
        }
        assert sum(v for k, v in lines.items() if k != JournalEntryType.NET) == 769

    @pytest.mark.asyncio
    async def test_record_skips_existing_types(self, db, make_transaction):
        tx = await make_transaction()
        lines = journal_lines(tx, 59, 791)

        assert await record_journal_entries(db, tx, lines) == 5
        await db.commit()
        assert await record_journal_entries(db, tx, lines) == 0

        types = await JournalRepository().existing_types(db, tx.id)
        assert types == {"gross", "platform_fee", "provider_fee", "transaction_fee", "net"}

    @pytest.mark.asyncio
    async def test_apply_success_effects(self, db, make_transaction):
        tx = await make_transaction()

        await apply_success_effects(db, tx, provider_fee=59, net_amount=791)
        await db.commit()

        assert len(await EntitlementRepository().list_by_transaction(db, tx.id)) == 2
        assert len(await JournalRepository().existing_types(db, tx.id)) == 5

    @pytest.mark.asyncio
    async def test_refund_metadata_keeps_existing_keys(self, make_transaction):
        tx = await make_transaction()

        meta = refund_metadata(tx, {"refund_id": "re_1", "amount": 1000})

        assert meta["refund"]["refund_id"] == "re_1"
        assert meta["checkout_url"] == tx.meta["checkout_url"]
        assert "refund" not in tx.meta

# Fin del archivo backend/tests/modules/payments/services/test_entitlements.py
