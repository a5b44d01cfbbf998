# -*- coding: utf-8 -*-
"""
backend/tests/modules/payments/routes/test_checkout_routes.py

Tests HTTP de POST /checkout y /api/checkout: Idempotency-Key, replay,
invitados, usuarios autenticados y rate limit.

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import uuid

import pytest

from app.modules.payments.facades.checkout.validators import BODY_KEY_WARNING
from app.modules.payments.services.idempotency_ledger import REPLAY_HEADER


def _body(seeded, **extra):
    body = {
        "eventId": str(seeded["event"].id),
        "mediaIds": [str(m.id) for m in seeded["media"][:2]],
        "customerEmail": "buyer@example.com",
    }
    body.update(extra)
    return body


class TestCheckoutRoute:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/checkout", "/api/checkout"])
    async def test_creates_checkout(self, async_client, seeded, path):
        resp = await async_client.post(path, json=_body(seeded), headers={"Idempotency-Key": "k-route-1"})

        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["provider"] == "stripe"
        assert data["amount"] == {"gross": 1000, "currency": "USD"}
        assert data["checkoutUrl"].startswith("https://pay.example.com/stripe/")
        assert "transactionId" in data
        assert REPLAY_HEADER not in resp.headers

    @pytest.mark.asyncio
    async def test_replay_returns_same_body(self, async_client, seeded, fake_providers):
        headers = {"Idempotency-Key": "k-replay"}

        first = await async_client.post("/checkout", json=_body(seeded), headers=headers)
        second = await async_client.post("/checkout", json=_body(seeded), headers=headers)

        assert first.status_code == second.status_code == 200
        assert second.json() == first.json()
        assert second.headers[REPLAY_HEADER] == "true"
        assert fake_providers["stripe"].create_checkout.await_count == 1

    @pytest.mark.asyncio
    async def test_reused_key_with_other_payload(self, async_client, seeded):
        headers = {"Idempotency-Key": "k-reuse"}
        await async_client.post("/checkout", json=_body(seeded), headers=headers)

        resp = await async_client.post(
            "/checkout",
            json=_body(seeded, mediaIds=[str(seeded["media"][2].id)]),
            headers=headers,
        )

        assert resp.status_code == 409
        assert resp.json()["error"] == "idempotency_key_reused"

    @pytest.mark.asyncio
    async def test_missing_idempotency_key(self, async_client, seeded):
        resp = await async_client.post("/checkout", json=_body(seeded))

        assert resp.status_code == 400
        assert resp.json()["error"] == "idempotency_key_required"

    @pytest.mark.asyncio
    async def test_body_key_is_accepted_with_warning(self, async_client, seeded):
        resp = await async_client.post("/checkout", json=_body(seeded, idempotencyKey="k-body"))

        assert resp.status_code == 200
        assert resp.headers["Warning"] == BODY_KEY_WARNING

    @pytest.mark.asyncio
    async def test_body_key_warning_is_kept_on_errors(self, async_client, seeded):
        body = _body(seeded, idempotencyKey="k-body-error")
        body.pop("customerEmail")

        resp = await async_client.post("/checkout", json=body)

        assert resp.status_code == 400
        assert resp.json()["error"] == "customer_email_required"
        assert resp.headers["Warning"] == BODY_KEY_WARNING

    @pytest.mark.asyncio
    async def test_guest_without_email(self, async_client, seeded):
        body = _body(seeded)
        body.pop("customerEmail")

        resp = await async_client.post("/checkout", json=body, headers={"Idempotency-Key": "k-guest"})

        assert resp.status_code == 400
        assert resp.json()["error"] == "customer_email_required"

    @pytest.mark.asyncio
    async def test_authenticated_user_uses_token_email(self, async_client, seeded, auth_headers, fake_providers):
        body = _body(seeded)
        body.pop("customerEmail")
        headers = {**auth_headers(uuid.uuid4(), email="Member@Example.com"), "Idempotency-Key": "k-user"}

        resp = await async_client.post("/checkout", json=body, headers=headers)

        assert resp.status_code == 200
        params = fake_providers["stripe"].create_checkout.await_args.args[0]
        assert params.customer_email == "member@example.com"

    @pytest.mark.asyncio
    async def test_owner_cannot_buy_from_draft_event(
        self, async_client, db, seeded, photographer_id, auth_headers, fake_providers
    ):
        from app.modules.payments.enums import EventStatus

        seeded["event"].status = EventStatus.DRAFT
        await db.commit()
        headers = {**auth_headers(photographer_id, email="owner@example.com"), "Idempotency-Key": "k-draft"}

        resp = await async_client.post("/checkout", json=_body(seeded), headers=headers)

        assert resp.status_code == 404
        assert resp.json()["error"] == "event_not_found"
        fake_providers["stripe"].create_checkout.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_token_is_rejected(self, async_client, seeded):
        headers = {"Authorization": "Bearer not-a-jwt", "Idempotency-Key": "k-bad-token"}

        resp = await async_client.post("/checkout", json=_body(seeded), headers=headers)

        assert resp.status_code == 401
        assert resp.json()["error"] == "invalid_token"
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_invalid_payload(self, async_client, seeded):
        resp = await async_client.post(
            "/checkout",
            json={"eventId": str(seeded["event"].id)},
            headers={"Idempotency-Key": "k-invalid"},
        )

        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "invalid_request"
        assert data["details"]

    @pytest.mark.asyncio
    async def test_malformed_event_id(self, async_client, seeded):
        resp = await async_client.post(
            "/checkout",
            json=_body(seeded, eventId="not-a-uuid"),
            headers={"Idempotency-Key": "k-bad-uuid"},
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_request"
        assert resp.json()["details"][0]["field"] == "eventId"

    @pytest.mark.asyncio
    async def test_unknown_event(self, async_client, seeded):
        resp = await async_client.post(
            "/checkout",
            json=_body(seeded, eventId=str(uuid.uuid4())),
            headers={"Idempotency-Key": "k-404"},
        )

        assert resp.status_code == 404
        assert resp.json()["error"] == "event_not_found"


class TestCheckoutRateLimit:

    @pytest.mark.asyncio
    async def test_second_request_is_limited(self, async_client, seeded, payments_settings):
        payments_settings.rate_limit_enabled = True
        payments_settings.checkout_rate_limit_requests = 1
        payments_settings.checkout_rate_limit_window_seconds = 60

        first = await async_client.post("/checkout", json=_body(seeded), headers={"Idempotency-Key": "k-rl-1"})
        second = await async_client.post("/checkout", json=_body(seeded), headers={"Idempotency-Key": "k-rl-2"})

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.json()["error"] == "rate_limit_exceeded"
        assert int(second.headers["Retry-After"]) >= 1

# Fin del archivo backend/tests/modules/payments/routes/test_checkout_routes.py
