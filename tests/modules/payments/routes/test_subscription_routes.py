# -*- coding: utf-8 -*-
"""
backend/tests/modules/payments/routes/test_subscription_routes.py

Tests HTTP de /subscriptions/* y /vault/*: autenticación, scope y
verificación manual.

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import uuid

import pytest

from app.modules.payments.enums import SubscriptionScope
from app.modules.payments.models import SubscriptionPlan


@pytest.fixture
async def plans(db):
    db.add_all([
        SubscriptionPlan(code="pro", scope=SubscriptionScope.CREATOR, name="Pro", price_usd_monthly=1500),
        SubscriptionPlan(code="vault_plus", scope=SubscriptionScope.VAULT, name="Vault+", price_usd_monthly=499),
    ])
    await db.commit()


class TestSubscriptionCheckoutRoute:

    @pytest.mark.asyncio
    async def test_requires_authentication(self, async_client, plans):
        resp = await async_client.post(
            "/subscriptions/checkout", json={"planCode": "pro"}, headers={"Idempotency-Key": "s-1"}
        )

        assert resp.status_code == 401
        assert resp.json()["error"] == "authentication_required"

    @pytest.mark.asyncio
    async def test_creator_checkout(self, async_client, plans, auth_headers):
        headers = {**auth_headers(uuid.uuid4()), "Idempotency-Key": "s-2"}

        resp = await async_client.post("/api/subscriptions/checkout", json={"planCode": "pro"}, headers=headers)

        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["provider"] == "stripe"
        assert data["pricingAmountCents"] == 1500
        assert data["checkoutUrl"].startswith("https://pay.example.com/stripe/sub/")

    @pytest.mark.asyncio
    async def test_vault_scope_rejected_on_platform_route(self, async_client, plans, auth_headers):
        headers = {**auth_headers(uuid.uuid4()), "Idempotency-Key": "s-3"}

        resp = await async_client.post(
            "/subscriptions/checkout",
            json={"planCode": "vault_plus", "scope": "vault_subscription"},
            headers=headers,
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_scope"

    @pytest.mark.asyncio
    async def test_vault_checkout(self, async_client, plans, auth_headers, fake_providers):
        headers = {**auth_headers(uuid.uuid4()), "Idempotency-Key": "s-4"}

        resp = await async_client.post("/vault/checkout", json={"planCode": "vault_plus"}, headers=headers)

        assert resp.status_code == 200, resp.text
        params = fake_providers["stripe"].create_subscription_checkout.await_args.args[0]
        assert params.metadata["scope"] == "vault_subscription"
        assert params.amount == 499

    @pytest.mark.asyncio
    async def test_requires_idempotency_key(self, async_client, plans, auth_headers):
        resp = await async_client.post(
            "/subscriptions/checkout", json={"planCode": "pro"}, headers=auth_headers(uuid.uuid4())
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "idempotency_key_required"


class TestVerifyRoute:

    @pytest.mark.asyncio
    async def test_verify(self, async_client, plans, auth_headers, fake_providers, make_provider_subscription):
        user_id = uuid.uuid4()
        fake_providers["stripe"].fetch_subscription.return_value = make_provider_subscription(
            metadata={"owner_user_id": str(user_id), "scope": "creator_subscription", "plan_code": "pro"},
        )

        resp = await async_client.post(
            "/subscriptions/verify",
            json={"provider": "stripe", "sessionId": "cs_1"},
            headers=auth_headers(user_id),
        )

        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["applied"] is True
        assert data["subscription"]["status"] == "active"

    @pytest.mark.asyncio
    async def test_verify_foreign_subscription(
        self, async_client, plans, auth_headers, fake_providers, make_provider_subscription
    ):
        fake_providers["stripe"].fetch_subscription.return_value = make_provider_subscription(
            metadata={"owner_user_id": str(uuid.uuid4()), "scope": "creator_subscription"},
        )

        resp = await async_client.post(
            "/subscriptions/verify",
            json={"provider": "stripe", "subscriptionId": "sub_1"},
            headers=auth_headers(uuid.uuid4()),
        )

        assert resp.status_code == 403
        assert resp.json()["error"] == "subscription_ownership_mismatch"

    @pytest.mark.asyncio
    async def test_vault_verify_uses_vault_scope(
        self, async_client, auth_headers, fake_providers, make_provider_subscription
    ):
        user_id = uuid.uuid4()
        fake_providers["stripe"].fetch_subscription.return_value = make_provider_subscription(
            metadata={"owner_user_id": str(user_id), "scope": "vault_subscription"},
        )

        resp = await async_client.post(
            "/vault/verify",
            json={"provider": "stripe", "subscriptionId": "sub_v"},
            headers=auth_headers(user_id),
        )

        assert resp.status_code == 200, resp.text
        assert resp.json()["subscription"]["scope"] == "vault_subscription"

# Fin del archivo backend/tests/modules/payments/routes/test_subscription_routes.py
