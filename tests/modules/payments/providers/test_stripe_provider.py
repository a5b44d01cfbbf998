# -*- coding: utf-8 -*-
"""
backend/tests/modules/payments/providers/test_stripe_provider.py

Tests del cliente Stripe con el SDK parcheado (sin red).

Autor: EventShot Payments
Fecha: 2025-11-27
"""

from unittest.mock import MagicMock

import pytest
import stripe

from app.modules.payments.facades.errors import PaymentsError, ProviderRequestError
from app.modules.payments.providers.base import PaymentCheckoutParams, SubscriptionCheckoutParams
from app.modules.payments.providers.stripe_provider import StripeProvider


@pytest.fixture
def provider(payments_settings):
    return StripeProvider(payments_settings)


@pytest.fixture
def session_api(monkeypatch):
    create = MagicMock(return_value={"id": "cs_1", "url": "https://checkout.stripe.test/cs_1"})
    retrieve = MagicMock()
    monkeypatch.setattr(stripe.checkout.Session, "create", create)
    monkeypatch.setattr(stripe.checkout.Session, "retrieve", retrieve)
    return create, retrieve


def _payment_params(**overrides):
    values = dict(
        reference="tx_ref_1",
        amount=1000,
        currency="USD",
        description="Wedding photos (2)",
        success_url="https://shots.example.com/ok",
        cancel_url="https://shots.example.com/cancel",
        customer_email="buyer@example.com",
        metadata={"event_id": "e1"},
        idempotency_key="key-1",
    )
    values.update(overrides)
    return PaymentCheckoutParams(**values)


class TestCheckout:

    @pytest.mark.asyncio
    async def test_destination_charge(self, provider, session_api):
        create, _ = session_api

        session = await provider.create_checkout(
            _payment_params(connected_account_id="acct_1", application_fee_amount=150)
        )

        assert session.session_id == "cs_1"
        kwargs = create.call_args.kwargs
        assert kwargs["api_key"] == "sk_test_x"
        assert kwargs["idempotency_key"] == "checkout:key-1"
        assert kwargs["client_reference_id"] == "tx_ref_1"
        assert kwargs["line_items"][0]["price_data"]["currency"] == "usd"
        assert kwargs["payment_intent_data"]["transfer_data"] == {"destination": "acct_1"}
        assert kwargs["payment_intent_data"]["application_fee_amount"] == 150

    @pytest.mark.asyncio
    async def test_sdk_error_is_wrapped(self, provider, session_api):
        create, _ = session_api
        create.side_effect = stripe.InvalidRequestError("No such price", param="price", code="resource_missing")

        with pytest.raises(ProviderRequestError) as exc:
            await provider.create_checkout(_payment_params())

        assert exc.value.context["providerCode"] == "resource_missing"

    @pytest.mark.asyncio
    async def test_unconfigured(self, provider, payments_settings):
        payments_settings.stripe_secret_key = None

        with pytest.raises(ProviderRequestError):
            await provider.create_checkout(_payment_params())

    @pytest.mark.asyncio
    async def test_dynamic_subscription_price(self, provider, session_api):
        create, _ = session_api
        params = SubscriptionCheckoutParams(
            reference="sub_ref",
            plan_code="pro",
            plan_name="Pro",
            billing_cycle="annual",
            amount=15000,
            currency="USD",
            success_url="https://shots.example.com/ok",
            cancel_url="https://shots.example.com/cancel",
            customer_id="cus_1",
            customer_email="creator@example.com",
            metadata={"scope": "creator_subscription"},
            idempotency_key="sub-key",
        )

        await provider.create_subscription_checkout(params)

        kwargs = create.call_args.kwargs
        assert kwargs["mode"] == "subscription"
        assert kwargs["customer"] == "cus_1"
        assert "customer_email" not in kwargs
        assert kwargs["line_items"][0]["price_data"]["recurring"] == {"interval": "year"}
        assert kwargs["subscription_data"] == {"metadata": {"scope": "creator_subscription"}}
        assert kwargs["idempotency_key"] == "subscription:sub-key:USD"


class TestVerify:

    @pytest.mark.asyncio
    async def test_paid_session_with_fee(self, provider, session_api):
        _, retrieve = session_api
        retrieve.return_value = {
            "id": "cs_1",
            "payment_status": "paid",
            "amount_total": 1000,
            "currency": "usd",
            "metadata": {"event_id": "e1"},
            "payment_intent": {
                "id": "pi_1",
                "latest_charge": {"balance_transaction": {"currency": "usd", "fee": 59}},
            },
        }

        payment = await provider.verify_payment("cs_1")

        assert payment.succeeded is True
        assert payment.provider_transaction_id == "pi_1"
        assert payment.provider_fee == 59
        assert retrieve.call_args.kwargs["expand"] == ["payment_intent.latest_charge.balance_transaction"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "session, status",
        [
            ({"payment_status": "unpaid", "status": "expired"}, "failed"),
            ({"payment_status": "unpaid", "status": "open"}, "pending"),
        ],
    )
    async def test_unpaid_sessions(self, provider, session_api, session, status):
        _, retrieve = session_api
        retrieve.return_value = {"id": "cs_1", **session}

        assert (await provider.verify_payment("cs_1")).status == status

    @pytest.mark.asyncio
    async def test_fetch_subscription_requires_paid_subscription_session(self, provider, session_api):
        _, retrieve = session_api
        retrieve.return_value = {"id": "cs_1", "mode": "payment", "payment_status": "paid"}

        with pytest.raises(PaymentsError) as exc:
            await provider.fetch_subscription("cs_1")

        assert exc.value.error == "checkout_not_completed"


class TestCustomers:

    @pytest.mark.asyncio
    async def test_existing_customer_is_reused(self, provider, monkeypatch):
        create = MagicMock()
        monkeypatch.setattr(stripe.Customer, "create", create)

        assert await provider.ensure_customer("cus_saved", "user-1") == "cus_saved"
        create.assert_not_called()

    @pytest.mark.asyncio
    async def test_customer_is_created(self, provider, monkeypatch):
        create = MagicMock(return_value={"id": "cus_new"})
        monkeypatch.setattr(stripe.Customer, "create", create)

        customer_id = await provider.ensure_customer(None, "user-1", "creator@example.com")

        assert customer_id == "cus_new"
        assert create.call_args.kwargs["metadata"] == {"user_id": "user-1"}
        assert create.call_args.kwargs["email"] == "creator@example.com"

# Fin del archivo backend/tests/modules/payments/providers/test_stripe_provider.py
