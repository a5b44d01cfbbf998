# -*- coding: utf-8 -*-
"""
backend/tests/modules/payments/providers/test_http_providers.py

Tests de los clientes HTTP de Flutterwave, Paystack y PayPal contra un
transporte httpx simulado, y de la política de reintentos de request_json.

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import json

import httpx
import pytest

from app.modules.payments.facades.errors import PaymentsError, ProviderRequestError, ProviderTimeoutError
from app.modules.payments.providers import http_client
from app.modules.payments.providers.base import PaymentCheckoutParams
from app.modules.payments.providers.flutterwave_provider import FlutterwaveProvider
from app.modules.payments.providers.http_client import request_json
from app.modules.payments.providers.paypal_provider import PayPalProvider, _clear_token_cache
from app.modules.payments.providers.paystack_provider import PaystackProvider


@pytest.fixture
def mock_gateway(monkeypatch):
    """
    Instala un AsyncClient con MockTransport para un proveedor y devuelve
    la lista de requests recibidos.
    """
    monkeypatch.setattr(http_client, "RETRY_BACKOFF_BASE", 0)
    monkeypatch.setattr(http_client, "RETRY_BACKOFF_429", 0)

    def _install(provider, handler):
        seen = []

        def _record(request):
            seen.append(request)
            return handler(request)

        http_client._clients[provider] = httpx.AsyncClient(transport=httpx.MockTransport(_record))
        return seen

    yield _install
    _clear_token_cache()


def _params(**overrides):
    values = dict(
        reference="tx_ref_1",
        amount=1000,
        currency="usd",
        description="Wedding photos (2)",
        success_url="https://shots.example.com/ok",
        cancel_url="https://shots.example.com/cancel",
        customer_email="buyer@example.com",
        metadata={"event_id": "e1"},
        idempotency_key="key-1",
    )
    values.update(overrides)
    return PaymentCheckoutParams(**values)


class TestRequestJson:

    @pytest.mark.asyncio
    async def test_retries_transient_status_once(self, mock_gateway, payments_settings):
        responses = iter([httpx.Response(503), httpx.Response(200, json={"ok": True})])
        seen = mock_gateway("paystack", lambda request: next(responses))

        status, body = await request_json("paystack", "GET", "https://api.paystack.co/ping")

        assert (status, body) == (200, {"ok": True})
        assert len(seen) == 2

    @pytest.mark.asyncio
    async def test_rejection_carries_provider_status(self, mock_gateway, payments_settings):
        mock_gateway("paystack", lambda request: httpx.Response(400, json={"message": "bad"}))

        with pytest.raises(ProviderRequestError) as exc:
            await request_json("paystack", "GET", "https://api.paystack.co/ping")

        assert exc.value.status_code == 502
        assert exc.value.context["providerStatus"] == 400

    @pytest.mark.asyncio
    async def test_accepted_status_is_returned(self, mock_gateway, payments_settings):
        mock_gateway("paypal", lambda request: httpx.Response(422, json={"name": "UNPROCESSABLE_ENTITY"}))

        status, body = await request_json("paypal", "POST", "https://x", accept_statuses=(422,))

        assert status == 422
        assert body["name"] == "UNPROCESSABLE_ENTITY"

    @pytest.mark.asyncio
    async def test_timeout_after_retries(self, mock_gateway, payments_settings):
        def _timeout(request):
            raise httpx.ReadTimeout("slow", request=request)

        seen = mock_gateway("flutterwave", _timeout)

        with pytest.raises(ProviderTimeoutError):
            await request_json("flutterwave", "GET", "https://api.flutterwave.com/v3/ping")

        assert len(seen) == 2

    @pytest.mark.asyncio
    async def test_non_json_body(self, mock_gateway, payments_settings):
        mock_gateway("paystack", lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(ProviderRequestError):
            await request_json("paystack", "GET", "https://api.paystack.co/ping")


class TestFlutterwaveProvider:

    @pytest.mark.asyncio
    async def test_create_checkout(self, mock_gateway, payments_settings):
        seen = mock_gateway(
            "flutterwave",
            lambda request: httpx.Response(200, json={"status": "success", "data": {"link": "https://flw.test/pay"}}),
        )

        session = await FlutterwaveProvider(payments_settings).create_checkout(_params(currency="NGN", amount=750_000))

        assert session.session_id == "tx_ref_1"
        assert session.checkout_url == "https://flw.test/pay"
        sent = json.loads(seen[0].content)
        assert sent["amount"] == "7500.00"
        assert sent["currency"] == "NGN"
        assert sent["customer"] == {"email": "buyer@example.com"}
        assert seen[0].headers["Authorization"] == "Bearer FLWSECK_TEST-x"

    @pytest.mark.asyncio
    async def test_missing_link(self, mock_gateway, payments_settings):
        mock_gateway("flutterwave", lambda request: httpx.Response(200, json={"status": "error", "message": "no"}))

        with pytest.raises(ProviderRequestError):
            await FlutterwaveProvider(payments_settings).create_checkout(_params())

    @pytest.mark.asyncio
    async def test_fetch_subscription_requires_success(self, mock_gateway, payments_settings):
        seen = mock_gateway(
            "flutterwave",
            lambda request: httpx.Response(200, json={"status": "success", "data": {"id": 1, "status": "failed"}}),
        )

        with pytest.raises(PaymentsError) as exc:
            await FlutterwaveProvider(payments_settings).fetch_subscription("sub_ref")

        assert exc.value.error == "payment_not_successful"
        assert seen[0].url.params["tx_ref"] == "sub_ref"

    def test_unconfigured(self, payments_settings):
        payments_settings.flutterwave_secret_key = None

        with pytest.raises(ProviderRequestError):
            FlutterwaveProvider(payments_settings)._headers()


class TestPaystackProvider:

    @pytest.mark.asyncio
    async def test_requires_email(self, payments_settings):
        with pytest.raises(PaymentsError) as exc:
            await PaystackProvider(payments_settings).create_checkout(_params(customer_email=None))

        assert exc.value.error == "customer_email_required"

    @pytest.mark.asyncio
    async def test_create_checkout_and_verify(self, mock_gateway, payments_settings):
        def _handler(request):
            if request.url.path == "/transaction/initialize":
                return httpx.Response(
                    200,
                    json={"status": True, "data": {"reference": "tx_ref_1", "authorization_url": "https://ps.test/x"}},
                )
            return httpx.Response(
                200,
                json={"status": True, "data": {"id": 8, "status": "success", "amount": 500000, "currency": "NGN"}},
            )

        seen = mock_gateway("paystack", _handler)
        provider = PaystackProvider(payments_settings)

        session = await provider.create_checkout(_params(currency="NGN", amount=500000))
        payment = await provider.verify_payment("tx_ref_1")

        assert session.checkout_url == "https://ps.test/x"
        assert json.loads(seen[0].content)["amount"] == 500000
        assert seen[1].url.path == "/transaction/verify/tx_ref_1"
        assert payment.succeeded is True
        assert payment.amount == 500000


class TestPayPalProvider:

    @pytest.mark.asyncio
    async def test_token_is_cached_and_request_id_sent(self, mock_gateway, payments_settings):
        def _handler(request):
            if request.url.path == "/v1/oauth2/token":
                return httpx.Response(200, json={"access_token": "A21", "expires_in": 3600})
            return httpx.Response(
                201,
                json={"id": "ORDER-1", "links": [{"rel": "approve", "href": "https://paypal.test/approve"}]},
            )

        seen = mock_gateway("paypal", _handler)
        provider = PayPalProvider(payments_settings)

        first = await provider.create_checkout(_params())
        await provider.create_checkout(_params(idempotency_key="key-2"))

        assert first.session_id == "ORDER-1"
        assert first.checkout_url == "https://paypal.test/approve"
        assert [r.url.path for r in seen].count("/v1/oauth2/token") == 1
        order_request = seen[1]
        assert order_request.url.host == "api-m.sandbox.paypal.com"
        assert order_request.headers["Authorization"] == "Bearer A21"
        assert order_request.headers["PayPal-Request-Id"] == "checkout:key-1"
        assert json.loads(order_request.content)["purchase_units"][0]["amount"] == {
            "currency_code": "USD",
            "value": "10.00",
        }

    @pytest.mark.asyncio
    async def test_verify_captures_approved_order(self, mock_gateway, payments_settings):
        completed = {
            "id": "ORDER-1",
            "status": "COMPLETED",
            "purchase_units": [
                {
                    "custom_id": "tx_ref_1",
                    "payments": {
                        "captures": [
                            {
                                "id": "CAP-1",
                                "status": "COMPLETED",
                                "amount": {"value": "10.00", "currency_code": "USD"},
                                "seller_receivable_breakdown": {
                                    "paypal_fee": {"value": "0.79", "currency_code": "USD"}
                                },
                            }
                        ]
                    },
                }
            ],
        }

        def _handler(request):
            if request.url.path == "/v1/oauth2/token":
                return httpx.Response(200, json={"access_token": "A21", "expires_in": 3600})
            if request.url.path.endswith("/capture"):
                return httpx.Response(201, json=completed)
            return httpx.Response(200, json={"id": "ORDER-1", "status": "APPROVED"})

        seen = mock_gateway("paypal", _handler)

        payment = await PayPalProvider(payments_settings).verify_payment("ORDER-1")

        assert seen[-1].url.path == "/v2/checkout/orders/ORDER-1/capture"
        assert payment.succeeded is True
        assert payment.amount == 1000
        assert payment.provider_fee == 79
        assert payment.provider_transaction_id == "CAP-1"
        assert payment.metadata == {"reference": "tx_ref_1"}

    @pytest.mark.asyncio
    async def test_webhook_verification_fails_closed_without_headers(self, payments_settings):
        assert await PayPalProvider(payments_settings).verify_webhook_signature({}, b"{}") is False

    @pytest.mark.asyncio
    async def test_webhook_verification_success(self, mock_gateway, payments_settings):
        def _handler(request):
            if request.url.path == "/v1/oauth2/token":
                return httpx.Response(200, json={"access_token": "A21", "expires_in": 3600})
            return httpx.Response(200, json={"verification_status": "SUCCESS"})

        seen = mock_gateway("paypal", _handler)
        headers = {
            "paypal-auth-algo": "SHA256withRSA",
            "paypal-cert-url": "https://api.paypal.com/cert",
            "paypal-transmission-id": "t1",
            "paypal-transmission-sig": "sig",
            "paypal-transmission-time": "2025-11-25T10:00:00Z",
        }

        ok = await PayPalProvider(payments_settings).verify_webhook_signature(headers, b'{"id": "WH-EVT"}')

        assert ok is True
        sent = json.loads(seen[-1].content)
        assert sent["webhook_id"] == "WH-1"
        assert sent["webhook_event"] == {"id": "WH-EVT"}

# Fin del archivo backend/tests/modules/payments/providers/test_http_providers.py
