# -*- coding: utf-8 -*-
"""
backend/tests/modules/payments/facades/webhooks/test_webhook_signatures.py

Tests de verificación de firmas por proveedor (fail-closed) y del
sanitizado de payloads antes de persistirlos.

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import json
import time

import pytest

from app.modules.payments.enums import PaymentProvider
from app.modules.payments.facades.webhooks.sanitizer import compute_payload_hash, sanitize_webhook_payload
from app.modules.payments.facades.webhooks.signatures import (
    _allow_insecure,
    paystack_signature,
    stripe_signature_header,
    verify_flutterwave_signature,
    verify_paystack_signature,
    verify_stripe_signature,
    verify_webhook_signature,
)

PAYLOAD = b'{"id":"evt_1","type":"checkout.session.completed"}'
SECRET = "whsec_test"


class TestStripeSignature:

    def test_valid_signature(self):
        header = stripe_signature_header(PAYLOAD, SECRET)

        assert verify_stripe_signature(PAYLOAD, header, SECRET) is True

    def test_accepts_any_matching_v1(self):
        good = stripe_signature_header(PAYLOAD, SECRET)
        timestamp = good.split(",")[0]
        header = f"{timestamp},v1=deadbeef,{good.split(',')[1]}"

        assert verify_stripe_signature(PAYLOAD, header, SECRET) is True

    def test_tampered_payload(self):
        header = stripe_signature_header(PAYLOAD, SECRET)

        assert verify_stripe_signature(PAYLOAD + b" ", header, SECRET) is False

    def test_wrong_secret(self):
        header = stripe_signature_header(PAYLOAD, "whsec_other")

        assert verify_stripe_signature(PAYLOAD, header, SECRET) is False

    def test_timestamp_outside_tolerance(self):
        header = stripe_signature_header(PAYLOAD, SECRET, timestamp=int(time.time()) - 301)

        assert verify_stripe_signature(PAYLOAD, header, SECRET, tolerance_seconds=300) is False

    @pytest.mark.parametrize(
        "header, secret",
        [
            (None, SECRET),
            ("", SECRET),
            ("v1=abc", SECRET),
            ("t=abc,v1=abc", SECRET),
            ("t=1,v1=abc", None),
        ],
    )
    def test_fail_closed(self, header, secret):
        assert verify_stripe_signature(PAYLOAD, header, secret) is False


class TestAfricanGatewaySignatures:

    def test_flutterwave_hash(self):
        assert verify_flutterwave_signature("flw-hash", "flw-hash") is True
        assert verify_flutterwave_signature("nope", "flw-hash") is False
        assert verify_flutterwave_signature(None, "flw-hash") is False
        assert verify_flutterwave_signature("flw-hash", None) is False

    def test_paystack_hmac_sha512(self):
        signature = paystack_signature(PAYLOAD, "sk_test_paystack")

        assert len(signature) == 128
        assert verify_paystack_signature(PAYLOAD, signature.upper(), "sk_test_paystack") is True
        assert verify_paystack_signature(PAYLOAD, signature, "sk_other") is False
        assert verify_paystack_signature(PAYLOAD, None, "sk_test_paystack") is False
        assert verify_paystack_signature(PAYLOAD, signature, None) is False


class TestVerifyWebhookSignature:

    @pytest.mark.asyncio
    async def test_routes_by_provider(self, registry, payments_settings):
        headers = {
            "stripe-signature": stripe_signature_header(PAYLOAD, SECRET),
            "verif-hash": "flw-hash",
            "x-paystack-signature": paystack_signature(PAYLOAD, "sk_test_paystack"),
        }

        for provider in (PaymentProvider.STRIPE, PaymentProvider.FLUTTERWAVE, PaymentProvider.PAYSTACK):
            assert await verify_webhook_signature(
                provider, PAYLOAD, headers, registry=registry, settings=payments_settings
            ) is True

    @pytest.mark.asyncio
    async def test_paypal_delegates_to_api(self, registry, payments_settings, fake_providers):
        fake_providers["paypal"].verify_webhook_signature.return_value = False

        ok = await verify_webhook_signature(
            PaymentProvider.PAYPAL, PAYLOAD, {"paypal-transmission-id": "t1"},
            registry=registry, settings=payments_settings,
        )

        assert ok is False
        fake_providers["paypal"].verify_webhook_signature.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_headers_fail(self, registry, payments_settings):
        assert await verify_webhook_signature(
            PaymentProvider.STRIPE, PAYLOAD, {}, registry=registry, settings=payments_settings
        ) is False


class TestInsecureFlag:

    def test_ignored_under_test_env(self, payments_settings, monkeypatch):
        monkeypatch.setenv("PYTHON_ENV", "test")
        payments_settings.allow_insecure_webhooks = True

        assert _allow_insecure(payments_settings) is False

    def test_ignored_in_production(self, payments_settings, monkeypatch):
        monkeypatch.setenv("PYTHON_ENV", "production")
        monkeypatch.setenv("ENVIRONMENT", "production")
        payments_settings.allow_insecure_webhooks = True

        assert _allow_insecure(payments_settings) is False

    def test_honoured_in_development(self, payments_settings, monkeypatch):
        monkeypatch.setenv("PYTHON_ENV", "development")
        payments_settings.allow_insecure_webhooks = True

        assert _allow_insecure(payments_settings) is True


class TestSanitizer:

    def test_keeps_core_fields_and_drops_pii(self):
        payload = {
            "id": "evt_1",
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": "cs_1",
                    "amount_total": 1000,
                    "currency": "usd",
                    "payment_status": "paid",
                    "customer_details": {"email": "buyer@example.com", "name": "Ana"},
                },
            },
        }
        raw = json.dumps(payload).encode("utf-8")

        safe = sanitize_webhook_payload("Stripe", payload, raw_payload=raw)

        assert safe["core.event_id"] == "evt_1"
        assert safe["core.object_id"] == "cs_1"
        assert safe["core.amount"] == 1000
        assert safe["core.status"] == "paid"
        assert safe["__provider__"] == "stripe"
        assert safe["__payload_hash__"] == compute_payload_hash(raw)
        assert "buyer@example.com" not in json.dumps(safe)
        assert "Ana" not in json.dumps(safe)

    def test_paypal_list_paths(self):
        payload = {
            "id": "WH-1",
            "event_type": "CHECKOUT.ORDER.APPROVED",
            "resource": {"id": "ORDER-1", "purchase_units": [{"amount": {"value": "10.00", "currency_code": "USD"}}]},
        }

        safe = sanitize_webhook_payload("paypal", payload)

        assert safe["core.amount"] == "10.00"
        assert safe["core.currency"] == "USD"
        assert safe["__payload_hash__"] == compute_payload_hash(payload)

# Fin del archivo backend/tests/modules/payments/facades/webhooks/test_webhook_signatures.py
