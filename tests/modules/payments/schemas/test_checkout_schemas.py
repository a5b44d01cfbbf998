# -*- coding: utf-8 -*-
"""
backend/tests/modules/payments/schemas/test_checkout_schemas.py

Tests de contratos de checkout y suscripciones (camelCase, normalización).

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import uuid

import pytest
from pydantic import ValidationError

from app.modules.payments.enums import BillingCycle, PaymentProvider, SubscriptionScope
from app.modules.payments.schemas import (
    CheckoutRequest,
    SubscriptionCheckoutRequest,
    VerifySubscriptionRequest,
)

EVENT_ID = uuid.uuid4()
M1, M2 = uuid.uuid4(), uuid.uuid4()


class TestCheckoutRequest:

    def test_accepts_camel_case(self):
        req = CheckoutRequest.model_validate({
            "eventId": str(EVENT_ID),
            "mediaIds": [str(M1)],
            "provider": "paystack",
            "currency": "ngn",
            "customerEmail": "  Buyer@Example.COM ",
        })

        assert req.event_id == EVENT_ID
        assert req.provider == PaymentProvider.PAYSTACK
        assert req.currency == "NGN"
        assert req.customer_email == "buyer@example.com"

    def test_requires_media_or_unlock_all(self):
        with pytest.raises(ValidationError):
            CheckoutRequest.model_validate({"eventId": str(EVENT_ID)})
        with pytest.raises(ValidationError):
            CheckoutRequest.model_validate({"eventId": str(EVENT_ID), "mediaIds": []})

    def test_rejects_both_media_and_unlock_all(self):
        with pytest.raises(ValidationError):
            CheckoutRequest.model_validate({
                "eventId": str(EVENT_ID),
                "mediaIds": [str(M1)],
                "unlockAll": True,
            })

    def test_rejects_invalid_email(self):
        with pytest.raises(ValidationError):
            CheckoutRequest.model_validate({
                "eventId": str(EVENT_ID),
                "unlockAll": True,
                "customerEmail": "not-an-email",
            })

    def test_normalized_is_order_independent(self):
        a = CheckoutRequest(event_id=EVENT_ID, media_ids=[M1, M2, M1])
        b = CheckoutRequest(event_id=EVENT_ID, media_ids=[M2, M1])

        assert a.normalized() == b.normalized()
        assert len(a.unique_media_ids()) == 2

    def test_normalized_excludes_body_idempotency_key(self):
        a = CheckoutRequest(event_id=EVENT_ID, unlock_all=True, idempotency_key="k1")
        b = CheckoutRequest(event_id=EVENT_ID, unlock_all=True)

        assert a.normalized() == b.normalized()


class TestSubscriptionSchemas:

    def test_subscription_checkout_request(self):
        req = SubscriptionCheckoutRequest.model_validate({"planCode": " PRO ", "billingCycle": "yearly"})

        assert req.plan_code == "pro"
        assert req.cycle == BillingCycle.ANNUAL
        assert req.normalized(SubscriptionScope.CREATOR) == {
            "planCode": "pro",
            "billingCycle": "annual",
            "currency": None,
            "provider": None,
            "scope": "creator_subscription",
        }

    def test_verify_request_reference_priority(self):
        req = VerifySubscriptionRequest.model_validate({
            "provider": "Flutterwave",
            "txRef": "sub_tx_1",
            "reference": "ignored",
        })

        assert req.provider == "flutterwave"
        assert req.provider_reference == "sub_tx_1"

    def test_verify_request_without_reference(self):
        assert VerifySubscriptionRequest(provider="stripe").provider_reference is None

# Fin del archivo backend/tests/modules/payments/schemas/test_checkout_schemas.py
