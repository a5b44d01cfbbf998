# -*- coding: utf-8 -*-
"""
backend/tests/modules/payments/facades/webhooks/test_webhook_normalize.py

Tests de normalización de payloads de Stripe, PayPal, Flutterwave y
Paystack al modelo común de eventos.

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import pytest

from app.modules.payments.enums import PaymentProvider
from app.modules.payments.facades.errors import WebhookNormalizationError
from app.modules.payments.facades.webhooks.normalize import normalize_webhook_payload, parse_webhook_body
from app.modules.payments.schemas import (
    AccountUpdated,
    Ignored,
    PaymentFailed,
    PaymentRefunded,
    PaymentSucceeded,
    PayoutUpdated,
    SubscriptionChanged,
)

STRIPE = PaymentProvider.STRIPE
PAYPAL = PaymentProvider.PAYPAL
FLUTTERWAVE = PaymentProvider.FLUTTERWAVE
PAYSTACK = PaymentProvider.PAYSTACK


def _stripe(event_type, obj, event_id="evt_1"):
    return {"id": event_id, "type": event_type, "created": 1764000000, "data": {"object": obj}}


class TestParseBody:

    def test_invalid_json(self):
        with pytest.raises(WebhookNormalizationError):
            parse_webhook_body(b"{not json")

    def test_non_object(self):
        with pytest.raises(WebhookNormalizationError):
            parse_webhook_body(b"[1, 2]")

    def test_object(self):
        assert parse_webhook_body(b'{"a": 1}') == {"a": 1}


class TestStripe:

    def test_paid_checkout_session(self):
        event = normalize_webhook_payload(
            STRIPE,
            _stripe(
                "checkout.session.completed",
                {
                    "id": "cs_1",
                    "mode": "payment",
                    "payment_status": "paid",
                    "payment_intent": "pi_1",
                    "amount_total": 1000,
                    "currency": "usd",
                    "metadata": {"transaction_reference": "tx_1"},
                },
            ),
        )

        assert isinstance(event, PaymentSucceeded)
        assert event.event_id == "evt_1"
        assert event.reference == "cs_1"
        assert event.transaction_reference == "tx_1"
        assert event.provider_transaction_id == "pi_1"
        assert event.amount == 1000
        assert event.currency == "USD"
        assert event.occurred_at.year == 2025

    def test_unpaid_checkout_session_is_ignored(self):
        event = normalize_webhook_payload(
            STRIPE, _stripe("checkout.session.completed", {"id": "cs_1", "payment_status": "unpaid"})
        )

        assert isinstance(event, Ignored)
        assert event.reason == "payment_pending"

    def test_subscription_checkout(self):
        event = normalize_webhook_payload(
            STRIPE,
            _stripe(
                "checkout.session.completed",
                {"id": "cs_sub", "mode": "subscription", "subscription": "sub_1", "customer": "cus_1"},
            ),
        )

        assert isinstance(event, SubscriptionChanged)
        assert event.checkout_session_id == "cs_sub"
        assert event.external_subscription_id == "sub_1"

    def test_expired_session(self):
        event = normalize_webhook_payload(
            STRIPE, _stripe("checkout.session.expired", {"id": "cs_1", "client_reference_id": "tx_1"})
        )

        assert isinstance(event, PaymentFailed)
        assert event.reason == "expired"
        assert event.transaction_reference == "tx_1"

    def test_charge_refunded(self):
        event = normalize_webhook_payload(
            STRIPE,
            _stripe(
                "charge.refunded",
                {
                    "id": "ch_1",
                    "payment_intent": "pi_1",
                    "amount_refunded": 400,
                    "currency": "usd",
                    "refunds": {"data": [{"id": "re_1"}]},
                },
            ),
        )

        assert isinstance(event, PaymentRefunded)
        assert event.refund_id == "re_1"
        assert event.amount == 400

    def test_subscription_updated_reads_item_periods(self):
        event = normalize_webhook_payload(
            STRIPE,
            _stripe(
                "customer.subscription.updated",
                {
                    "id": "sub_1",
                    "status": "past_due",
                    "customer": "cus_1",
                    "metadata": {"scope": "creator_subscription"},
                    "items": {
                        "data": [
                            {
                                "price": {"id": "price_pro", "currency": "usd", "unit_amount": 1500},
                                "current_period_start": 1764000000,
                                "current_period_end": 1766592000,
                            }
                        ]
                    },
                },
            ),
        )

        assert isinstance(event, SubscriptionChanged)
        assert event.provider_status == "past_due"
        assert event.external_plan_id == "price_pro"
        assert event.currency == "USD"
        assert event.current_period_end is not None
        assert event.metadata == {"scope": "creator_subscription"}

    def test_invoice_payment_failed(self):
        event = normalize_webhook_payload(
            STRIPE,
            _stripe(
                "invoice.payment_failed",
                {"id": "in_1", "parent": {"subscription_details": {"subscription": "sub_1"}}, "currency": "usd"},
            ),
        )

        assert isinstance(event, SubscriptionChanged)
        assert event.external_subscription_id == "sub_1"
        assert event.provider_status == "past_due"
        assert event.current_period_end is None

    def test_invoice_without_subscription(self):
        event = normalize_webhook_payload(STRIPE, _stripe("invoice.paid", {"id": "in_1"}))

        assert isinstance(event, Ignored)

    def test_account_and_payout(self):
        account = normalize_webhook_payload(
            STRIPE, _stripe("account.updated", {"id": "acct_1", "charges_enabled": True, "payouts_enabled": False})
        )
        payout = normalize_webhook_payload(
            STRIPE, _stripe("payout.failed", {"id": "po_1", "failure_message": "account_closed"})
        )

        assert isinstance(account, AccountUpdated)
        assert account.charges_enabled is True
        assert account.payouts_enabled is False
        assert isinstance(payout, PayoutUpdated)
        assert payout.succeeded is False
        assert payout.reason == "account_closed"

    def test_unknown_type_is_ignored(self):
        event = normalize_webhook_payload(STRIPE, _stripe("customer.created", {"id": "cus_1"}))

        assert isinstance(event, Ignored)
        assert event.reason == "unhandled_event_type"

    def test_missing_identity(self):
        with pytest.raises(WebhookNormalizationError):
            normalize_webhook_payload(STRIPE, {"type": "checkout.session.completed"})


class TestPayPal:

    def test_capture_completed(self):
        event = normalize_webhook_payload(
            PAYPAL,
            {
                "id": "WH-1",
                "event_type": "PAYMENT.CAPTURE.COMPLETED",
                "create_time": "2025-11-25T10:00:00Z",
                "resource": {
                    "id": "CAP-1",
                    "custom_id": "tx_1",
                    "amount": {"value": "10.00", "currency_code": "USD"},
                    "supplementary_data": {"related_ids": {"order_id": "ORDER-1"}},
                },
            },
        )

        assert isinstance(event, PaymentSucceeded)
        assert event.reference == "ORDER-1"
        assert event.transaction_reference == "tx_1"
        assert event.provider_transaction_id == "CAP-1"
        assert event.amount == 1000

    def test_capture_refunded_finds_capture_link(self):
        event = normalize_webhook_payload(
            PAYPAL,
            {
                "id": "WH-2",
                "event_type": "PAYMENT.CAPTURE.REFUNDED",
                "resource": {
                    "id": "REF-1",
                    "amount": {"value": "5.50", "currency_code": "USD"},
                    "links": [{"rel": "up", "href": "https://api.paypal.com/v2/payments/captures/CAP-1"}],
                },
            },
        )

        assert isinstance(event, PaymentRefunded)
        assert event.provider_transaction_id == "CAP-1"
        assert event.amount == 550

    def test_subscription_payment_failed(self):
        event = normalize_webhook_payload(
            PAYPAL,
            {
                "id": "WH-3",
                "event_type": "BILLING.SUBSCRIPTION.PAYMENT.FAILED",
                "resource": {"id": "I-SUB1", "status": "ACTIVE", "custom_id": "sub_ref|creator_subscription"},
            },
        )

        assert isinstance(event, SubscriptionChanged)
        assert event.external_subscription_id == "I-SUB1"
        assert event.provider_status == "past_due"

    def test_sale_without_agreement(self):
        event = normalize_webhook_payload(
            PAYPAL, {"id": "WH-4", "event_type": "PAYMENT.SALE.COMPLETED", "resource": {"id": "S-1"}}
        )

        assert isinstance(event, Ignored)


class TestFlutterwave:

    def test_successful_charge(self):
        event = normalize_webhook_payload(
            FLUTTERWAVE,
            {
                "event": "charge.completed",
                "data": {"id": 123, "tx_ref": "tx_1", "status": "successful", "amount": 7500, "currency": "NGN"},
            },
        )

        assert isinstance(event, PaymentSucceeded)
        assert event.event_id == "charge.completed:123"
        assert event.transaction_reference == "tx_1"
        assert event.provider_transaction_id == "123"
        assert event.amount == 750_000

    def test_failed_charge(self):
        event = normalize_webhook_payload(
            FLUTTERWAVE,
            {"event": "charge.completed", "data": {"id": 124, "tx_ref": "tx_2", "status": "failed"}},
        )

        assert isinstance(event, PaymentFailed)

    def test_subscription_charge_uses_manual_renewal(self):
        event = normalize_webhook_payload(
            FLUTTERWAVE,
            {
                "event": "charge.completed",
                "data": {"id": 125, "tx_ref": "sub_1", "status": "successful", "amount": 25000, "currency": "NGN"},
                "meta_data": {"scope": "vault_subscription", "owner_user_id": "u1"},
            },
        )

        assert isinstance(event, SubscriptionChanged)
        assert event.manual_renewal is True
        assert event.external_subscription_id == "sub_1"
        assert event.metadata["scope"] == "vault_subscription"

    def test_missing_data(self):
        with pytest.raises(WebhookNormalizationError):
            normalize_webhook_payload(FLUTTERWAVE, {"event": "charge.completed", "data": {}})


class TestPaystack:

    def test_charge_success(self):
        event = normalize_webhook_payload(
            PAYSTACK,
            {"event": "charge.success", "data": {"id": 9, "reference": "tx_9", "amount": 500000, "currency": "NGN"}},
        )

        assert isinstance(event, PaymentSucceeded)
        assert event.event_id == "charge.success:9"
        assert event.amount == 500000

    def test_transfer_failed(self):
        event = normalize_webhook_payload(
            PAYSTACK,
            {"event": "transfer.failed", "data": {"reference": "po_1", "reason": "insufficient_balance"}},
        )

        assert isinstance(event, PayoutUpdated)
        assert event.succeeded is False
        assert event.reason == "insufficient_balance"

    def test_subscription_not_renew(self):
        event = normalize_webhook_payload(
            PAYSTACK,
            {"event": "subscription.not_renew", "data": {"id": 3, "subscription_code": "SUB_1"}},
        )

        assert isinstance(event, SubscriptionChanged)
        assert event.provider_status == "active"
        assert event.cancel_at_period_end is True

    def test_refund_processed(self):
        event = normalize_webhook_payload(
            PAYSTACK,
            {
                "event": "refund.processed",
                "data": {"id": 44, "transaction_reference": "tx_9", "amount": 100000, "currency": "NGN"},
            },
        )

        assert isinstance(event, PaymentRefunded)
        assert event.transaction_reference == "tx_9"
        assert event.refund_id == "44"

# Fin del archivo backend/tests/modules/payments/facades/webhooks/test_webhook_normalize.py
