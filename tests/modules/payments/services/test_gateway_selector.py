# -*- coding: utf-8 -*-
"""
backend/tests/modules/payments/services/test_gateway_selector.py

Tests del selector de pasarela (explícita, preferencia, país, orden por defecto).

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import uuid

import pytest

from app.modules.payments.enums import PaymentProvider, WalletStatus
from app.modules.payments.facades.errors import GatewaySelectionError
from app.modules.payments.models import Wallet
from app.modules.payments.services.gateway_selector import (
    PRODUCT_PAYEE,
    PRODUCT_PLATFORM,
    REASON_COUNTRY,
    REASON_DEFAULT,
    REASON_EXPLICIT,
    REASON_USER_PREFERENCE,
    GatewaySelectionContext,
    build_context,
    load_payee_gateways,
    select_gateway,
)

ALL = ["stripe", "paypal", "flutterwave", "paystack"]


def _ctx(**kwargs) -> GatewaySelectionContext:
    data = dict(configured_gateways=ALL, product_type=PRODUCT_PAYEE, payee_gateways=ALL)
    data.update(kwargs)
    return GatewaySelectionContext(**data)


class TestSelectGateway:

    def test_nothing_configured(self):
        with pytest.raises(GatewaySelectionError) as exc:
            select_gateway(_ctx(configured_gateways=[]))

        assert exc.value.status_code == 503
        assert exc.value.to_payload() == {
            "error": "no_gateway_configured",
            "message": "No payment gateway is configured on this platform",
            "failClosed": True,
            "code": "no_gateway_configured",
        }

    def test_explicit_request_wins(self):
        selection = select_gateway(_ctx(requested_gateway="Paystack", user_preference="stripe"))

        assert selection.gateway == "paystack"
        assert selection.reason == REASON_EXPLICIT
        assert selection.available_gateways[0] == "paystack"

    def test_explicit_request_not_configured(self):
        with pytest.raises(GatewaySelectionError) as exc:
            select_gateway(_ctx(configured_gateways=["stripe"], requested_gateway="paypal"))

        assert exc.value.error == "gateway_not_configured"
        assert exc.value.context["requestedGateway"] == "paypal"

    def test_payee_without_accounts(self):
        with pytest.raises(GatewaySelectionError) as exc:
            select_gateway(_ctx(payee_gateways=[]))

        assert exc.value.status_code == 400
        assert exc.value.code == "no_payment_account"

    def test_explicit_request_needs_a_payee_account(self):
        with pytest.raises(GatewaySelectionError) as exc:
            select_gateway(_ctx(payee_gateways=[], requested_gateway="stripe"))

        assert exc.value.status_code == 400
        assert exc.value.code == "no_payment_account"

    def test_explicit_request_for_platform_product(self):
        selection = select_gateway(
            _ctx(product_type=PRODUCT_PLATFORM, payee_gateways=[], requested_gateway="paypal")
        )

        assert selection.gateway == "paypal"
        assert selection.reason == REASON_EXPLICIT

    def test_user_preference(self):
        selection = select_gateway(_ctx(user_preference="paypal", country_code="NG"))

        assert selection.gateway == "paypal"
        assert selection.reason == REASON_USER_PREFERENCE

    def test_preference_ignored_when_payee_lacks_it(self):
        selection = select_gateway(_ctx(payee_gateways=["stripe"], user_preference="paypal"))

        assert selection.gateway == "stripe"
        assert selection.reason == REASON_COUNTRY

    @pytest.mark.parametrize(
        "country, expected",
        [("NG", "flutterwave"), ("GH", "flutterwave"), ("ZA", "stripe"), ("US", "stripe"), (None, "stripe")],
    )
    def test_country_preference(self, country, expected):
        selection = select_gateway(_ctx(country_code=country))

        assert selection.gateway == expected
        assert selection.reason == REASON_COUNTRY

    def test_country_falls_through_to_available(self):
        selection = select_gateway(_ctx(payee_gateways=["paystack"], country_code="NG"))

        assert selection.gateway == "paystack"
        assert selection.reason == REASON_COUNTRY

    def test_default_order(self):
        selection = select_gateway(_ctx(payee_gateways=["paystack", "flutterwave"], country_code="US"))

        assert selection.gateway == "flutterwave"
        assert selection.reason == REASON_DEFAULT
        assert selection.to_dict()["availableGateways"] == ["flutterwave", "paystack"]

    def test_platform_product_ignores_payee(self):
        selection = select_gateway(_ctx(product_type=PRODUCT_PLATFORM, payee_gateways=[], country_code="KE"))

        assert selection.gateway == "flutterwave"


class TestContextHelpers:

    def test_build_context_uses_configured_gateways(self, payments_settings):
        payments_settings.paypal_enabled = False

        ctx = build_context(payments_settings, product_type=PRODUCT_PLATFORM)

        assert list(ctx.configured_gateways) == ["stripe", "flutterwave", "paystack"]

    @pytest.mark.asyncio
    async def test_load_payee_gateways_only_usable_wallets(self, db):
        owner = uuid.uuid4()
        db.add_all([
            Wallet(photographer_id=owner, provider=PaymentProvider.STRIPE, status=WalletStatus.ACTIVE, account_id="acct_9"),
            Wallet(photographer_id=owner, provider=PaymentProvider.PAYSTACK, status=WalletStatus.ACTIVE, account_id=None),
            Wallet(photographer_id=owner, provider=PaymentProvider.PAYPAL, status=WalletStatus.PENDING, account_id="pp_1"),
            Wallet(photographer_id=uuid.uuid4(), provider=PaymentProvider.FLUTTERWAVE, status=WalletStatus.ACTIVE, account_id="flw"),
        ])
        await db.commit()

        assert await load_payee_gateways(db, owner) == ["stripe"]

# Fin del archivo backend/tests/modules/payments/services/test_gateway_selector.py
