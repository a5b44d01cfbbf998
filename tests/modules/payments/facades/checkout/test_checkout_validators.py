# -*- coding: utf-8 -*-
"""
backend/tests/modules/payments/facades/checkout/test_checkout_validators.py

Tests de resolución de Idempotency-Key y del actor del checkout.

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import uuid

import pytest

from app.modules.payments.facades.checkout import resolve_actor, resolve_idempotency_key
from app.modules.payments.facades.checkout.validators import BODY_KEY_WARNING
from app.modules.payments.facades.errors import PaymentsError


class TestResolveIdempotencyKey:

    def test_header_key(self):
        assert resolve_idempotency_key(" abc ") == ("abc", {})

    def test_body_key_adds_warning(self):
        key, headers = resolve_idempotency_key(None, "body-key")

        assert key == "body-key"
        assert headers == {"Warning": BODY_KEY_WARNING}

    def test_same_key_in_both(self):
        key, headers = resolve_idempotency_key("k1", "k1")

        assert key == "k1"
        assert "Warning" in headers

    @pytest.mark.parametrize(
        "header, body, error",
        [
            ("k1", "k2", "idempotency_key_mismatch"),
            (None, None, "idempotency_key_required"),
            ("   ", "", "idempotency_key_required"),
            ("x" * 256, None, "invalid_idempotency_key"),
        ],
    )
    def test_invalid_keys(self, header, body, error):
        with pytest.raises(PaymentsError) as exc:
            resolve_idempotency_key(header, body)

        assert exc.value.status_code == 400
        assert exc.value.error == error


class TestResolveActor:

    def test_authenticated_user(self):
        user_id = uuid.uuid4()

        actor = resolve_actor(user_id, None)

        assert actor.actor_id == str(user_id)
        assert actor.is_guest is False

    def test_guest_with_email(self):
        actor = resolve_actor(None, "guest@example.com")

        assert actor.actor_id == "guest:guest@example.com"
        assert actor.is_guest is True

    def test_guest_without_email(self):
        with pytest.raises(PaymentsError) as exc:
            resolve_actor(None, None)

        assert exc.value.error == "customer_email_required"

# Fin del archivo backend/tests/modules/payments/facades/checkout/test_checkout_validators.py
