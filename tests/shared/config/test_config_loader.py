# -*- coding: utf-8 -*-
"""
backend/tests/shared/config/test_config_loader.py

Tests de selección de settings por PYTHON_ENV y de los mínimos de
seguridad exigidos en producción.

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import pytest

from app.shared.config.config_loader import clear_settings_cache, get_settings
from app.shared.config.settings_dev import DevSettings
from app.shared.config.settings_prod import ProdSettings
from app.shared.config.settings_testing import EnvTestingSettings

STRONG_JWT = "X" * 40


@pytest.fixture(autouse=True)
def _fresh_settings():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def production(monkeypatch, payments_settings):
    """Entorno de producción con pasarelas en modo live."""
    monkeypatch.setenv("PYTHON_ENV", "production")
    monkeypatch.setenv("JWT_SECRET_KEY", STRONG_JWT)
    payments_settings.stripe_secret_key = "sk_live_x"
    payments_settings.paypal_mode = "live"
    return payments_settings


def test_loader_selects_test():
    s = get_settings()

    assert isinstance(s, EnvTestingSettings)
    assert s.is_test is True
    assert s.scheduler_enabled is False


def test_loader_caches_singleton():
    assert get_settings() is get_settings()


@pytest.mark.parametrize("env", ["development", "Development", "staging"])
def test_loader_falls_back_to_dev(monkeypatch, payments_settings, env):
    monkeypatch.setenv("PYTHON_ENV", env)

    settings = get_settings()

    assert isinstance(settings, DevSettings)
    assert settings.python_env == "development"
    assert settings.is_dev is True


def test_loader_selects_prod(production):
    s = get_settings()

    assert isinstance(s, ProdSettings)
    assert s.is_prod is True
    assert s.log_format == "json"


def test_prod_rejects_weak_jwt(production, monkeypatch):
    monkeypatch.setenv("JWT_SECRET_KEY", "short")

    with pytest.raises(ValueError, match="JWT_SECRET_KEY"):
        get_settings()


def test_prod_rejects_test_stripe_key(production):
    production.stripe_secret_key = "sk_test_x"

    with pytest.raises(ValueError, match="Stripe"):
        get_settings()


def test_prod_rejects_paypal_sandbox(production):
    production.paypal_mode = "sandbox"

    with pytest.raises(ValueError, match="PayPal"):
        get_settings()


def test_prod_rejects_insecure_webhooks(production):
    production.allow_insecure_webhooks = True

    with pytest.raises(ValueError, match="INSECURE"):
        get_settings()


class TestBaseSettings:

    def test_database_url_normalizes_postgres_scheme(self, monkeypatch):
        monkeypatch.setenv("DB_URL", "postgres://u:p@db:5432/shots")

        assert get_settings().database_url == "postgresql+asyncpg://u:p@db:5432/shots"

    def test_database_url_from_components(self, monkeypatch):
        monkeypatch.setenv("PYTHON_ENV", "development")
        monkeypatch.delenv("DB_URL", raising=False)
        monkeypatch.setenv("DB_PASSWORD", "p@ss")
        monkeypatch.setenv("DB_HOST", "db")

        url = get_settings().database_url

        assert url == "postgresql+asyncpg://postgres:p%40ss@db:5432/eventshot"

    def test_cors_origins(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, 'https://b.example.com'")

        assert get_settings().get_cors_origins() == ["https://a.example.com", "https://b.example.com"]

    def test_cors_wildcard(self):
        assert get_settings().get_cors_origins() == ["*"]


class TestPaymentsSettings:

    def test_configured_gateways_follow_default_order(self, payments_settings):
        payments_settings.paypal_enabled = False

        assert payments_settings.configured_gateways() == ["stripe", "flutterwave", "paystack"]

    def test_payments_disabled(self, payments_settings):
        payments_settings.payments_enabled = False

        assert payments_settings.configured_gateways() == []

    def test_frontend_url_is_stripped(self, payments_settings):
        assert payments_settings.frontend_url == "https://shots.example.com"

# Fin del archivo backend/tests/shared/config/test_config_loader.py
