# backend/tests/conftest.py
# -*- coding: utf-8 -*-
"""
Config global de tests del servicio de pagos.

- Variables de entorno de test ANTES de importar la app
- SQLite en memoria (aiosqlite + StaticPool) por test, esquema completo
- Pasarelas falsas (AsyncMock) inyectadas vía ProviderRegistry
- Cliente httpx con ciclo de vida (asgi-lifespan)
- Reset de singletons (settings de pagos, rate limiters, cachés, registry)

Autor: EventShot Payments
Fecha: 2025-11-27
"""

import os

# -----------------------------------------------------------------------------
# 0) Variables mínimas de entorno (antes de cualquier import de app.*)
# -----------------------------------------------------------------------------
os.environ["PYTHON_ENV"] = "test"
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ["PAYMENTS_ALLOW_INSECURE_WEBHOOKS"] = "false"

import uuid
from collections.abc import AsyncIterator
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.modules.auth import create_access_token
from app.modules.payments.enums import (
    BillingCycle,
    EventStatus,
    PaymentProvider,
    PricingType,
    SubscriptionScope,
    SubscriptionStatus,
    TransactionStatus,
    WalletStatus,
)
from app.modules.payments.models import (
    SESSION_COLUMN_BY_PROVIDER,
    Event,
    Media,
    RecurringSubscription,
    Transaction,
    Wallet,
)
from app.modules.payments.providers.base import CheckoutSession, ProviderSubscription, VerifiedPayment
from app.modules.payments.providers.registry import ProviderRegistry
from app.shared.config import settings_payments
from app.shared.config.settings_payments import PaymentsSettings
from app.shared.database.base import Base, utcnow


# -----------------------------------------------------------------------------
# 1) Base de datos por test
# -----------------------------------------------------------------------------
@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


# -----------------------------------------------------------------------------
# 2) Settings de pagos
# -----------------------------------------------------------------------------
@pytest.fixture
def payments_settings() -> PaymentsSettings:
    """
    Las cuatro pasarelas configuradas, ventanas cortas de idempotencia y
    rate limit apagado (los tests de 429 lo encienden explícitamente).
    """
    cfg = PaymentsSettings(
        stripe_secret_key="sk_test_x",
        stripe_webhook_secret="whsec_test",
        paypal_client_id="paypal-client",
        paypal_client_secret="paypal-secret",
        paypal_webhook_id="WH-1",
        flutterwave_secret_key="FLWSECK_TEST-x",
        flutterwave_webhook_hash="flw-hash",
        paystack_secret_key="sk_test_paystack",
        frontend_url="https://shots.example.com/",
        idempotency_inflight_wait_seconds=0.05,
        idempotency_poll_interval_seconds=0.01,
        allow_insecure_webhooks=False,
        rate_limit_enabled=False,
    )
    settings_payments._payments_settings = cfg
    return cfg


@pytest.fixture(autouse=True)
def _reset_singletons():
    yield
    from app.modules.payments.middleware import reset_rate_limiters
    from app.modules.payments.providers.http_client import _reset_provider_clients
    from app.modules.payments.providers.registry import reset_provider_registry
    from app.modules.payments.routes.dependencies import reset_exchange_rate_cache

    settings_payments.reset_payments_settings()
    reset_rate_limiters()
    reset_exchange_rate_cache()
    reset_provider_registry()
    _reset_provider_clients()


# -----------------------------------------------------------------------------
# 3) Pasarelas falsas
# -----------------------------------------------------------------------------
def make_fake_provider(name: str) -> MagicMock:
    provider = MagicMock(name=f"{name}_provider")
    provider.name = name
    provider.create_checkout = AsyncMock(
        side_effect=lambda params: CheckoutSession(
            provider=name,
            session_id=f"{name}_sess_{params.reference}",
            checkout_url=f"https://pay.example.com/{name}/{params.reference}",
        )
    )
    provider.create_subscription_checkout = AsyncMock(
        side_effect=lambda params: CheckoutSession(
            provider=name,
            session_id=f"{name}_sub_{params.reference}",
            checkout_url=f"https://pay.example.com/{name}/sub/{params.reference}",
        )
    )
    provider.verify_payment = AsyncMock()
    provider.fetch_subscription = AsyncMock()
    provider.ensure_customer = AsyncMock(return_value="cus_test")
    provider.verify_webhook_signature = AsyncMock(return_value=True)
    return provider


@pytest.fixture
def fake_providers():
    return {p.value: make_fake_provider(p.value) for p in PaymentProvider}


@pytest.fixture
def registry(payments_settings, fake_providers) -> ProviderRegistry:
    return ProviderRegistry(payments_settings, providers=fake_providers)


@pytest.fixture
def make_verified():
    """Fábrica de VerifiedPayment (respuesta de verify_payment)."""

    def _make(reference, amount, currency="USD", status="succeeded", **kwargs) -> VerifiedPayment:
        return VerifiedPayment(
            provider=kwargs.pop("provider", "stripe"),
            reference=reference,
            status=status,
            amount=amount,
            currency=currency,
            provider_transaction_id=kwargs.pop("provider_transaction_id", "pi_123"),
            provider_fee=kwargs.pop("provider_fee", None),
            paid_at=kwargs.pop("paid_at", None),
            metadata=kwargs.pop("metadata", {}),
        )

    return _make


@pytest.fixture
def make_provider_subscription():
    """Fábrica de ProviderSubscription (respuesta de fetch_subscription)."""

    def _make(**kwargs) -> ProviderSubscription:
        defaults = dict(
            provider="stripe",
            external_subscription_id="sub_123",
            status="active",
            external_plan_id="price_pro",
            currency="USD",
            amount_cents=1500,
            metadata={},
        )
        defaults.update(kwargs)
        return ProviderSubscription(**defaults)

    return _make


# -----------------------------------------------------------------------------
# 4) Datos semilla
# -----------------------------------------------------------------------------
@pytest.fixture
def photographer_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
async def seeded(db, photographer_id):
    """
    Evento ACTIVE en USD (500 por foto, 2000 todo), tres medios, wallet
    Stripe activa y suscripción creator 'pro' activa.
    """
    event = Event(
        photographer_id=photographer_id,
        name="Boda Ana y Luis",
        status=EventStatus.ACTIVE,
        currency="USD",
        country_code="US",
        pricing_type=PricingType.PER_PHOTO,
        price_per_media=500,
        unlock_all_price=2000,
    )
    db.add(event)
    await db.flush()
    media = [Media(event_id=event.id, storage_key=f"events/{i}.jpg") for i in range(3)]
    db.add_all(media)
    wallet = Wallet(
        photographer_id=photographer_id,
        provider=PaymentProvider.STRIPE,
        status=WalletStatus.ACTIVE,
        account_id="acct_1",
        charges_enabled=True,
        payouts_enabled=True,
    )
    db.add(wallet)
    creator = RecurringSubscription(
        owner_user_id=photographer_id,
        scope=SubscriptionScope.CREATOR,
        plan_code="pro",
        billing_cycle=BillingCycle.MONTHLY,
        provider=PaymentProvider.STRIPE,
        external_subscription_id=f"sub_creator_{photographer_id.hex[:8]}",
        status=SubscriptionStatus.ACTIVE,
        current_period_start=utcnow(),
        current_period_end=utcnow() + timedelta(days=30),
        last_event_at=utcnow(),
    )
    db.add(creator)
    await db.commit()
    return {"event": event, "media": media, "wallet": wallet, "creator": creator}


@pytest.fixture
def make_transaction(db, seeded):
    """Inserta una Transaction pending sobre el evento/wallet semilla."""

    async def _make(**overrides) -> Transaction:
        reference = overrides.pop("transaction_reference", f"tx_{uuid.uuid4().hex}")
        provider = PaymentProvider(overrides.pop("provider", PaymentProvider.STRIPE))
        data = dict(
            transaction_reference=reference,
            event_id=seeded["event"].id,
            wallet_id=seeded["wallet"].id,
            attendee_id=None,
            payer_email="buyer@example.com",
            provider=provider,
            gross_amount=1000,
            original_amount=1000,
            platform_fee=150,
            provider_fee=59,
            transaction_fee=0,
            net_amount=791,
            currency="USD",
            event_currency="USD",
            status=TransactionStatus.PENDING,
            idempotency_key="key-1",
            meta={
                "media_ids": [str(m.id) for m in seeded["media"][:2]],
                "unlock_all": False,
                "checkout_url": f"https://pay.example.com/{reference}",
            },
        )
        data[SESSION_COLUMN_BY_PROVIDER[provider]] = f"sess_{reference}"
        data.update(overrides)
        transaction = Transaction(**data)
        db.add(transaction)
        await db.commit()
        return transaction

    return _make


# -----------------------------------------------------------------------------
# 5) App FastAPI y cliente httpx con ciclo de vida
# -----------------------------------------------------------------------------
@pytest.fixture(scope="session")
def app():
    """Carga la aplicación **después** de setear env vars."""
    from app.main import app as fastapi_app
    return fastapi_app


@pytest.fixture
def wired_app(app, session_factory, registry, payments_settings):
    """App con sesión, registry y settings de test vía dependency_overrides."""
    from app.modules.payments.providers.registry import get_provider_registry
    from app.modules.payments.routes.dependencies import get_settings_dependency
    from app.shared.database.database import get_async_session

    async def _session_override():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = _session_override
    app.dependency_overrides[get_provider_registry] = lambda: registry
    app.dependency_overrides[get_settings_dependency] = lambda: payments_settings
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
async def async_client(wired_app) -> AsyncIterator[AsyncClient]:
    async with LifespanManager(wired_app):
        transport = ASGITransport(app=wired_app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client


@pytest.fixture
def auth_headers():
    """Headers Bearer con JWT válido para un usuario."""

    def _make(user_id: uuid.UUID, email: str = "buyer@example.com") -> dict:
        token = create_access_token(user_id, email=email)
        return {"Authorization": f"Bearer {token}"}

    return _make

# Fin del archivo backend/tests/conftest.py
