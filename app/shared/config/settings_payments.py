# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_payments.py

Configuración de pagos del marketplace.

Descripción:
    Centraliza credenciales de las cuatro pasarelas (Stripe, PayPal,
    Flutterwave, Paystack), tiempos de espera hacia proveedores,
    ventanas del ledger de idempotencia y límites de tasa.

Autor: EventShot Payments
Fecha: 25/10/2025
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Orden por defecto de pasarelas (productos de plataforma y último recurso)
DEFAULT_GATEWAY_ORDER: tuple[str, ...] = ("stripe", "paypal", "flutterwave", "paystack")


class PaymentsSettings(BaseSettings):
    """Configuración de sistema de pagos."""

    # =========================================================================
    # FEATURE FLAGS
    # =========================================================================

    payments_enabled: bool = Field(
        default=True,
        description="Habilita el sistema de pagos globalmente"
    )

    # =========================================================================
    # STRIPE
    # =========================================================================

    stripe_enabled: bool = Field(
        default=True,
        description="Habilita pagos con Stripe"
    )

    stripe_secret_key: Optional[str] = Field(
        default=None,
        description="Stripe secret key (sk_live_... o sk_test_...)"
    )

    stripe_webhook_secret: Optional[str] = Field(
        default=None,
        description="Stripe webhook signing secret (whsec_...)"
    )

    stripe_webhook_tolerance_seconds: int = Field(
        default=300,
        description="Tolerancia para validación de timestamp de webhooks Stripe (5 minutos)"
    )

    # =========================================================================
    # PAYPAL
    # =========================================================================

    paypal_enabled: bool = Field(
        default=True,
        description="Habilita pagos con PayPal"
    )

    paypal_client_id: Optional[str] = Field(
        default=None,
        description="PayPal client ID"
    )

    paypal_client_secret: Optional[str] = Field(
        default=None,
        description="PayPal client secret"
    )

    paypal_mode: str = Field(
        default="sandbox",
        description="Modo de PayPal: 'sandbox' o 'live'"
    )

    paypal_webhook_id: Optional[str] = Field(
        default=None,
        description="PayPal webhook ID para validación de firmas"
    )

    # =========================================================================
    # FLUTTERWAVE
    # =========================================================================

    flutterwave_enabled: bool = Field(
        default=True,
        description="Habilita pagos con Flutterwave"
    )

    flutterwave_secret_key: Optional[str] = Field(
        default=None,
        description="Flutterwave secret key (FLWSECK-...)"
    )

    flutterwave_webhook_hash: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FLUTTERWAVE_WEBHOOK_HASH", "FLUTTERWAVE_SECRET_HASH"),
        description="Valor esperado en el header verif-hash de Flutterwave"
    )

    flutterwave_base_url: str = Field(
        default="https://api.flutterwave.com/v3",
        description="URL base de la API v3 de Flutterwave"
    )

    # =========================================================================
    # PAYSTACK
    # =========================================================================

    paystack_enabled: bool = Field(
        default=True,
        description="Habilita pagos con Paystack"
    )

    paystack_secret_key: Optional[str] = Field(
        default=None,
        description="Paystack secret key (sk_live_... o sk_test_...), también firma webhooks"
    )

    paystack_base_url: str = Field(
        default="https://api.paystack.co",
        description="URL base de la API de Paystack"
    )

    # =========================================================================
    # FRONTEND URL (normalizado desde FRONTEND_URL o FRONTEND_BASE_URL)
    # =========================================================================

    frontend_url: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("FRONTEND_URL", "FRONTEND_BASE_URL"),
        description="URL base del frontend para redirects de checkout"
    )

    @field_validator("frontend_url", mode="after")
    @classmethod
    def _strip_frontend_url(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("paypal_mode", mode="before")
    @classmethod
    def _normalize_paypal_mode(cls, v: Optional[str]) -> str:
        return (v or "sandbox").strip().lower()

    # =========================================================================
    # TIMEOUTS HACIA PROVEEDORES
    # =========================================================================

    provider_timeout_seconds: float = Field(
        default=15.0,
        description="Tiempo máximo por llamada a un proveedor de pago"
    )

    # =========================================================================
    # IDEMPOTENCIA
    # =========================================================================

    idempotency_inflight_wait_seconds: float = Field(
        default=3.0,
        description="Espera máxima a que un request concurrente con la misma clave finalice"
    )

    idempotency_poll_interval_seconds: float = Field(
        default=0.25,
        description="Intervalo de sondeo mientras se espera un registro en processing"
    )

    idempotency_stale_after_seconds: int = Field(
        default=900,
        description="Antigüedad a partir de la cual un registro processing se reconcilia"
    )

    idempotency_retry_transient_failures: bool = Field(
        default=True,
        description="Permite reintentar con la misma clave cuando el fallo almacenado fue 5xx"
    )

    idempotency_sweep_interval_seconds: int = Field(
        default=300,
        description="Intervalo del job de reconciliación de registros processing"
    )

    # =========================================================================
    # WEBHOOKS
    # =========================================================================

    webhook_claim_stale_seconds: int = Field(
        default=300,
        description="Un evento claimed más antiguo que esto puede reclamarse de nuevo"
    )

    allow_insecure_webhooks: bool = Field(
        default=False,
        validation_alias=AliasChoices("PAYMENTS_ALLOW_INSECURE_WEBHOOKS", "ALLOW_INSECURE_WEBHOOKS"),
        description="Permite webhooks sin validación de firma (SOLO DESARROLLO)"
    )

    # =========================================================================
    # RATE LIMITING (best-effort, por instancia)
    # =========================================================================

    rate_limit_enabled: bool = Field(
        default=True,
        description="Habilita el rate limiting en memoria"
    )

    trust_proxy_headers: bool = Field(
        default=False,
        validation_alias=AliasChoices("PAYMENTS_TRUST_PROXY_HEADERS", "TRUST_PROXY_HEADERS"),
        description="Identifica al cliente por X-Forwarded-For / X-Real-IP"
    )

    checkout_rate_limit_requests: int = Field(
        default=10,
        description="Máximo de checkouts por IP dentro de la ventana"
    )

    checkout_rate_limit_window_seconds: int = Field(
        default=60,
        description="Ventana del rate limit de checkout"
    )

    webhook_rate_limit_requests: int = Field(
        default=120,
        description="Máximo de webhooks por IP dentro de la ventana"
    )

    webhook_rate_limit_window_seconds: int = Field(
        default=60,
        description="Ventana del rate limit de webhooks"
    )

    # =========================================================================
    # TIPOS DE CAMBIO
    # =========================================================================

    exchange_rate_cache_ttl_seconds: int = Field(
        default=300,
        description="TTL del caché de tipos de cambio"
    )

    # =========================================================================
    # CONFIGURACIÓN DE PYDANTIC
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def is_gateway_configured(self, gateway: str) -> bool:
        """True si la pasarela está habilitada y tiene credenciales."""
        if not self.payments_enabled:
            return False
        if gateway == "stripe":
            return self.stripe_enabled and bool(self.stripe_secret_key)
        if gateway == "paypal":
            return self.paypal_enabled and bool(self.paypal_client_id and self.paypal_client_secret)
        if gateway == "flutterwave":
            return self.flutterwave_enabled and bool(self.flutterwave_secret_key)
        if gateway == "paystack":
            return self.paystack_enabled and bool(self.paystack_secret_key)
        return False

    def configured_gateways(self) -> list[str]:
        """Pasarelas configuradas en el orden por defecto."""
        return [g for g in DEFAULT_GATEWAY_ORDER if self.is_gateway_configured(g)]


# Singleton global
_payments_settings: Optional[PaymentsSettings] = None


def get_payments_settings() -> PaymentsSettings:
    """
    Obtiene la instancia global de configuración de pagos.

    Returns:
        PaymentsSettings: Configuración de pagos
    """
    global _payments_settings
    if _payments_settings is None:
        _payments_settings = PaymentsSettings()
    return _payments_settings


def reset_payments_settings() -> None:
    """Descarta el singleton (útil para tests que modifican el entorno)."""
    global _payments_settings
    _payments_settings = None


__all__ = [
    "DEFAULT_GATEWAY_ORDER",
    "PaymentsSettings",
    "get_payments_settings",
    "reset_payments_settings",
]
# Fin del archivo backend/app/shared/config/settings_payments.py
