# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/errors.py

Errores de dominio del módulo Payments.

Objetivo:
- Excepciones semánticas que servicios y fachadas lanzan sin acoplarse
  a FastAPI.
- Cada error conoce su status HTTP, un código estable (`error`) y un
  contexto serializable; el exception handler de la app los convierte en
  `{error, message, failClosed?, ...context}`.

Taxonomía:
- Configuración (cuenta de cobro, mapeo de plan, pasarela): 400/403/503,
  fail_closed=True, nunca se sustituye pasarela/plan en silencio.
- Validación (clave ausente, media ya comprado, evento inactivo): 400/404.
- Concurrencia (clave reutilizada, request en vuelo): 409.
- Autorización (dueño de la sesión distinto): 403.
- Proveedor (timeout, rechazo): 502/504.

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from __future__ import annotations

from typing import Any, Mapping, Optional


class PaymentsError(Exception):
    """
    Error base para el módulo Payments.
    """

    status_code: int = 400
    error: str = "payments_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
        fail_closed: Optional[bool] = None,
        headers: Optional[Mapping[str, str]] = None,
        **context: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error is not None:
            self.error = error
        self.fail_closed = fail_closed
        self.headers = dict(headers or {})
        self.context = context

    def to_payload(self) -> dict[str, Any]:
        """Cuerpo JSON de la respuesta de error."""
        payload: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.fail_closed is not None:
            payload["failClosed"] = self.fail_closed
        payload.update(self.context)
        return payload


class GatewaySelectionError(PaymentsError):
    """
    No hay pasarela elegible. Siempre fail-closed.

    Códigos:
    - no_payment_account (400): el fotógrafo no tiene cuentas de cobro activas
    - no_gateway_configured (503): ninguna pasarela tiene credenciales
    - gateway_not_configured (503): la pasarela pedida explícitamente no está configurada
    """

    def __init__(self, code: str, message: str, *, status_code: int = 503, **context: Any) -> None:
        super().__init__(
            message,
            status_code=status_code,
            error=code,
            fail_closed=True,
            code=code,
            **context,
        )
        self.code = code


class PlanMappingError(PaymentsError):
    """No existe mapeo de plan en ninguna pasarela y Stripe no está disponible."""

    status_code = 503
    error = "missing_provider_plan_mapping"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, fail_closed=True, code=self.error, **context)


class BulkPricingError(PaymentsError):
    """Tiers de precio por volumen mal configurados (error de configuración)."""

    status_code = 503
    error = "invalid_pricing_configuration"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, fail_closed=True, **context)


class ExchangeRateUnavailable(PaymentsError):
    status_code = 503
    error = "exchange_rate_unavailable"

    def __init__(self, from_currency: str, to_currency: str) -> None:
        super().__init__(
            f"No exchange rate available for {from_currency}->{to_currency}",
            fail_closed=True,
            fromCurrency=from_currency,
            toCurrency=to_currency,
        )


class IdempotencyConflictError(PaymentsError):
    """Clave reutilizada con otro payload, o request con la misma clave en vuelo."""

    status_code = 409


class ProviderError(PaymentsError):
    """Error base de llamadas a proveedores de pago."""

    status_code = 502
    error = "provider_error"

    def __init__(self, provider: str, message: str, **context: Any) -> None:
        super().__init__(message, provider=provider, **context)
        self.provider = provider


class ProviderTimeoutError(ProviderError):
    status_code = 504
    error = "provider_timeout"


class ProviderRequestError(ProviderError):
    """El proveedor rechazó la operación o respondió algo inesperado."""


class WebhookSignatureError(PaymentsError):
    status_code = 401
    error = "invalid_signature"


class WebhookNormalizationError(PaymentsError):
    """Payload de webhook con forma inválida."""

    status_code = 400
    error = "invalid_webhook_payload"


class AmountMismatchError(PaymentsError):
    """El monto/moneda confirmados por el proveedor no coinciden con la transacción."""

    status_code = 409
    error = "amount_mismatch"


__all__ = [
    "PaymentsError",
    "GatewaySelectionError",
    "PlanMappingError",
    "BulkPricingError",
    "ExchangeRateUnavailable",
    "IdempotencyConflictError",
    "ProviderError",
    "ProviderTimeoutError",
    "ProviderRequestError",
    "WebhookSignatureError",
    "WebhookNormalizationError",
    "AmountMismatchError",
]

# Fin del archivo backend/app/modules/payments/facades/errors.py
