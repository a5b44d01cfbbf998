# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/providers/http_client.py

Clientes HTTP singleton (keep-alive) para las APIs REST de PayPal,
Flutterwave y Paystack.

- Un httpx.AsyncClient por proveedor, con Timeout y Limits explícitos.
- Un reintento con backoff para errores transitorios (429, 502, 503, 504)
  y timeouts; 429 usa un backoff mayor.
- Timeout agotado -> ProviderTimeoutError (504).
- Cualquier otro non-2xx -> ProviderRequestError (502).

Registrar close_provider_http_clients() en el lifespan de la app.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from app.modules.payments.facades.errors import ProviderRequestError, ProviderTimeoutError
from app.shared.config.settings_payments import get_payments_settings

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURACIÓN
# =============================================================================

PROVIDER_HTTP_LIMITS = httpx.Limits(
    max_keepalive_connections=20,
    max_connections=50,
    keepalive_expiry=30.0,
)

TRANSIENT_HTTP_ERRORS = frozenset({429, 502, 503, 504})
MAX_TRANSIENT_RETRIES = 1
RETRY_BACKOFF_BASE = 0.5
RETRY_BACKOFF_429 = 2.0


def _timeout() -> httpx.Timeout:
    total = get_payments_settings().provider_timeout_seconds
    return httpx.Timeout(total, connect=min(5.0, total))


def _is_transient_error(status_code: int) -> bool:
    return status_code in TRANSIENT_HTTP_ERRORS


def _get_backoff_for_status(status_code: int, attempt: int) -> float:
    if status_code == 429:
        return RETRY_BACKOFF_429 * (2 ** attempt)
    return RETRY_BACKOFF_BASE * (2 ** attempt)


# =============================================================================
# SINGLETONS
# =============================================================================

_clients: Dict[str, httpx.AsyncClient] = {}


def get_provider_http_client(provider: str) -> httpx.AsyncClient:
    """Cliente reutilizable por proveedor (no usar `async with` por request)."""
    client = _clients.get(provider)
    if client is None or client.is_closed:
        client = httpx.AsyncClient(timeout=_timeout(), limits=PROVIDER_HTTP_LIMITS)
        _clients[provider] = client
        logger.debug("Creado cliente HTTP singleton provider=%s", provider)
    return client


async def close_provider_http_clients() -> None:
    """Cierra todos los clientes (shutdown)."""
    for key, client in list(_clients.items()):
        try:
            await client.aclose()
        except httpx.HTTPError as e:
            logger.warning("Error cerrando cliente HTTP provider=%s: %s", key, e)
    _clients.clear()


def _reset_provider_clients() -> None:
    """Reset para tests (sync, no cierra)."""
    _clients.clear()


# =============================================================================
# REQUEST CON REINTENTO
# =============================================================================

async def request_json(
    provider: str,
    method: str,
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    json: Any = None,
    data: Optional[Mapping[str, str]] = None,
    auth: Optional[Tuple[str, str]] = None,
    accept_statuses: Tuple[int, ...] = (),
) -> Tuple[int, Dict[str, Any]]:
    """
    Ejecuta un request y devuelve (status, body JSON).

    `accept_statuses` permite que el llamador interprete códigos no-2xx
    (p.ej. 404 al consultar una referencia inexistente).

    Raises:
        ProviderTimeoutError: timeout tras agotar reintentos.
        ProviderRequestError: error de red o respuesta no aceptada.
    """
    last_status: Optional[int] = None

    for attempt in range(MAX_TRANSIENT_RETRIES + 1):
        client = get_provider_http_client(provider)
        try:
            response = await client.request(
                method,
                url,
                headers=dict(headers or {}),
                json=json,
                data=data,
                auth=auth,
            )
        except httpx.TimeoutException:
            if attempt < MAX_TRANSIENT_RETRIES:
                backoff = RETRY_BACKOFF_BASE * (2 ** attempt)
                logger.warning(
                    "[%s] %s %s timeout, reintentando en %ss (intento %d/%d)",
                    provider, method, url, backoff, attempt + 1, MAX_TRANSIENT_RETRIES + 1,
                )
                await asyncio.sleep(backoff)
                continue
            raise ProviderTimeoutError(provider, f"{provider} did not respond in time")
        except httpx.HTTPError as e:
            logger.error("[%s] %s %s error de red: %s", provider, method, url, e)
            raise ProviderRequestError(provider, f"{provider} request failed")

        last_status = response.status_code
        if _is_transient_error(response.status_code) and attempt < MAX_TRANSIENT_RETRIES:
            backoff = _get_backoff_for_status(response.status_code, attempt)
            logger.warning(
                "[%s] %s %s error transitorio %s, reintentando en %ss",
                provider, method, url, response.status_code, backoff,
            )
            await asyncio.sleep(backoff)
            continue

        if response.is_success or response.status_code in accept_statuses:
            try:
                body = response.json() if response.content else {}
            except ValueError:
                raise ProviderRequestError(provider, f"{provider} returned a non-JSON response")
            return response.status_code, body if isinstance(body, dict) else {"data": body}

        logger.warning(
            "[%s] %s %s rechazado: %s - %s",
            provider, method, url, response.status_code, response.text[:200],
        )
        raise ProviderRequestError(
            provider,
            f"{provider} rejected the request",
            providerStatus=response.status_code,
        )

    raise ProviderRequestError(provider, f"{provider} request failed", providerStatus=last_status)


__all__ = [
    "PROVIDER_HTTP_LIMITS",
    "TRANSIENT_HTTP_ERRORS",
    "MAX_TRANSIENT_RETRIES",
    "get_provider_http_client",
    "close_provider_http_clients",
    "request_json",
]

# Fin del archivo backend/app/modules/payments/providers/http_client.py
