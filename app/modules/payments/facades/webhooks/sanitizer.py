# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/webhooks/sanitizer.py

Persistencia segura de payloads de webhook (whitelist + core fields + hash,
cero PII).

- WHITELIST estricta: solo campos explícitamente permitidos
- CORE FIELDS: campos mínimos por proveedor para reconciliación
- HASH del payload original para trazabilidad
- Nunca se guarda el payload completo (emails, nombres y tarjetas quedan fuera)

Autor: EventShot Payments
Fecha: 2025-11-25
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

WHITELIST_VERSION = "2.0"

AUDIT_FIELDS_WHITELIST: Set[str] = {
    # IDs de eventos y objetos
    "id",
    "event",
    "event_id",
    "event_type",
    "object",
    "type",
    # IDs de pago (sin PII)
    "payment_intent",
    "checkout_session",
    "charge",
    "invoice",
    "subscription",
    "subscription_id",
    "billing_agreement_id",
    "order_id",
    "tx_ref",
    "flw_ref",
    "reference",
    "transfer_code",
    # Montos y moneda
    "amount",
    "amount_total",
    "amount_refunded",
    "app_fee",
    "fees",
    "currency",
    "currency_code",
    "value",
    # Estados
    "status",
    "payment_status",
    "mode",
    # Timestamps
    "created",
    "created_at",
    "paid_at",
    "create_time",
    "current_period_end",
    "livemode",
}

CORE_FIELD_MAPPINGS: Dict[str, Dict[str, List[str]]] = {
    "stripe": {
        "core.event_id": ["id"],
        "core.event_type": ["type"],
        "core.object_id": ["data.object.id"],
        "core.amount": ["data.object.amount_total", "data.object.amount"],
        "core.currency": ["data.object.currency"],
        "core.status": ["data.object.payment_status", "data.object.status"],
    },
    "paypal": {
        "core.event_id": ["id"],
        "core.event_type": ["event_type"],
        "core.object_id": ["resource.id"],
        "core.order_id": ["resource.supplementary_data.related_ids.order_id"],
        "core.amount": ["resource.amount.value", "resource.purchase_units.0.amount.value"],
        "core.currency": ["resource.amount.currency_code", "resource.purchase_units.0.amount.currency_code"],
        "core.status": ["resource.status", "resource.state"],
    },
    "flutterwave": {
        "core.event_type": ["event", "event.type"],
        "core.object_id": ["data.id"],
        "core.reference": ["data.tx_ref", "data.reference"],
        "core.amount": ["data.amount"],
        "core.currency": ["data.currency"],
        "core.status": ["data.status"],
    },
    "paystack": {
        "core.event_type": ["event"],
        "core.object_id": ["data.id"],
        "core.reference": ["data.reference", "data.transfer_code"],
        "core.amount": ["data.amount"],
        "core.currency": ["data.currency"],
        "core.status": ["data.status"],
    },
}


def compute_payload_hash(raw_payload: bytes | str | dict) -> str:
    if isinstance(raw_payload, dict):
        payload_bytes = json.dumps(raw_payload, sort_keys=True).encode("utf-8")
    elif isinstance(raw_payload, str):
        payload_bytes = raw_payload.encode("utf-8")
    else:
        payload_bytes = raw_payload
    return hashlib.sha256(payload_bytes).hexdigest()


def _get_nested_value(data: Any, path: str) -> Optional[Any]:
    """Valor anidado con notación de punto ("data.object.amount", "items.0.id")."""
    current = data
    for key in path.split("."):
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list):
            try:
                idx = int(key)
            except ValueError:
                return None
            current = current[idx] if 0 <= idx < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def _extract_core_fields(provider: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    core: Dict[str, Any] = {}
    for core_key, paths in CORE_FIELD_MAPPINGS.get(provider, {}).items():
        for path in paths:
            value = _get_nested_value(payload, path)
            if value is not None and not isinstance(value, (dict, list)):
                core[core_key] = value
                break
    return core


def _extract_whitelisted_fields(data: Dict[str, Any], depth: int = 0, max_depth: int = 5) -> Dict[str, Any]:
    if depth > max_depth:
        return {}

    extracted: Dict[str, Any] = {}
    for key, value in data.items():
        allowed = key.lower() in AUDIT_FIELDS_WHITELIST
        if isinstance(value, dict):
            nested = _extract_whitelisted_fields(value, depth + 1, max_depth)
            if nested:
                extracted[key] = nested
        elif isinstance(value, list):
            if not allowed:
                continue
            items = []
            for item in value:
                if isinstance(item, dict):
                    nested = _extract_whitelisted_fields(item, depth + 1, max_depth)
                    if nested:
                        items.append(nested)
                else:
                    items.append(item)
            if items:
                extracted[key] = items
        elif allowed:
            extracted[key] = value
    return extracted


def sanitize_webhook_payload(
    provider: str,
    payload: Dict[str, Any],
    *,
    raw_payload: bytes | str | None = None,
) -> Dict[str, Any]:
    """Payload seguro para persistir en webhook_events.payload."""
    provider = provider.lower()
    safe: Dict[str, Any] = _extract_core_fields(provider, payload)
    safe["audit"] = _extract_whitelisted_fields(payload)
    safe["__provider__"] = provider
    safe["__sanitized__"] = True
    safe["__whitelist_version__"] = WHITELIST_VERSION
    safe["__payload_hash__"] = compute_payload_hash(raw_payload if raw_payload is not None else payload)

    logger.debug(
        "[webhooks] payload %s sanitizado: %d campos originales, %d core",
        provider, len(payload), len([k for k in safe if k.startswith("core.")]),
    )
    return safe


__all__ = [
    "AUDIT_FIELDS_WHITELIST",
    "CORE_FIELD_MAPPINGS",
    "compute_payload_hash",
    "sanitize_webhook_payload",
]

# Fin del archivo backend/app/modules/payments/facades/webhooks/sanitizer.py
