# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/metrics/collectors/payments_collectors.py

Coleccionistas Prometheus del módulo Payments.

Define contadores para:
- Sesiones de checkout por proveedor y resultado
- Webhooks procesados por proveedor y resultado
- Decisiones del ledger de idempotencia
- Sincronizaciones de suscripción por scope y resultado

Autor: EventShot Payments
Fecha: 2025-11-22
"""
from prometheus_client import Counter

SUBSYSTEM = "payments"

checkout_sessions_total = Counter(
    f"{SUBSYSTEM}_checkout_sessions_total",
    "Checkout sessions by provider and outcome",
    labelnames=("provider", "outcome"),  # created|duplicate|provider_error|provider_timeout
)

webhook_events_total = Counter(
    f"{SUBSYSTEM}_webhook_events_total",
    "Webhook deliveries by provider and result",
    labelnames=("provider", "result"),  # processed|replay|in_flight|invalid_signature|failed
)

idempotency_outcomes_total = Counter(
    f"{SUBSYSTEM}_idempotency_outcomes_total",
    "Idempotency ledger decisions",
    labelnames=("outcome",),  # claimed|replayed|reclaimed|conflict|in_flight
)

subscription_sync_total = Counter(
    f"{SUBSYSTEM}_subscription_sync_total",
    "Canonical subscription upserts",
    labelnames=("scope", "result"),
)

__all__ = [
    "checkout_sessions_total",
    "webhook_events_total",
    "idempotency_outcomes_total",
    "subscription_sync_total",
]

# Fin del archivo backend/app/modules/payments/metrics/collectors/payments_collectors.py
