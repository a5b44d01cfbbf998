# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/metrics/__init__.py

Métricas Prometheus del módulo Payments. Se exponen vía el endpoint
/metrics global (app.observability.prom).

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from .collectors import (
    checkout_sessions_total,
    idempotency_outcomes_total,
    subscription_sync_total,
    webhook_events_total,
)

__all__ = [
    "checkout_sessions_total",
    "webhook_events_total",
    "idempotency_outcomes_total",
    "subscription_sync_total",
]

# Fin del archivo backend/app/modules/payments/metrics/__init__.py
