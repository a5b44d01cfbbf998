# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/metrics/collectors/__init__.py

Colectores de métricas del módulo de pagos.

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from .payments_collectors import (
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

# Fin del archivo backend/app/modules/payments/metrics/collectors/__init__.py
