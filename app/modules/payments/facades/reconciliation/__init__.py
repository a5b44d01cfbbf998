# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/reconciliation/__init__.py

Reconciliación fuera de banda del módulo Payments.

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from .idempotency_sweep import (
    JOB_ID,
    register_idempotency_sweep_job,
    run_idempotency_sweep,
    sweep_stale_idempotency_records,
)

__all__ = [
    "JOB_ID",
    "register_idempotency_sweep_job",
    "run_idempotency_sweep",
    "sweep_stale_idempotency_records",
]

# Fin del archivo backend/app/modules/payments/facades/reconciliation/__init__.py
