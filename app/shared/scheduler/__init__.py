# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/__init__.py

Jobs periódicos del servicio (APScheduler, AsyncIOScheduler):
- cache_cleanup: purga de entradas expiradas en cachés TTL
- payments_idempotency_sweep: recuperación de checkouts interrumpidos

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from .scheduler_service import SchedulerService, get_scheduler, reset_scheduler

__all__ = ["SchedulerService", "get_scheduler", "reset_scheduler"]

# Fin del archivo backend/app/shared/scheduler/__init__.py
