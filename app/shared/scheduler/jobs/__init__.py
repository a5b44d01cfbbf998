# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/jobs/__init__.py

Jobs programados compartidos.

Autor: EventShot Payments
Fecha: 2025-11-05
"""

from .cache_cleanup_job import cleanup_all_caches, cleanup_cache, register_cache_cleanup_job

__all__ = [
    "cleanup_all_caches",
    "cleanup_cache",
    "register_cache_cleanup_job",
]
