# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/jobs/cache_cleanup_job.py

Job programado para limpieza de cachés en memoria.

Elimina entradas expiradas y registra estadísticas. Es genérico: recibe
las instancias de CacheBackend a limpiar (tipos de cambio, rate limiting).

Autor: EventShot Payments
Fecha: 2025-11-05
Actualizado: 2025-12-27 - Soporte para múltiples cachés inyectados
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, List

from app.shared.cache import CacheBackend

logger = logging.getLogger(__name__)

JOB_ID = "cache_cleanup"


async def cleanup_cache(cache: CacheBackend, cache_name: str) -> Dict[str, Any]:
    """
    Limpia entradas expiradas de un caché específico.

    Returns:
        Dict con estadísticas de la limpieza
    """
    started = time.perf_counter()
    entries_before = cache.get_stats().get("size", 0)

    removed_count = cache.cleanup()

    stats_after = cache.get_stats()
    entries_after = stats_after.get("size", 0)
    result = {
        "cache_name": cache_name,
        "entries_before": entries_before,
        "entries_after": entries_after,
        "removed_expired": removed_count,
        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        "hit_rate_percent": stats_after.get("hit_rate_percent", 0.0),
        "evictions": stats_after.get("evictions", 0),
    }

    logger.info(
        "[cache_cleanup] cache=%s entries_before=%d entries_after=%d "
        "removed_expired=%d duration_ms=%.2f hit_rate=%.1f%% evictions=%d",
        cache_name,
        entries_before,
        entries_after,
        removed_count,
        result["duration_ms"],
        result["hit_rate_percent"],
        result["evictions"],
    )

    max_size = cache.max_size
    if max_size and entries_after > max_size * 0.9:
        logger.warning(
            "[cache_cleanup] cache=%s at %.1f%% capacity (%d/%d)",
            cache_name,
            (entries_after / max_size) * 100,
            entries_after,
            max_size,
        )

    return result


async def cleanup_all_caches(caches: Iterable[CacheBackend]) -> Dict[str, Any]:
    """Limpia todos los cachés recibidos y agrega los resultados."""
    results: List[Dict[str, Any]] = []
    for cache in caches:
        name = cache.get_stats().get("name", "unknown")
        results.append(await cleanup_cache(cache, name))

    return {
        "caches_cleaned": len(results),
        "total_removed": sum(r["removed_expired"] for r in results),
        "results": results,
    }


def register_cache_cleanup_job(scheduler, caches: List[CacheBackend], minutes: int = 10) -> str:
    """
    Registra el job de limpieza de cachés en el scheduler.

    Args:
        scheduler: Instancia de SchedulerService
        caches: Cachés a limpiar en cada ejecución
        minutes: Intervalo entre ejecuciones

    Returns:
        ID del job registrado
    """
    scheduler.add_interval_job(
        func=cleanup_all_caches,
        job_id=JOB_ID,
        minutes=minutes,
        caches=caches,
    )
    logger.info("[cache_cleanup] Job '%s' registered: every %d minutes", JOB_ID, minutes)
    return JOB_ID


__all__ = ["cleanup_cache", "cleanup_all_caches", "register_cache_cleanup_job"]
# Fin del archivo backend/app/shared/scheduler/jobs/cache_cleanup_job.py
