# -*- coding: utf-8 -*-
"""
backend/app/shared/cache/cache_backend.py

Interfaz base (ABC) para backends de caché.

Los servicios reciben el caché por inyección (tipos de cambio, rate limiting),
nunca importan una instancia global, para que el mismo código funcione con
un backend en memoria por proceso o con uno distribuido.

Autor: EventShot Payments
Fecha: 2025-12-27
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class CacheBackend(ABC):
    """
    Contrato común de cachés.

    Política de TTL en set():
    - None: usar default_ttl del backend
    - 0 o negativo: no cachear
    - positivo: expira tras ttl segundos

    Métricas esperadas en get_stats(): name, size, max_size, hits, misses,
    evictions, invalidations, expired_removals, hit_rate_percent y
    total_requests.
    """

    @property
    @abstractmethod
    def max_size(self) -> Optional[int]:
        """Tamaño máximo del caché. None si no tiene límite."""
        ...

    @property
    @abstractmethod
    def default_ttl(self) -> Optional[int]:
        """TTL por defecto en segundos. None si las entradas no expiran por defecto."""
        ...

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Valor asociado a la clave, o None si no existe o expiró."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ...

    @abstractmethod
    def invalidate(self, key: str) -> bool:
        """True si la clave existía y fue eliminada."""
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def cleanup(self) -> int:
        """
        Elimina entradas expiradas.

        Lo invoca periódicamente el job cache_cleanup.

        Returns:
            Número de entradas eliminadas
        """
        ...

    @abstractmethod
    def get_stats(self) -> dict:
        ...


__all__ = ["CacheBackend"]
# Fin del archivo backend/app/shared/cache/cache_backend.py
