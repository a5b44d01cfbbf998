# -*- coding: utf-8 -*-
"""
backend/app/shared/cache/__init__.py

Módulo compartido de caché con interfaces y utilidades reutilizables.
"""

from .cache_backend import CacheBackend
from .ttl_cache import TTLCache

__all__ = ["CacheBackend", "TTLCache"]
