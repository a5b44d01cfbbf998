# -*- coding: utf-8 -*-
"""
backend/app/shared/config/config_loader.py

Selecciona la clase de settings según PYTHON_ENV, corre las validaciones
de seguridad/pasarelas y cachea la instancia del proceso.

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Dict, Type

from .settings_base import BaseAppSettings
from .settings_dev import DevSettings
from .settings_prod import ProdSettings
from .settings_testing import EnvTestingSettings

logger = logging.getLogger(__name__)

_SETTINGS_BY_ENV: Dict[str, Type[BaseAppSettings]] = {
    "production": ProdSettings,
    "test": EnvTestingSettings,
    "development": DevSettings,
}


def _build_settings(env: str) -> BaseAppSettings:
    cls = _SETTINGS_BY_ENV.get(env)
    if cls is None:
        logger.warning("[config] PYTHON_ENV=%r desconocido, usando development", env)
        cls, env = DevSettings, "development"
    # Se pasa el nombre normalizado: el valor crudo del entorno puede no
    # pasar el Literal de python_env
    return cls(PYTHON_ENV=env)


@lru_cache(maxsize=1)
def get_settings() -> BaseAppSettings:
    """
    Settings del proceso.

    Raises:
        ValueError: si producción no cumple los mínimos (JWT, claves live,
            webhooks sin firma).
    """
    env = os.getenv("PYTHON_ENV", "development").strip().lower()
    settings = _build_settings(env)
    settings._security_and_payments_checks()
    return settings


def clear_settings_cache() -> None:
    """Fuerza que el próximo get_settings() relea el entorno (tests)."""
    get_settings.cache_clear()


__all__ = ["get_settings", "clear_settings_cache"]
# Fin del archivo backend/app/shared/config/config_loader.py
