# -*- coding: utf-8 -*-
"""
backend/app/shared/config/__init__.py

Punto único de acceso a la configuración:
    from app.shared.config import settings

`settings` es un proxy perezoso: no instancia la configuración al importar,
así los tests pueden fijar PYTHON_ENV y variables antes del primer acceso.

Autor: EventShot Payments
Fecha: 24/10/2025
"""

from __future__ import annotations

from typing import Any

from .config_loader import get_settings
from .logging_config import setup_logging
from .settings_payments import (
    DEFAULT_GATEWAY_ORDER,
    PaymentsSettings,
    get_payments_settings,
    reset_payments_settings,
)


class _SettingsProxy:
    __slots__ = ()

    def __getattr__(self, name: str) -> Any:
        return getattr(get_settings(), name)


settings = _SettingsProxy()

__all__ = [
    "settings",
    "get_settings",
    "setup_logging",
    "DEFAULT_GATEWAY_ORDER",
    "PaymentsSettings",
    "get_payments_settings",
    "reset_payments_settings",
]
# Fin del archivo backend/app/shared/config/__init__.py
