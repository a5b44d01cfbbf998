# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_prod.py

Settings de PRODUCCIÓN: sólo variables de entorno (sin .env), logging JSON.
Las comprobaciones de claves live de Stripe/PayPal y
de webhooks firmados viven en BaseAppSettings._security_and_payments_checks.

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from __future__ import annotations

from typing import Literal

from pydantic_settings import SettingsConfigDict

from .settings_base import BaseAppSettings


class ProdSettings(BaseAppSettings):
    python_env: Literal["development", "test", "production"] = "production"

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "pretty", "plain"] = "json"

    db_echo_sql: bool = False

    model_config = SettingsConfigDict(
        env_file=None,
        extra="ignore",
    )


__all__ = ["ProdSettings"]
# Fin del archivo backend/app/shared/config/settings_prod.py
