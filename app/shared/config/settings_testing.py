# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_testing.py

Overrides para entorno de PRUEBAS usando Pydantic v2.
Determinista: logging moderado, SQLite en memoria y scheduler apagado.

Autor: EventShot Payments
Fecha: 24/10/2025
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import SettingsConfigDict

from .settings_base import BaseAppSettings


class EnvTestingSettings(BaseAppSettings):
    python_env: Literal["development", "test", "production"] = "test"

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    log_format: Literal["json", "pretty", "plain"] = "pretty"

    # Base de datos aislada en memoria (aiosqlite)
    db_url: Optional[str] = Field(default="sqlite+aiosqlite:///:memory:", validation_alias="DB_URL")

    jwt_secret_key: SecretStr = SecretStr("test-secret-key-with-at-least-32-characters")

    # Los jobs periódicos no corren durante los tests
    scheduler_enabled: bool = False

    model_config = SettingsConfigDict(
        env_file=".env.test",
        env_file_encoding="utf-8",
        extra="ignore",
    )


__all__ = ["EnvTestingSettings"]
# Fin del archivo backend/app/shared/config/settings_testing.py
