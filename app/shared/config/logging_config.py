# -*- coding: utf-8 -*-
"""
backend/app/shared/config/logging_config.py

Logging del servicio de pagos vía dictConfig.
plain/pretty en desarrollo, json (python-json-logger) en producción.
Los SDK de pasarelas (stripe, httpx) quedan en WARNING para no volcar
payloads de proveedores en los logs.

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from __future__ import annotations

import logging.config
from typing import Literal


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO",
    fmt: Literal["plain", "pretty", "json"] = "plain"
) -> None:
    """
    Configura el sistema de logging de la aplicación.

    Args:
        level: Nivel de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: Formato de salida (plain, pretty, json)
    """
    use_json = fmt == "json"

    formatters = {
        "default": {
            "format": "%(levelname)s [%(name)s]: %(message)s"
        },
        "pretty": {
            "format": "%(asctime)s %(levelname)-8s [%(name)s]: %(message)s",
            "datefmt": "%H:%M:%S",
        },
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s"
        },
    }

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json" if use_json else ("pretty" if fmt == "pretty" else "default"),
            "stream": "ext://sys.stdout",
        }
    }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "loggers": {
            # Silenciar el ruido de cierre de conexiones de NullPool
            "sqlalchemy.pool.impl.NullPool": {"level": "CRITICAL"},
            "apscheduler": {"level": "WARNING"},
            "stripe": {"level": "WARNING"},
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
        },
        "root": {
            "handlers": ["console"],
            "level": level.upper(),
        },
    }

    logging.config.dictConfig(logging_config)


__all__ = ["setup_logging"]
# Fin del archivo backend/app/shared/config/logging_config.py
