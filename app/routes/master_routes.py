# -*- coding: utf-8 -*-
"""
backend/app/routes/master_routes.py

Router maestro con dos capas:
  - /api/... (consumida por el frontend)
  - rutas públicas sin prefijo (webhooks de proveedores configurados
    con la URL corta)

Ambas capas montan el mismo router de Payments.

Autor: EventShot Payments
Fecha: 2025-11-26
"""
from __future__ import annotations

import logging

from fastapi import APIRouter

from app.modules.payments.routes import router as payments_router

logger = logging.getLogger(__name__)

# Capas principales
api = APIRouter(prefix="/api")
public = APIRouter(prefix="")  # sin prefijo

_loaded: list[str] = []  # trazabilidad/debug


def _include(target: APIRouter, router: APIRouter, name: str) -> None:
    """Incluye un router en la capa dada y registra trazabilidad en logs."""
    target.include_router(router)
    _loaded.append(f"{target.prefix or '/'}:{name}")
    logger.debug("[routes] '%s' mounted at '%s'", name, target.prefix or "/")


_include(api, payments_router, "payments")
_include(public, payments_router, "payments")


def loaded_routers() -> list[str]:
    return list(_loaded)


__all__ = ["api", "public", "loaded_routers"]

# Fin del archivo backend/app/routes/master_routes.py
