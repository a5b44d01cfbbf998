# -*- coding: utf-8 -*-
"""
backend/app/routes/health_routes.py

Endpoints de health check del servicio de pagos.

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from app.shared.config import get_settings
from app.shared.database.database import check_database_health
from app.shared.scheduler import get_scheduler

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    summary="Health check del servicio",
    description="Estado básico del servicio y conectividad a la base de datos.",
)
async def health_check() -> dict:
    settings = get_settings()

    db_ok = await check_database_health(timeout_s=2.0)

    return {
        "status": "ok" if db_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.python_env,
        "database": {
            "reachable": db_ok,
        },
        "scheduler": {
            "running": get_scheduler().is_running,
        },
        "service": {
            "name": settings.app_name,
        },
    }


@router.get("/health/live", include_in_schema=False)
async def health_live() -> dict:
    return {"live": True}


# Fin del archivo backend/app/routes/health_routes.py
