# -*- coding: utf-8 -*-
"""
backend/app/main.py

Punto de entrada principal del servicio de pagos.

Ajustes clave:
- .env cargado antes de leer settings (python-dotenv)
- Logging vía app.shared.config.setup_logging (dictConfig, json opcional)
- Observabilidad Prometheus (/metrics) vía app.observability.prom
- Scheduler con limpieza de cachés y sweep de idempotencia
- Cierre de clientes HTTP de proveedores en shutdown
- PaymentsError -> {error, message, failClosed?, ...contexto}
- HTTPException y errores de validación (400 invalid_request) con la
  misma forma {error, message, ...}

Autor: EventShot Payments
Fecha: 2025-11-26
"""

import logging
import os
from contextlib import asynccontextmanager
from http import HTTPStatus
from pathlib import Path

# ---------------------------------------------------------------------------
# Cargar .env ANTES de cualquier import que lea settings
# En PROD: override=False para respetar variables del entorno
# ---------------------------------------------------------------------------
from dotenv import load_dotenv

_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
_override_env = os.getenv("PYTHON_ENV", "development").strip().lower() != "production"
load_dotenv(dotenv_path=_ENV_PATH, override=_override_env)

import anyio
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.modules.payments.facades.errors import PaymentsError
from app.modules.payments.facades.reconciliation import register_idempotency_sweep_job
from app.modules.payments.middleware import rate_limit_caches
from app.modules.payments.providers.http_client import close_provider_http_clients
from app.modules.payments.routes.dependencies import get_exchange_rate_cache
from app.observability.prom import setup_observability
from app.shared.config import get_settings, setup_logging
from app.shared.scheduler import get_scheduler
from app.shared.scheduler.jobs import register_cache_cleanup_job

_settings = get_settings()
setup_logging(level=_settings.log_level, fmt=_settings.log_format)
logger = logging.getLogger(__name__)


def _start_scheduler() -> None:
    scheduler = get_scheduler()
    register_cache_cleanup_job(scheduler, [get_exchange_rate_cache(), *rate_limit_caches()])
    register_idempotency_sweep_job(scheduler)
    scheduler.start()
    logger.info("[lifespan] scheduler started")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ────────── STARTUP ──────────
    settings = get_settings()
    if settings.scheduler_enabled:
        _start_scheduler()
    else:
        logger.info("[lifespan] scheduler disabled")

    logger.info("[lifespan] %s started (env=%s)", settings.app_name, settings.python_env)
    try:
        yield
    finally:
        # ────────── SHUTDOWN ──────────
        with anyio.CancelScope(shield=True):
            get_scheduler().shutdown(wait=True)
            await close_provider_http_clients()
        logger.info("[lifespan] %s stopped", settings.app_name)


openapi_tags = [
    {"name": "payments:checkout", "description": "Compra única de medios de un evento"},
    {"name": "payments:subscriptions", "description": "Suscripciones creator, attendee y vault"},
    {"name": "payments:webhooks", "description": "Webhooks de Stripe, PayPal, Flutterwave y Paystack"},
    {"name": "health", "description": "Estado del servicio"},
]

app = FastAPI(
    title=_settings.app_name,
    description="API de pagos del marketplace de fotos de eventos",
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=openapi_tags,
)


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION HANDLERS
# ═══════════════════════════════════════════════════════════════════════════════
@app.exception_handler(PaymentsError)
async def payments_error_handler(request: Request, exc: PaymentsError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning(
            "[payments] %s %s -> %d %s",
            request.method, request.url.path, exc.status_code, exc.error,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_payload(),
        headers=exc.headers or None,
    )


def _error_code(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase.lower().replace(" ", "_").replace("-", "_")
    except ValueError:
        return "http_error"


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    HTTPException (auth, rutas inexistentes, métodos) con la misma forma
    {error, message, ...} que PaymentsError.
    """
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = dict(exc.detail)
    else:
        content = {"error": _error_code(exc.status_code), "message": str(exc.detail)}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # ctx de pydantic puede traer excepciones no serializables: solo campo + mensaje
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    logger.info("[payments] %s %s -> 400 invalid_request", request.method, request.url.path)
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_request", "message": "Request validation failed", "details": details},
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Middlewares. El orden real de ejecución en Starlette es inverso al registro:
# CORS se registra al final para ejecutarse primero (outermost).
# ═══════════════════════════════════════════════════════════════════════════════
setup_observability(app, http_metrics=_settings.http_metrics_enabled)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.get_cors_origins(),
    allow_credentials=_settings.get_cors_origins() != ["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Idempotency-Replayed", "Retry-After", "Warning"],
    max_age=600,
)

# Incluye router maestro
from app.routes import router as main_router  # noqa: E402

app.include_router(main_router)


@app.get("/", include_in_schema=False)
async def root():
    return {"service": _settings.app_name, "status": "active"}


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=_settings.app_host,
        port=_settings.app_port,
        reload=_settings.is_dev,
    )

# Fin del archivo backend/app/main.py
