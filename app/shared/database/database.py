# -*- coding: utf-8 -*-
"""
backend/app/shared/database/database.py

SQLAlchemy async (asyncpg en producción, aiosqlite en tests).
NullPool en la app; el pooling lo maneja PgBouncer delante de Postgres.

Provee:
- engine (create_async_engine)
- SessionLocal (async_sessionmaker)
- Dependencias FastAPI: get_async_session / get_db
- context manager: session_scope()
- check_database_health()

Notas:
- Con asyncpg se desactiva el cache de prepared statements (PgBouncer en
  transaction mode) y se fijan timeouts de conexión/consulta.

Autor: EventShot Payments
Fecha: 2025-10-18
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.shared.config import settings

logger = logging.getLogger(__name__)


def _prepared_statement_name_func() -> str:
    return f"__asyncpg_{uuid4().hex[:8]}__"


def _connect_args(url: str) -> dict[str, Any]:
    """connect_args según el driver de la URL."""
    if not url.startswith("postgresql+asyncpg"):
        return {}
    return {
        "statement_cache_size": 0,
        "prepared_statement_cache_size": 0,
        "prepared_statement_name_func": _prepared_statement_name_func,
        "server_settings": {"search_path": "public"},
        "timeout": settings.db_connect_timeout_s,
        "command_timeout": settings.db_command_timeout_s,
    }


def build_engine(url: str | None = None) -> AsyncEngine:
    """Crea el engine async sin pool app-side."""
    url = url or settings.database_url
    return create_async_engine(
        url,
        poolclass=NullPool,
        echo=settings.db_echo_sql,
        connect_args=_connect_args(url),
    )


engine = build_engine()
logger.debug("[DB] engine creado (driver=%s)", engine.url.drivername)

# ── Session factory
SessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    class_=AsyncSession,
    autoflush=False,
)


# ── Dependencias FastAPI
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        try:
            yield session
        except SQLAlchemyError:
            # Liberar cualquier transacción/lock antes de propagar
            await session.rollback()
            raise
        finally:
            if session.in_transaction():
                await session.rollback()


# Alias usado por las rutas
get_db = get_async_session


# ── Context manager reutilizable en jobs/scripts/tests
@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        try:
            yield session
            # Commit/rollback queda a cargo de quien usa el scope
        finally:
            if session.in_transaction():
                await session.rollback()


# ── Health check
async def check_database_health(timeout_s: float = 3.0, sql: str = "SELECT 1") -> bool:
    """
    Verifica conectividad a la base de datos.

    Args:
        timeout_s: Tiempo máximo de espera en segundos
        sql: Query SQL a ejecutar (default: "SELECT 1")

    Returns:
        True si la conexión es exitosa, False en caso contrario
    """
    try:
        async with asyncio.timeout(timeout_s):
            async with engine.connect() as conn:
                await conn.execute(text(sql))
        return True
    except (SQLAlchemyError, OSError, TimeoutError) as e:
        logger.warning("[DB] health check falló: %s", e)
        return False


__all__ = [
    "engine",
    "build_engine",
    "SessionLocal",
    "get_async_session",
    "get_db",
    "session_scope",
    "check_database_health",
]
# Fin del archivo backend/app/shared/database/database.py
