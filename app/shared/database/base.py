# -*- coding: utf-8 -*-
"""
backend/app/shared/database/base.py

Base declarativa y convención de nombres para modelos ORM.

Este módulo proporciona:
- Base: clase base declarativa de SQLAlchemy
- NAMING_CONVENTION: convención de nombres para constraints
- JSONType: JSON portable (JSONB en PostgreSQL, JSON en SQLite para tests)
- as_str_enum: helper genérico para mapear enums Python a columnas texto
- utcnow: reloj único para timestamps de aplicación
- UTCDateTime: timestamp que siempre se lee con tzinfo UTC

Autor: EventShot Payments
Fecha: 2025-10-18 (ajustado 2025-11-21)
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Type

from sqlalchemy import JSON, DateTime, MetaData
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

# ===== NAMING CONVENTION =====
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# JSONB en Postgres; JSON genérico en cualquier otro dialecto
JSONType = JSON().with_variant(JSONB(), "postgresql")


# ===== BASE DECLARATIVA =====
class Base(DeclarativeBase):
    """
    Base declarativa para todos los modelos ORM.
    Incluye convención de nombres para constraints.
    """
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def utcnow() -> datetime:
    """Fecha/hora actual en UTC con tzinfo."""
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    DateTime(timezone=True) que normaliza a UTC al escribir y garantiza
    tzinfo al leer (SQLite devuelve valores naive).
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


# ===== HELPER GENÉRICO PARA ENUMS =====
def as_str_enum(
    enum_cls: Type[Enum],
    name: str | None = None,
    length: int = 32,
) -> SAEnum:
    """
    Devuelve un tipo Enum de SQLAlchemy almacenado como texto.

    Uso típico:

        from app.shared.database.base import Base, as_str_enum
        from .enums import TransactionStatus

        class Transaction(Base):
            status: Mapped[TransactionStatus] = mapped_column(
                as_str_enum(TransactionStatus),
                nullable=False,
            )

    - native_enum=False: la columna es VARCHAR, así agregar un valor nuevo
      es un cambio aditivo que no requiere ALTER TYPE.
    - Se persiste el `value` del enum (no el nombre del miembro).
    - Si no se pasa `name`, usa `__db_enum_name__` del enum o el nombre
      de la clase en minúsculas.
    """
    enum_name = name or getattr(enum_cls, "__db_enum_name__", enum_cls.__name__.lower())

    def _values(_: object) -> list[str]:
        return [e.value for e in enum_cls]  # type: ignore[arg-type]

    return SAEnum(
        enum_cls,
        name=enum_name,
        native_enum=False,
        create_constraint=False,
        length=length,
        values_callable=_values,
        validate_strings=True,
    )


__all__ = ["Base", "NAMING_CONVENTION", "JSONType", "as_str_enum", "utcnow", "UTCDateTime"]

# Fin del archivo backend/app/shared/database/base.py
