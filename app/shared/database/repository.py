# -*- coding: utf-8 -*-
"""
backend/app/shared/database/repository.py

Repositorio base async (SQLAlchemy 2).

Las escrituras hacen flush y nunca commit: cada facade decide dónde
termina su transacción. Los UPDATE condicionales devuelven el rowcount
para que el llamador sepa si ganó la carrera.

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from __future__ import annotations

from typing import Any, Generic, Optional, Sequence, Type, TypeVar

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")  # modelo ORM


class BaseRepository(Generic[T]):
    def __init__(self, model: Type[T]):
        self.model = model

    async def get(self, session: AsyncSession, obj_id: Any) -> Optional[T]:
        return await session.get(self.model, obj_id)

    async def get_by(self, session: AsyncSession, **filters: Any) -> Optional[T]:
        """Primer registro que cumple los filtros de igualdad dados."""
        stmt = select(self.model).filter_by(**filters).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list(
        self,
        session: AsyncSession,
        *,
        limit: Optional[int] = None,
        **filters: Any,
    ) -> Sequence[T]:
        stmt = select(self.model).filter_by(**filters)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def create(self, session: AsyncSession, **kwargs: Any) -> T:
        obj = self.model(**kwargs)
        session.add(obj)
        await session.flush()
        return obj

    async def update_where(self, session: AsyncSession, *conditions: Any, **values: Any) -> int:
        """
        UPDATE ... WHERE <conditions> sin sincronizar el identity map.

        Returns:
            Filas afectadas. Los objetos ya cargados en la sesión quedan con
            los valores anteriores hasta un refresh.
        """
        stmt = (
            update(self.model)
            .where(*conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount


__all__ = ["BaseRepository"]

# Fin del archivo backend/app/shared/database/repository.py
