# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/schemas/common_schemas.py

Base común de los contratos HTTP del módulo Payments.

El frontend habla camelCase; internamente los campos son snake_case.
`populate_by_name` permite construir los modelos con cualquiera de los dos.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ErrorResponse(CamelModel):
    """Forma de los errores de dominio (PaymentsError)."""

    error: str = Field(description="Código estable del error.")
    message: str = Field(description="Mensaje legible.")
    fail_closed: Optional[bool] = Field(default=None, description="True si es un error de configuración fail-closed.")


__all__ = ["CamelModel", "ErrorResponse"]

# Fin del archivo backend/app/modules/payments/schemas/common_schemas.py
