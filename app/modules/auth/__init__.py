# -*- coding: utf-8 -*-
"""
backend/app/modules/auth/__init__.py

Interfaz de autenticación del servicio de pagos.

Expone:
- AuthenticatedUser
- get_current_user / get_optional_user (dependencias FastAPI)
- create_access_token / decode_access_token
"""

from .dependencies import (
    AuthenticatedUser,
    get_current_user,
    get_optional_user,
    validate_jwt_token,
)
from .security import TokenDecodeError, create_access_token, decode_access_token

__all__ = [
    "AuthenticatedUser",
    "get_current_user",
    "get_optional_user",
    "validate_jwt_token",
    "TokenDecodeError",
    "create_access_token",
    "decode_access_token",
]
# Fin del archivo backend/app/modules/auth/__init__.py
