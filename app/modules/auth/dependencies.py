# -*- coding: utf-8 -*-
"""
backend/app/modules/auth/dependencies.py

Dependencias de autenticación JWT para FastAPI.

Provee:
- validate_jwt_token: valida el token y construye AuthenticatedUser
- get_current_user: endpoints protegidos (401 sin token)
- get_optional_user: checkout con invitados (None sin token)

Un token presente pero inválido siempre es 401, incluso en rutas opcionales.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials

from .security import TokenDecodeError, bearer_scheme, decode_access_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: uuid.UUID
    email: Optional[str] = None


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def validate_jwt_token(token: str) -> AuthenticatedUser:
    """
    Valida un JWT y extrae el usuario.

    Raises:
        HTTPException 401: token inválido, expirado o con 'sub' no UUID.
    """
    try:
        payload = decode_access_token(token)
    except TokenDecodeError as e:
        raise _unauthorized("invalid_token", str(e)) from e

    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError as e:
        logger.warning("[auth] token sub is not a UUID")
        raise _unauthorized("invalid_token", "Invalid user identifier in token") from e

    email = payload.get("email")
    return AuthenticatedUser(user_id=user_id, email=str(email).strip().lower() if email else None)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[AuthenticatedUser]:
    if credentials is None:
        return None
    if credentials.scheme.lower() != "bearer":
        raise _unauthorized("invalid_token_format", "Authorization header must be 'Bearer <token>'")
    return validate_jwt_token(credentials.credentials)


async def get_current_user(
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> AuthenticatedUser:
    """
    Dependencia de autenticación para endpoints protegidos.
    """
    if user is None:
        raise _unauthorized("authentication_required", "Authorization header is required")
    return user


__all__ = [
    "AuthenticatedUser",
    "validate_jwt_token",
    "get_optional_user",
    "get_current_user",
]

# Fin del archivo backend/app/modules/auth/dependencies.py
