# -*- coding: utf-8 -*-
"""
backend/app/modules/auth/security.py

Primitivas JWT del servicio de pagos:
- Esquema Bearer (auto_error=False: el checkout admite invitados)
- Creación / decodificación de access tokens

La emisión real de tokens vive en el servicio de identidad; aquí sólo se
valida. create_access_token existe para herramientas internas y tests.

Autor: EventShot Payments
Fecha: 2025-11-24
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

from fastapi.security import HTTPBearer
from jose import JWTError, jwt

from app.shared.config import settings

# -----------------------------------------------------------------------------
# Esquema Bearer para Authorization: Bearer <token>
# -----------------------------------------------------------------------------
bearer_scheme = HTTPBearer(auto_error=False)


class TokenDecodeError(Exception):
    """Error al decodificar/validar un token JWT."""


def create_access_token(
    subject: Union[str, Any],
    expires_delta: Optional[timedelta] = None,
    **extra: Any,
) -> str:
    """
    Crea un JWT con claim 'sub' y claims opcionales en `extra` (p.ej. email).
    """
    now = datetime.now(tz=timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode: Dict[str, Any] = {
        "sub": str(subject),
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "token_type": "access",
    }
    if extra:
        to_encode.update(extra)
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decodifica y valida un JWT. Lanza TokenDecodeError si es inválido/expirado.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise TokenDecodeError("Token inválido o expirado") from e

    sub = payload.get("sub")
    if sub is None or not str(sub).strip():
        raise TokenDecodeError("Token sin 'sub'")
    token_type = payload.get("token_type", "access")
    if token_type != "access":
        raise TokenDecodeError(f"Tipo de token no válido: {token_type}")
    return payload


__all__ = [
    "bearer_scheme",
    "TokenDecodeError",
    "create_access_token",
    "decode_access_token",
]

# Fin del archivo backend/app/modules/auth/security.py
