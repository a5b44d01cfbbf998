# -*- coding: utf-8 -*-
"""
backend/app/shared/http_utils/request_meta.py

Identificación del cliente para rate limiting.

Con trust_proxy=True se toma el primer salto de X-Forwarded-For y después
X-Real-IP; sin proxies confiables sólo cuenta la IP del socket.

Autor: EventShot Payments
Fecha: 2025-11-26
"""
from __future__ import annotations

from starlette.requests import Request

UNKNOWN_CLIENT = "unknown"


def get_client_ip(request: Request, *, trust_proxy: bool = False) -> str:
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop
        real_ip = request.headers.get("x-real-ip")
        if real_ip and real_ip.strip():
            return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


__all__ = ["UNKNOWN_CLIENT", "get_client_ip"]

# Fin del archivo backend/app/shared/http_utils/request_meta.py
