# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/__init__.py

Ensamblador de rutas del módulo Payments.

Incluye:
- /checkout
- /subscriptions/checkout, /subscriptions/verify
- /vault/checkout, /vault/verify
- /webhooks/{provider}

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from fastapi import APIRouter

from .checkout_routes import router as checkout_router
from .subscription_routes import router as subscription_router
from .webhook_routes import router as webhook_router

router = APIRouter()

router.include_router(checkout_router)
router.include_router(subscription_router)
router.include_router(webhook_router)

__all__ = ["router"]

# Fin del archivo backend/app/modules/payments/routes/__init__.py
