# -*- coding: utf-8 -*-
"""
backend/app/__init__.py

Paquete raíz del servicio de pagos del marketplace de fotos de eventos.

Subpaquetes:
- modules.payments: checkout, suscripciones, webhooks y reconciliación
- modules.auth: identidad del comprador (JWT opcional en checkout)
- shared: configuración, base de datos, caché y scheduler
- routes / observability: ensamblado HTTP y /metrics

Autor: EventShot Payments
Fecha: 2025-11-26
"""

__version__ = "0.1.0"

# Fin del archivo backend/app/__init__.py
