# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/facades/__init__.py

Fachadas de alto nivel del módulo Payments: checkout, suscripciones,
webhooks y reconciliación. Cada subpaquete se importa explícitamente
desde las rutas para no cargar todos los proveedores al importar errores.

Autor: EventShot Payments
Fecha: 2025-11-21
"""
