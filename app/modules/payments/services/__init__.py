# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/__init__.py

Servicios de bajo nivel del módulo Payments.

Autor: EventShot Payments
Fecha: 2025-11-21
"""
