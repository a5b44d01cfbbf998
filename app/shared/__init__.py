# -*- coding: utf-8 -*-
"""
backend/app/shared/__init__.py

Infraestructura compartida: config, database, cache, scheduler y http_utils.

Los subpaquetes se importan explícitamente; este __init__ no crea el
engine ni instancia settings.

Autor: EventShot Payments
Fecha: 2025-11-26
"""

# Fin del archivo backend/app/shared/__init__.py
