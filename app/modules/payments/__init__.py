# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/__init__.py

Módulo de pagos del marketplace de fotos de eventos.

Este módulo gestiona:
- Checkout de compras únicas (por foto, bulk, desbloqueo total)
- Checkout de suscripciones recurrentes (creator / attendee / vault)
- Reconciliación de webhooks y verificación manual de Stripe, PayPal,
  Flutterwave y Paystack
- Ledgers de idempotencia y de eventos webhook

Estructura:
- enums: tipos de datos (PaymentProvider, TransactionStatus, ...)
- models: modelos ORM
- schemas: validación y serialización Pydantic
- repositories: acceso a datos (inserciones con conflicto, UPDATE condicionales)
- services: lógica de negocio de bajo nivel (fees, selección de pasarela, ledgers)
- providers: adaptadores de cada pasarela
- facades: orquestadores de alto nivel (API pública del módulo)
- routes: endpoints HTTP

Autor: EventShot Payments
Fecha: 26/10/2025
"""
