# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/payment_provider_enum.py

Pasarelas de pago soportadas por el marketplace.
Persistido como VARCHAR (payment_provider_enum).

Stripe y PayPal cobran suscripciones de forma recurrente; Flutterwave y
Paystack se integran como cobro único y el periodo se renueva manualmente
(30 o 365 días desde el pago).

Autor: EventShot Payments
Fecha: 2025-11-26
"""

from enum import StrEnum

from sqlalchemy import Enum as SAEnum

from app.shared.database.base import as_str_enum


class PaymentProvider(StrEnum):
    STRIPE = "stripe"
    PAYPAL = "paypal"
    FLUTTERWAVE = "flutterwave"
    PAYSTACK = "paystack"

    @property
    def renews_natively(self) -> bool:
        return self in (PaymentProvider.STRIPE, PaymentProvider.PAYPAL)

    @classmethod
    def as_db_enum(cls) -> SAEnum:
        return as_str_enum(cls, name="payment_provider_enum")


__all__ = ["PaymentProvider"]

# Fin del archivo backend/app/modules/payments/enums/payment_provider_enum.py
