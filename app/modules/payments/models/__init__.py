# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/__init__.py

Punto de entrada de modelos ORM del módulo Payments.

Importar este paquete registra todas las tablas en Base.metadata.

Autor: EventShot Payments
Fecha: 2025-11-21
"""

from __future__ import annotations

from .event_models import Event, Media
from .wallet_models import Wallet
from .payout_models import Payout
from .transaction_models import SESSION_COLUMN_BY_PROVIDER, Transaction
from .entitlement_models import Entitlement, build_grant_key
from .journal_models import JournalEntry
from .recurring_subscription_models import RecurringSubscription
from .subscription_plan_models import ProviderPlanMapping, SubscriptionPlan
from .idempotency_models import IdempotencyRecord
from .webhook_event_models import WebhookEvent
from .pricing_models import ExchangeRate, RegionConfig
from .user_payment_preference_models import UserPaymentPreference

__all__ = [
    "Event",
    "Media",
    "Wallet",
    "Payout",
    "Transaction",
    "SESSION_COLUMN_BY_PROVIDER",
    "Entitlement",
    "build_grant_key",
    "JournalEntry",
    "RecurringSubscription",
    "SubscriptionPlan",
    "ProviderPlanMapping",
    "IdempotencyRecord",
    "WebhookEvent",
    "ExchangeRate",
    "RegionConfig",
    "UserPaymentPreference",
]

# Fin del archivo backend/app/modules/payments/models/__init__.py
