# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/__init__.py

Punto de entrada de repositorios del módulo Payments.

Autor: EventShot Payments
Fecha: 2025-11-22
"""

from .event_repository import EventRepository
from .wallet_repository import PayoutRepository, WalletRepository
from .transaction_repository import TransactionRepository
from .entitlement_repository import EntitlementRepository, JournalRepository
from .idempotency_repository import IdempotencyRepository
from .webhook_event_repository import WebhookEventRepository
from .subscription_repository import (
    PaymentPreferenceRepository,
    ProviderPlanMappingRepository,
    RecurringSubscriptionRepository,
    SubscriptionPlanRepository,
)

__all__ = [
    "EventRepository",
    "WalletRepository",
    "PayoutRepository",
    "TransactionRepository",
    "EntitlementRepository",
    "JournalRepository",
    "IdempotencyRepository",
    "WebhookEventRepository",
    "RecurringSubscriptionRepository",
    "SubscriptionPlanRepository",
    "ProviderPlanMappingRepository",
    "PaymentPreferenceRepository",
]

# Fin del archivo backend/app/modules/payments/repositories/__init__.py
