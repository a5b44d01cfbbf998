# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/__init__.py

Superficie de exportación de enums del módulo Payments.

Autor: EventShot Payments
Fecha: 20/11/2025
"""

from .billing_cycle_enum import BillingCycle
from .entitlement_type_enum import EntitlementType
from .event_status_enum import EventStatus
from .idempotency_status_enum import IdempotencyStatus
from .journal_entry_type_enum import JournalEntryType
from .payment_provider_enum import PaymentProvider
from .payout_status_enum import PayoutStatus
from .pricing_type_enum import PricingType
from .subscription_scope_enum import SubscriptionScope
from .subscription_status_enum import SubscriptionStatus
from .transaction_status_enum import TransactionStatus
from .wallet_status_enum import WalletStatus
from .webhook_event_status_enum import WebhookEventStatus

__all__ = [
    "BillingCycle",
    "EntitlementType",
    "EventStatus",
    "IdempotencyStatus",
    "JournalEntryType",
    "PaymentProvider",
    "PayoutStatus",
    "PricingType",
    "SubscriptionScope",
    "SubscriptionStatus",
    "TransactionStatus",
    "WalletStatus",
    "WebhookEventStatus",
]

# Fin del archivo backend/app/modules/payments/enums/__init__.py
