# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/transaction_models.py

Modelo ORM para la tabla transactions (compras únicas de fotos).

Ciclo de vida:
- El checkout la crea en `pending`.
- Webhook o verificación manual la transicionan una sola vez a
  `succeeded` o `failed` mediante UPDATE condicional (WHERE status='pending').
- Nunca se elimina.

Invariante contable: gross = net + platform_fee + provider_fee + transaction_fee
(salvo cuando net se acota en 0).

Autor: EventShot Payments
Fecha: 2025-11-20 (ajustado 2025-11-21)
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, JSONType, UTCDateTime, utcnow
from app.modules.payments.enums import PaymentProvider, TransactionStatus

# Columna que guarda el id de sesión/orden/referencia según la pasarela
SESSION_COLUMN_BY_PROVIDER: dict[PaymentProvider, str] = {
    PaymentProvider.STRIPE: "stripe_checkout_session_id",
    PaymentProvider.PAYPAL: "paypal_order_id",
    PaymentProvider.FLUTTERWAVE: "flutterwave_tx_ref",
    PaymentProvider.PAYSTACK: "paystack_reference",
}


class Transaction(Base):
    """Intento de compra única de medios de un evento."""

    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    transaction_reference: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        doc="Referencia propia enviada al proveedor (tx_ref / reference / custom_id).",
    )

    event_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("events.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    wallet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("wallets.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Identidad del pagador: usuario registrado o email de invitado
    attendee_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)
    payer_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)

    provider: Mapped[PaymentProvider] = mapped_column(PaymentProvider.as_db_enum(), nullable=False)

    # Exactamente una poblada, según provider
    stripe_checkout_session_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    paypal_order_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    flutterwave_tx_ref: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    paystack_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)

    provider_transaction_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="ID del cargo/captura en el proveedor, conocido tras la confirmación.",
    )

    # Montos en unidades menores
    gross_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    original_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    platform_fee: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    provider_fee: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    transaction_fee: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    net_amount: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    event_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(18, 8), nullable=False, default=Decimal("1"))

    status: Mapped[TransactionStatus] = mapped_column(
        TransactionStatus.as_db_enum(),
        nullable=False,
        default=TransactionStatus.PENDING,
        index=True,
    )

    idempotency_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    failure_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # "metadata" está reservado en DeclarativeBase; el atributo se llama meta
    meta: Mapped[dict] = mapped_column(
        "metadata",
        JSONType,
        nullable=False,
        default=dict,
        doc="media_ids | unlock_all, breakdown de fees, checkout_url, idempotency_key.",
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (
        Index("ix_transactions_event_attendee", "event_id", "attendee_id"),
    )

    @property
    def session_id(self) -> Optional[str]:
        """Id de sesión/orden/referencia del proveedor elegido."""
        column = SESSION_COLUMN_BY_PROVIDER.get(PaymentProvider(self.provider))
        return getattr(self, column) if column else None

    @property
    def checkout_url(self) -> Optional[str]:
        return (self.meta or {}).get("checkout_url")

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} provider={self.provider} status={self.status}>"


__all__ = ["Transaction", "SESSION_COLUMN_BY_PROVIDER"]

# Fin del archivo backend/app/modules/payments/models/transaction_models.py
