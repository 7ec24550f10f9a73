from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from shared.contracts.enums import IntentState


class Base(DeclarativeBase):
    pass


class EventORM(Base):
    __tablename__ = "events"

    event_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class PaymentIntentORM(Base):
    __tablename__ = "payment_intents"
    __table_args__ = (
        UniqueConstraint("checkout_request_id", name="uq_payment_intent_checkout_request"),
    )

    intent_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    payer_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    resource_ref: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("events.event_id"), nullable=True, index=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    payer_phone: Mapped[str] = mapped_column(String(12), nullable=False)
    state: Mapped[IntentState] = mapped_column(
        Enum(IntentState, native_enum=False),
        nullable=False,
        default=IntentState.PENDING,
        index=True,
    )
    merchant_request_id: Mapped[str | None] = mapped_column(
        String(128), nullable=True, index=True
    )
    checkout_request_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    receipt_ref: Mapped[str | None] = mapped_column(String(64), nullable=True)
    raw_callback: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    simulated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    idempotency_key: Mapped[str | None] = mapped_column(String(128), nullable=True)
    failure_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
