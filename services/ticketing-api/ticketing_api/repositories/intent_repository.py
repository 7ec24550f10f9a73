from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from shared.contracts import IntentState, PaymentIntentORM, ReportGrouping


@dataclass(frozen=True)
class IntentCreateData:
    intent_id: UUID
    payer_id: str
    resource_ref: str | None
    amount: int
    payer_phone: str
    idempotency_key: str | None = None


@dataclass(frozen=True)
class TransitionResult:
    applied: bool
    intent: PaymentIntentORM | None


@dataclass(frozen=True)
class SalesRow:
    period: date
    total_amount: int
    payments: int


class IntentRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def create_intent(self, data: IntentCreateData) -> PaymentIntentORM:
        entity = PaymentIntentORM(
            intent_id=data.intent_id,
            payer_id=data.payer_id,
            resource_ref=data.resource_ref,
            amount=data.amount,
            payer_phone=data.payer_phone,
            state=IntentState.PENDING,
            simulated=False,
            idempotency_key=data.idempotency_key,
        )
        self._session.add(entity)
        return entity

    async def get_by_intent_id(self, intent_id: UUID) -> PaymentIntentORM | None:
        stmt = select(PaymentIntentORM).where(PaymentIntentORM.intent_id == intent_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_correlation_id(self, correlation_id: str) -> PaymentIntentORM | None:
        # Daraja echoes either id depending on the envelope version; both are unique per push.
        stmt = (
            select(PaymentIntentORM)
            .where(
                or_(
                    PaymentIntentORM.checkout_request_id == correlation_id,
                    PaymentIntentORM.merchant_request_id == correlation_id,
                )
            )
            .order_by(PaymentIntentORM.created_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_recent_by_idempotency_key(
        self, payer_id: str, idempotency_key: str, since: datetime
    ) -> PaymentIntentORM | None:
        stmt = (
            select(PaymentIntentORM)
            .where(
                PaymentIntentORM.payer_id == payer_id,
                PaymentIntentORM.idempotency_key == idempotency_key,
                PaymentIntentORM.created_at >= since,
            )
            .order_by(PaymentIntentORM.created_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def attach_correlation(
        self,
        intent_id: UUID,
        *,
        merchant_request_id: str | None,
        checkout_request_id: str,
        simulated: bool = False,
    ) -> bool:
        stmt = (
            update(PaymentIntentORM)
            .where(
                PaymentIntentORM.intent_id == intent_id,
                PaymentIntentORM.checkout_request_id.is_(None),
            )
            .values(
                merchant_request_id=merchant_request_id,
                checkout_request_id=checkout_request_id,
                simulated=simulated,
            )
        )
        result = await self._session.execute(stmt)
        return bool(getattr(result, "rowcount", 0))

    async def transition_state(
        self,
        intent_id: UUID,
        new_state: IntentState,
        *,
        receipt_ref: str | None = None,
        raw_callback: dict[str, Any] | None = None,
        failure_reason: str | None = None,
    ) -> TransitionResult:
        """Move a PENDING intent to a terminal state.

        The write is conditioned on the intent still being PENDING, so the submission path and
        the callback path can race without clobbering each other. A repeat is a no-op that
        returns the already-settled record.
        """
        if not new_state.is_terminal:
            raise ValueError("Intents can only transition to a terminal state")
        values: dict[str, Any] = {"state": new_state, "failure_reason": failure_reason}
        if new_state == IntentState.SUCCESS:
            values["receipt_ref"] = receipt_ref
        if raw_callback is not None:
            values["raw_callback"] = raw_callback
        stmt = (
            update(PaymentIntentORM)
            .where(
                PaymentIntentORM.intent_id == intent_id,
                PaymentIntentORM.state == IntentState.PENDING,
            )
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        result = await self._session.execute(stmt)
        applied = bool(getattr(result, "rowcount", 0))
        return TransitionResult(applied=applied, intent=await self.get_by_intent_id(intent_id))

    async def aggregate_by_state(self) -> dict[IntentState, int]:
        stmt = select(PaymentIntentORM.state, func.count()).group_by(PaymentIntentORM.state)
        result = await self._session.execute(stmt)
        counts = {state: 0 for state in IntentState}
        for state, total in result.all():
            counts[IntentState(state)] = int(total)
        return counts

    async def sum_successful_amounts(
        self, start: datetime, end: datetime, group_by: ReportGrouping
    ) -> list[SalesRow]:
        period = func.date_trunc(group_by.value, PaymentIntentORM.created_at).label("period")
        stmt = (
            select(
                period,
                func.coalesce(func.sum(PaymentIntentORM.amount), 0),
                func.count(),
            )
            .where(
                PaymentIntentORM.state == IntentState.SUCCESS,
                PaymentIntentORM.created_at >= start,
                PaymentIntentORM.created_at < end,
            )
            .group_by(period)
            .order_by(period)
        )
        result = await self._session.execute(stmt)
        return [
            SalesRow(period=_as_date(bucket), total_amount=int(total), payments=int(count))
            for bucket, total, count in result.all()
        ]


def _as_date(value: datetime | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value
