from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.contracts import IntentStatusResponse, PaymentIntentORM
from shared.utils import mask_msisdn
from ticketing_api.core.errors import NotFoundError
from ticketing_api.repositories.intent_repository import IntentRepository


class GetIntentStatusUseCase:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def by_correlation_id(self, correlation_id: str) -> IntentStatusResponse:
        async with self._session_factory() as session:
            intent = await IntentRepository(session).find_by_correlation_id(correlation_id)
        return _to_response(intent)

    async def by_intent_id(self, intent_id: UUID) -> IntentStatusResponse:
        async with self._session_factory() as session:
            intent = await IntentRepository(session).get_by_intent_id(intent_id)
        return _to_response(intent)


def _to_response(intent: PaymentIntentORM | None) -> IntentStatusResponse:
    if intent is None:
        raise NotFoundError("Payment intent not found")
    return IntentStatusResponse(
        intent_id=intent.intent_id,
        state=intent.state,
        amount=intent.amount,
        payer_phone=mask_msisdn(intent.payer_phone),
        resource_ref=intent.resource_ref,
        correlation_id=intent.checkout_request_id,
        receipt_ref=intent.receipt_ref,
        simulated=intent.simulated,
        failure_reason=intent.failure_reason,
        created_at=intent.created_at,
        updated_at=intent.updated_at,
    )
