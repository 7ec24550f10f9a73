from __future__ import annotations

from typing import Any

from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.contracts import (
    CallbackAcknowledgement,
    CallbackOutcome,
    IntentState,
    PaymentIntentORM,
)
from shared.logging import (
    CORRELATION_ID,
    INTENT_ID,
    OUTCOME,
    RESULT_CODE,
    STATE,
    get_logger,
    update_correlation_context,
)
from ticketing_api.callbacks.adapter import CallbackResult, normalize_callback
from ticketing_api.core.metrics import callbacks_total
from ticketing_api.repositories.intent_repository import IntentRepository

logger = get_logger(__name__)

_FAILURE_REASON_MAX_LENGTH = 512


class ReconcileCallbackUseCase:
    """Apply an asynchronous gateway result to its intent.

    The gateway keeps retrying any callback it does not see acknowledged, so every path
    (malformed payload, unknown correlation id, repeat delivery, internal failure) ends in
    the same acknowledgement.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._tracer = trace.get_tracer(__name__)

    async def execute(self, envelope: Any) -> CallbackAcknowledgement:
        try:
            with self._tracer.start_as_current_span("reconcile_callback"):
                outcome = await self._reconcile(envelope)
        except Exception:  # noqa: BLE001
            logger.exception("callback_reconciliation_failed")
            outcome = CallbackOutcome.ERROR
        callbacks_total.add(1, {"outcome": outcome.value})
        return CallbackAcknowledgement()

    async def _reconcile(self, envelope: Any) -> CallbackOutcome:
        result = normalize_callback(envelope)
        if result is None:
            logger.warning(
                "callback_ignored",
                extra={"extra_fields": {"reason": "missing stkCallback result structure"}},
            )
            return CallbackOutcome.IGNORED

        update_correlation_context({CORRELATION_ID: result.correlation_ids[0]})
        async with self._session_factory() as session:
            repository = self._build_repository(session)
            intent = await self._find_intent(repository, result)
            if intent is None:
                logger.warning(
                    "callback_unmatched",
                    extra={
                        "extra_fields": {
                            CORRELATION_ID: result.correlation_ids[0],
                            RESULT_CODE: result.result_code,
                        }
                    },
                )
                return CallbackOutcome.UNMATCHED

            transition = await repository.transition_state(
                intent.intent_id,
                IntentState.SUCCESS if result.succeeded else IntentState.FAILED,
                receipt_ref=result.receipt_ref if result.succeeded else None,
                raw_callback=envelope,
                failure_reason=None if result.succeeded else _failure_reason(result),
            )
            await session.commit()

        outcome = CallbackOutcome.APPLIED if transition.applied else CallbackOutcome.DUPLICATE
        settled = transition.intent or intent
        logger.info(
            "callback_reconciled",
            extra={
                "extra_fields": {
                    INTENT_ID: str(intent.intent_id),
                    CORRELATION_ID: result.correlation_ids[0],
                    RESULT_CODE: result.result_code,
                    STATE: settled.state.value,
                    OUTCOME: outcome.value,
                }
            },
        )
        return outcome

    async def _find_intent(
        self, repository: IntentRepository, result: CallbackResult
    ) -> PaymentIntentORM | None:
        for correlation_id in result.correlation_ids:
            intent = await repository.find_by_correlation_id(correlation_id)
            if intent is not None:
                return intent
        return None

    def _build_repository(self, session: AsyncSession) -> IntentRepository:
        return IntentRepository(session)


def _failure_reason(result: CallbackResult) -> str:
    reason = result.result_desc or f"ResultCode {result.result_code}"
    return reason[:_FAILURE_REASON_MAX_LENGTH]
