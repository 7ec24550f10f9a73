from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.constants import (
    ACCOUNT_REFERENCE_PREFIX,
    DIRECT_PAYMENT_DESCRIPTION,
    MAX_TRANSACTION_AMOUNT,
)
from shared.contracts import (
    FailureReason,
    GatewayMode,
    IntentState,
    PaymentIntentORM,
    PaymentSubmissionResponse,
    StkPushAcknowledgement,
    StkPushRequest,
    SubmissionOutcome,
    SubmitPaymentRequest,
)
from shared.logging import (
    CORRELATION_ID,
    INTENT_ID,
    OUTCOME,
    RESOURCE_REF,
    STATE,
    get_logger,
    update_correlation_context,
)
from shared.observability import current_trace_id
from shared.utils import (
    new_uuid,
    normalize_msisdn,
    optional_header,
    require_header,
    synthetic_correlation_ids,
    utc_now,
)
from ticketing_api.commands.submit_push_payment import SubmitPushPaymentCommand
from ticketing_api.core.config import Settings
from ticketing_api.core.errors import (
    GatewayError,
    GatewayRejectedError,
    GatewayUnavailableAppError,
    IdempotencyConflictError,
    InvalidRequestError,
)
from ticketing_api.core.metrics import (
    idempotency_replay_total,
    intents_created_total,
    submission_outcomes_total,
)
from ticketing_api.repositories.event_repository import EventRepository
from ticketing_api.repositories.intent_repository import IntentCreateData, IntentRepository
from ticketing_api.services.idempotency_service import IdempotencyService

logger = get_logger(__name__)

SIMULATED_MESSAGE = "Simulated STK push created"
DEGRADED_MESSAGE = "Could not reach payment provider; payment left pending for reconciliation"
INITIATED_MESSAGE = "STK push initiated"
REPLAYED_MESSAGE = "Existing payment intent returned for Idempotency-Key"
REJECTED_MESSAGE_PREFIX = "Payment rejected by provider, reason: "

_ACCOUNT_REFERENCE_MAX_LENGTH = 32
_DESCRIPTION_MAX_LENGTH = 64
_FAILURE_REASON_MAX_LENGTH = 512
_PENDING_POLL_ATTEMPTS = 5
_PENDING_POLL_INTERVAL_SECONDS = 0.05


@dataclass(frozen=True)
class RequestContext:
    payer_id: str
    idempotency_key: str | None


@dataclass(frozen=True)
class ResolvedResource:
    event_id: str | None
    title: str | None
    amount: int


@dataclass(frozen=True)
class RepositoryBundle:
    intent: IntentRepository
    event: EventRepository


def resolve_authoritative_amount(
    resource_price: Decimal | None, client_amount: Decimal | None
) -> int:
    """The catalogue price always wins; the client amount is only a fallback."""
    for candidate in (resource_price, client_amount):
        if candidate is None or candidate <= 0:
            continue
        if candidate > MAX_TRANSACTION_AMOUNT:
            raise InvalidRequestError(
                f"Amount exceeds the maximum of {MAX_TRANSACTION_AMOUNT} per transaction"
            )
        units = int(candidate.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        if units > 0:
            return units
    raise InvalidRequestError("Event has no valid price and no amount provided")


class SubmitPaymentUseCase:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        command: SubmitPushPaymentCommand,
        idempotency_service: IdempotencyService,
        settings: Settings,
    ) -> None:
        self._session_factory = session_factory
        self._command = command
        self._idempotency_service = idempotency_service
        self._settings = settings
        self._tracer = trace.get_tracer(__name__)

    async def execute(
        self, request: SubmitPaymentRequest, headers: dict[str, str]
    ) -> PaymentSubmissionResponse:
        request_context = self._build_request_context(headers)
        async with self._session_factory() as session:
            repositories = self._build_repositories(session)

            if request_context.idempotency_key:
                replayed = await self._find_replayable_intent(repositories, request_context)
                if replayed:
                    return replayed

            with self._tracer.start_as_current_span("validate"):
                resource = await self._resolve_resource(repositories.event, request)
                phone = self._normalize_phone(request.phone)

            if request_context.idempotency_key and not await self._idempotency_service.acquire(
                request_context.payer_id, request_context.idempotency_key
            ):
                return await self._resolve_pending_idempotent_request(
                    repositories, request_context
                )

            intent = await self._persist_intent(
                session, repositories, request_context, resource, phone
            )
            return await self._submit(session, repositories, intent, resource)

    def _build_request_context(self, headers: dict[str, str]) -> RequestContext:
        try:
            payer_id = require_header(headers, "X-Payer-Id")
            idempotency_key = optional_header(headers, "Idempotency-Key")
        except ValueError as exc:
            raise InvalidRequestError(str(exc)) from exc
        return RequestContext(payer_id=payer_id, idempotency_key=idempotency_key)

    async def _resolve_resource(
        self, repository: EventRepository, request: SubmitPaymentRequest
    ) -> ResolvedResource:
        event = await repository.get_by_id(request.event_id) if request.event_id else None
        if event is None:
            return ResolvedResource(
                event_id=None,
                title=None,
                amount=resolve_authoritative_amount(None, request.amount),
            )
        return ResolvedResource(
            event_id=event.event_id,
            title=event.title,
            amount=resolve_authoritative_amount(event.price, request.amount),
        )

    def _normalize_phone(self, raw_phone: str) -> str:
        try:
            return normalize_msisdn(raw_phone)
        except ValueError as exc:
            raise InvalidRequestError(str(exc)) from exc

    async def _persist_intent(
        self,
        session: AsyncSession,
        repositories: RepositoryBundle,
        request_context: RequestContext,
        resource: ResolvedResource,
        phone: str,
    ) -> PaymentIntentORM:
        try:
            with self._tracer.start_as_current_span("persist_intent"):
                intent = repositories.intent.create_intent(
                    IntentCreateData(
                        intent_id=new_uuid(),
                        payer_id=request_context.payer_id,
                        resource_ref=resource.event_id,
                        amount=resource.amount,
                        payer_phone=phone,
                        idempotency_key=request_context.idempotency_key,
                    )
                )
                await session.commit()
        except Exception:
            if request_context.idempotency_key:
                await self._idempotency_service.release(
                    request_context.payer_id, request_context.idempotency_key
                )
            raise

        intents_created_total.add(1, {"mode": self._command.mode.value})
        update_correlation_context({INTENT_ID: str(intent.intent_id)})
        logger.info(
            "intent_created",
            extra={
                "extra_fields": {
                    INTENT_ID: str(intent.intent_id),
                    RESOURCE_REF: resource.event_id,
                    "amount": resource.amount,
                }
            },
        )
        return intent

    async def _submit(
        self,
        session: AsyncSession,
        repositories: RepositoryBundle,
        intent: PaymentIntentORM,
        resource: ResolvedResource,
    ) -> PaymentSubmissionResponse:
        stk_request = self._build_stk_request(intent, resource)
        try:
            with self._tracer.start_as_current_span("gateway_submit"):
                acknowledgement = await self._command.execute(stk_request)
        except GatewayRejectedError as exc:
            return await self._handle_rejection(session, repositories, intent, exc)
        except GatewayError as exc:
            return await self._handle_unreachable(session, repositories, intent, exc)

        if self._command.mode == GatewayMode.SIMULATED:
            return await self._record_correlation(
                session,
                repositories,
                intent,
                acknowledgement,
                simulated=True,
                outcome=SubmissionOutcome.SIMULATED,
                message=SIMULATED_MESSAGE,
            )
        message = INITIATED_MESSAGE
        if acknowledgement.customer_message:
            message = f"{INITIATED_MESSAGE}. {acknowledgement.customer_message}"
        return await self._record_correlation(
            session,
            repositories,
            intent,
            acknowledgement,
            simulated=False,
            outcome=SubmissionOutcome.SUBMITTED,
            message=message,
        )

    def _build_stk_request(
        self, intent: PaymentIntentORM, resource: ResolvedResource
    ) -> StkPushRequest:
        reference = f"{ACCOUNT_REFERENCE_PREFIX}{resource.event_id or intent.intent_id.hex}"
        description = (
            f"Event Ticket {resource.title}" if resource.title else DIRECT_PAYMENT_DESCRIPTION
        )
        return StkPushRequest(
            intent_id=intent.intent_id,
            amount=intent.amount,
            phone=intent.payer_phone,
            short_code=self._settings.mpesa_short_code or "",
            callback_url=self._settings.mpesa_callback_url,
            account_reference=reference[:_ACCOUNT_REFERENCE_MAX_LENGTH],
            description=description[:_DESCRIPTION_MAX_LENGTH],
        )

    async def _record_correlation(
        self,
        session: AsyncSession,
        repositories: RepositoryBundle,
        intent: PaymentIntentORM,
        acknowledgement: StkPushAcknowledgement,
        *,
        simulated: bool,
        outcome: SubmissionOutcome,
        message: str,
    ) -> PaymentSubmissionResponse:
        await repositories.intent.attach_correlation(
            intent.intent_id,
            merchant_request_id=acknowledgement.merchant_request_id,
            checkout_request_id=acknowledgement.checkout_request_id,
            simulated=simulated,
        )
        await session.commit()
        self._log_outcome(intent.intent_id, outcome, IntentState.PENDING)
        update_correlation_context({CORRELATION_ID: acknowledgement.checkout_request_id})
        return self._build_response(
            intent_id=intent.intent_id,
            state=IntentState.PENDING,
            correlation_id=acknowledgement.checkout_request_id,
            merchant_request_id=acknowledgement.merchant_request_id,
            simulated=simulated,
            message=message,
        )

    async def _handle_rejection(
        self,
        session: AsyncSession,
        repositories: RepositoryBundle,
        intent: PaymentIntentORM,
        exc: GatewayRejectedError,
    ) -> PaymentSubmissionResponse:
        logger.warning(
            "gateway_rejected_submission",
            extra={
                "extra_fields": {
                    INTENT_ID: str(intent.intent_id),
                    "reason": exc.message,
                    "provider_body": exc.raw_body,
                }
            },
        )
        result = await repositories.intent.transition_state(
            intent.intent_id,
            IntentState.FAILED,
            failure_reason=(exc.message or FailureReason.GATEWAY_REJECTED.value)[
                :_FAILURE_REASON_MAX_LENGTH
            ],
        )
        await session.commit()
        settled = result.intent or intent
        self._log_outcome(intent.intent_id, SubmissionOutcome.REJECTED, settled.state)
        return self._build_response(
            intent_id=intent.intent_id,
            state=settled.state,
            correlation_id=settled.checkout_request_id,
            merchant_request_id=settled.merchant_request_id,
            simulated=False,
            message=f"{REJECTED_MESSAGE_PREFIX}{exc.message}",
        )

    async def _handle_unreachable(
        self,
        session: AsyncSession,
        repositories: RepositoryBundle,
        intent: PaymentIntentORM,
        exc: GatewayError,
    ) -> PaymentSubmissionResponse:
        logger.warning(
            "gateway_unreachable",
            extra={
                "extra_fields": {
                    INTENT_ID: str(intent.intent_id),
                    "error_category": exc.category.value,
                    "reason": exc.message,
                    "degraded_fallback": self._settings.degraded_fallback_enabled,
                }
            },
        )
        if not self._settings.degraded_fallback_enabled:
            await repositories.intent.transition_state(
                intent.intent_id,
                IntentState.FAILED,
                failure_reason=FailureReason.GATEWAY_UNREACHABLE.value,
            )
            await session.commit()
            self._log_outcome(intent.intent_id, SubmissionOutcome.UNREACHABLE, IntentState.FAILED)
            raise GatewayUnavailableAppError() from exc

        merchant_request_id, checkout_request_id = synthetic_correlation_ids(intent.intent_id)
        return await self._record_correlation(
            session,
            repositories,
            intent,
            StkPushAcknowledgement(
                merchant_request_id=merchant_request_id,
                checkout_request_id=checkout_request_id,
            ),
            simulated=True,
            outcome=SubmissionOutcome.DEGRADED,
            message=DEGRADED_MESSAGE,
        )

    async def _find_replayable_intent(
        self, repositories: RepositoryBundle, request_context: RequestContext
    ) -> PaymentSubmissionResponse | None:
        since = utc_now() - timedelta(seconds=self._settings.idempotency_window_seconds)
        existing = await repositories.intent.find_recent_by_idempotency_key(
            request_context.payer_id, request_context.idempotency_key or "", since
        )
        if existing is None:
            return None
        idempotency_replay_total.add(1)
        self._log_outcome(existing.intent_id, SubmissionOutcome.REPLAYED, existing.state)
        return self._build_response(
            intent_id=existing.intent_id,
            state=existing.state,
            correlation_id=existing.checkout_request_id,
            merchant_request_id=existing.merchant_request_id,
            simulated=existing.simulated,
            message=REPLAYED_MESSAGE,
        )

    async def _resolve_pending_idempotent_request(
        self, repositories: RepositoryBundle, request_context: RequestContext
    ) -> PaymentSubmissionResponse:
        for _ in range(_PENDING_POLL_ATTEMPTS):
            replayed = await self._find_replayable_intent(repositories, request_context)
            if replayed:
                return replayed
            await asyncio.sleep(_PENDING_POLL_INTERVAL_SECONDS)
        raise IdempotencyConflictError()

    def _log_outcome(self, intent_id: UUID, outcome: SubmissionOutcome, state: IntentState) -> None:
        submission_outcomes_total.add(1, {"outcome": outcome.value})
        logger.info(
            "intent_submission_outcome",
            extra={
                "extra_fields": {
                    INTENT_ID: str(intent_id),
                    OUTCOME: outcome.value,
                    STATE: state.value,
                }
            },
        )

    def _build_response(
        self,
        *,
        intent_id: UUID,
        state: IntentState,
        correlation_id: str | None,
        merchant_request_id: str | None,
        simulated: bool,
        message: str,
    ) -> PaymentSubmissionResponse:
        return PaymentSubmissionResponse(
            intent_id=intent_id,
            status=state,
            correlation_id=correlation_id,
            merchant_request_id=merchant_request_id,
            simulated=simulated,
            message=message,
            trace_id=current_trace_id(),
        )

    def _build_repositories(self, session: AsyncSession) -> RepositoryBundle:
        return RepositoryBundle(intent=IntentRepository(session), event=EventRepository(session))
