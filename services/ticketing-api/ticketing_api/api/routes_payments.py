from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Request, Response, status

from shared.constants import CALLBACK_PATH
from shared.contracts import (
    CallbackAcknowledgement,
    IntentState,
    IntentStatusResponse,
    PaymentSubmissionResponse,
    SubmitPaymentRequest,
)
from shared.logging import get_logger
from ticketing_api.api.dependencies import (
    enforce_api_auth,
    get_intent_status_use_case,
    get_reconcile_callback_use_case,
    get_submit_payment_use_case,
)
from ticketing_api.use_cases.get_intent_status import GetIntentStatusUseCase
from ticketing_api.use_cases.reconcile_callback import ReconcileCallbackUseCase
from ticketing_api.use_cases.submit_payment import SubmitPaymentUseCase

logger = get_logger(__name__)

router = APIRouter(tags=["payments"], dependencies=[Depends(enforce_api_auth)])
# Daraja cannot send our API token; the callback route stays outside the auth dependency.
callback_router = APIRouter(tags=["gateway-callbacks"])


@router.post("/payments/mpesa/stkpush", status_code=status.HTTP_202_ACCEPTED)
async def submit_payment(
    payload: SubmitPaymentRequest,
    response: Response,
    use_case: Annotated[SubmitPaymentUseCase, Depends(get_submit_payment_use_case)],
    payer_id: Annotated[str, Header(alias="X-Payer-Id")],
    idempotency_key: Annotated[str | None, Header(alias="Idempotency-Key")] = None,
) -> PaymentSubmissionResponse:
    headers = {"X-Payer-Id": payer_id}
    if idempotency_key:
        headers["Idempotency-Key"] = idempotency_key
    result = await use_case.execute(payload, headers)
    if result.status == IntentState.FAILED:
        response.status_code = status.HTTP_502_BAD_GATEWAY
    return result


@router.get("/payments/mpesa/status/{correlation_id}")
async def get_status_by_correlation_id(
    correlation_id: str,
    use_case: Annotated[GetIntentStatusUseCase, Depends(get_intent_status_use_case)],
) -> IntentStatusResponse:
    return await use_case.by_correlation_id(correlation_id)


@router.get("/payments/{intent_id}")
async def get_intent(
    intent_id: UUID,
    use_case: Annotated[GetIntentStatusUseCase, Depends(get_intent_status_use_case)],
) -> IntentStatusResponse:
    return await use_case.by_intent_id(intent_id)


@callback_router.post(CALLBACK_PATH)
async def receive_callback(
    request: Request,
    use_case: Annotated[ReconcileCallbackUseCase, Depends(get_reconcile_callback_use_case)],
) -> CallbackAcknowledgement:
    envelope: Any = None
    try:
        envelope = await request.json()
    except ValueError:
        logger.warning("callback_body_not_json")
    return await use_case.execute(envelope)
