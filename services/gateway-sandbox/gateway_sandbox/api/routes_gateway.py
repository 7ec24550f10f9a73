from __future__ import annotations

import base64
import binascii
from typing import Annotated, Any
from uuid import uuid4

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from gateway_sandbox.core.config import Settings
from gateway_sandbox.simulation.dispatcher import CallbackDispatcher
from gateway_sandbox.simulation.engine import (
    GatewaySimulationEngine,
    SubmissionVerdict,
    build_callback_envelope,
)
from gateway_sandbox.simulation.tokens import SandboxTokenStore
from shared.constants import OAUTH_GRANT_TYPE, OAUTH_PATH, RESPONSE_CODE_ACCEPTED, STK_PUSH_PATH
from shared.contracts import DarajaErrorBody, DarajaStkPushPayload
from shared.utils import authorization_credentials, secrets_match

router = APIRouter(tags=["daraja-sandbox"])
GATEWAY_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    503: {"description": "Gateway unavailable"},
    504: {"description": "Gateway timeout"},
}
_ACCEPTED_DESCRIPTION = "Success. Request accepted for processing"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_engine(request: Request) -> GatewaySimulationEngine:
    return request.app.state.engine


def get_token_store(request: Request) -> SandboxTokenStore:
    return request.app.state.token_store


def get_dispatcher(request: Request) -> CallbackDispatcher:
    return request.app.state.dispatcher


@router.get(OAUTH_PATH)
async def generate_token(
    settings: Annotated[Settings, Depends(get_settings)],
    token_store: Annotated[SandboxTokenStore, Depends(get_token_store)],
    grant_type: str = "",
    authorization: Annotated[str | None, Header()] = None,
) -> JSONResponse:
    if grant_type != OAUTH_GRANT_TYPE:
        return _error(400, "400.008.02", "Invalid grant type passed")
    if not _basic_credentials_match(authorization, settings):
        return _error(400, "400.008.01", "Invalid Authentication passed")
    return JSONResponse(
        {"access_token": token_store.issue(), "expires_in": str(token_store.ttl_seconds)}
    )


@router.post(STK_PUSH_PATH, responses=GATEWAY_ERROR_RESPONSES)
async def process_request(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Annotated[Settings, Depends(get_settings)],
    engine: Annotated[GatewaySimulationEngine, Depends(get_engine)],
    token_store: Annotated[SandboxTokenStore, Depends(get_token_store)],
    dispatcher: Annotated[CallbackDispatcher, Depends(get_dispatcher)],
    authorization: Annotated[str | None, Header()] = None,
) -> JSONResponse:
    token = authorization_credentials(authorization, "Bearer")
    if token is None or not token_store.is_valid(token):
        return _error(401, "404.001.03", "Invalid Access Token")

    try:
        payload = DarajaStkPushPayload.model_validate(await request.json())
    except (ValueError, ValidationError):
        return _error(400, "400.002.02", "Bad Request - Invalid request payload")
    if settings.passkey and not _password_matches(payload, settings.passkey):
        return _error(400, "400.002.02", "Bad Request - Invalid Password")

    try:
        submission = await engine.submit(payload)
    except TimeoutError as exc:
        raise HTTPException(status_code=504, detail="Gateway timeout") from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail="Gateway unavailable") from exc

    if submission.verdict == SubmissionVerdict.REJECTED:
        return _error(
            400,
            "500.001.1001",
            "Unable to lock subscriber, a transaction is already in process for the current "
            "subscriber",
        )

    result = engine.result_for(submission.checkout_request_id)
    background_tasks.add_task(
        dispatcher.deliver,
        payload.CallBackURL,
        build_callback_envelope(submission, result, payload),
        result.deliveries,
    )
    return JSONResponse(
        {
            "MerchantRequestID": submission.merchant_request_id,
            "CheckoutRequestID": submission.checkout_request_id,
            "ResponseCode": RESPONSE_CODE_ACCEPTED,
            "ResponseDescription": _ACCEPTED_DESCRIPTION,
            "CustomerMessage": _ACCEPTED_DESCRIPTION,
        }
    )


def _error(status_code: int, error_code: str, message: str) -> JSONResponse:
    body = DarajaErrorBody(requestId=uuid4().hex, errorCode=error_code, errorMessage=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _basic_credentials_match(authorization: str | None, settings: Settings) -> bool:
    encoded = authorization_credentials(authorization, "Basic")
    if encoded is None:
        return False
    try:
        decoded = base64.b64decode(encoded, validate=True).decode()
    except (binascii.Error, UnicodeDecodeError):
        return False
    expected = f"{settings.consumer_key}:{settings.consumer_secret}"
    return secrets_match(decoded, expected)


def _password_matches(payload: DarajaStkPushPayload, passkey: str) -> bool:
    expected = base64.b64encode(
        f"{payload.BusinessShortCode}{passkey}{payload.Timestamp}".encode()
    ).decode()
    return secrets_match(payload.Password, expected)
