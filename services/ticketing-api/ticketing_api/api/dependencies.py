from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.utils import authorization_credentials, secrets_match
from ticketing_api.commands.submit_push_payment import SubmitPushPaymentCommand
from ticketing_api.core.config import Settings
from ticketing_api.core.errors import AuthenticationError
from ticketing_api.gateway.contracts import PaymentGateway
from ticketing_api.services.idempotency_service import IdempotencyService
from ticketing_api.use_cases.get_intent_status import GetIntentStatusUseCase
from ticketing_api.use_cases.reconcile_callback import ReconcileCallbackUseCase
from ticketing_api.use_cases.sales_report import SalesReportUseCase
from ticketing_api.use_cases.submit_payment import SubmitPaymentUseCase


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.session_factory


def get_redis_client(request: Request) -> Redis:
    return request.app.state.redis_client


def get_gateway(request: Request) -> PaymentGateway:
    return request.app.state.gateway


def enforce_api_auth(
    settings: Annotated[Settings, Depends(get_app_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    if not settings.api_auth_enabled:
        return
    token = authorization_credentials(authorization, "Bearer")
    if not secrets_match(token, settings.api_auth_token):
        raise AuthenticationError()


def get_submit_payment_use_case(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    redis_client: Annotated[Redis, Depends(get_redis_client)],
    gateway: Annotated[PaymentGateway, Depends(get_gateway)],
) -> SubmitPaymentUseCase:
    command = SubmitPushPaymentCommand(
        gateway,
        request.app.state.gateway_breaker,
        credential_max_attempts=settings.credential_max_attempts,
        credential_backoff_seconds=settings.credential_backoff_seconds,
    )
    idempotency_service = IdempotencyService(redis_client, settings.idempotency_window_seconds)
    return SubmitPaymentUseCase(session_factory, command, idempotency_service, settings)


def get_reconcile_callback_use_case(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> ReconcileCallbackUseCase:
    return ReconcileCallbackUseCase(session_factory)


def get_intent_status_use_case(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> GetIntentStatusUseCase:
    return GetIntentStatusUseCase(session_factory)


def get_sales_report_use_case(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> SalesReportUseCase:
    return SalesReportUseCase(session_factory)
