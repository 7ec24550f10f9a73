from __future__ import annotations

from types import SimpleNamespace

import pytest
from ticketing_api.api import dependencies
from ticketing_api.core.errors import AuthenticationError
from ticketing_api.use_cases.get_intent_status import GetIntentStatusUseCase
from ticketing_api.use_cases.reconcile_callback import ReconcileCallbackUseCase
from ticketing_api.use_cases.sales_report import SalesReportUseCase
from ticketing_api.use_cases.submit_payment import SubmitPaymentUseCase

from shared.resilience import CircuitBreaker
from tests.helpers import FakeGateway, FakeRedis, make_settings


def _build_request(**settings_overrides) -> SimpleNamespace:  # noqa: ANN003
    state = SimpleNamespace(
        settings=make_settings(
            idempotency_window_seconds=120,
            credential_max_attempts=4,
            credential_backoff_seconds=0.5,
            **settings_overrides,
        ),
        session_factory=object(),
        redis_client=FakeRedis(),
        gateway=FakeGateway(),
        gateway_breaker=CircuitBreaker("mpesa"),
    )
    return SimpleNamespace(app=SimpleNamespace(state=state))


def test_dependency_accessors_read_from_request_state() -> None:
    request = _build_request()
    state = request.app.state

    assert dependencies.get_app_settings(request) is state.settings
    assert dependencies.get_session_factory(request) is state.session_factory
    assert dependencies.get_redis_client(request) is state.redis_client
    assert dependencies.get_gateway(request) is state.gateway


def test_submit_payment_use_case_wiring_respects_settings() -> None:
    request = _build_request()
    state = request.app.state

    use_case = dependencies.get_submit_payment_use_case(
        request, state.settings, state.session_factory, state.redis_client, state.gateway
    )

    assert isinstance(use_case, SubmitPaymentUseCase)
    assert use_case._session_factory is state.session_factory  # type: ignore[attr-defined]
    command = use_case._command  # type: ignore[attr-defined]
    assert command._gateway is state.gateway  # type: ignore[attr-defined]
    assert command._breaker is state.gateway_breaker  # type: ignore[attr-defined]
    assert command._credential_max_attempts == 4  # type: ignore[attr-defined]
    assert command._credential_backoff_seconds == 0.5  # type: ignore[attr-defined]
    idempotency_service = use_case._idempotency_service  # type: ignore[attr-defined]
    assert idempotency_service._ttl_seconds == 120  # type: ignore[attr-defined]


def test_other_use_case_factories_return_expected_types() -> None:
    session_factory = _build_request().app.state.session_factory

    assert isinstance(
        dependencies.get_reconcile_callback_use_case(session_factory), ReconcileCallbackUseCase
    )
    assert isinstance(dependencies.get_intent_status_use_case(session_factory), GetIntentStatusUseCase)
    assert isinstance(dependencies.get_sales_report_use_case(session_factory), SalesReportUseCase)


def test_api_auth_is_skipped_when_disabled() -> None:
    settings = make_settings(api_auth_enabled=False)

    assert dependencies.enforce_api_auth(settings, None) is None


@pytest.mark.parametrize(
    "authorization",
    [None, "", "Bearer wrong", "Basic s3cret", "s3cret"],
)
def test_api_auth_rejects_missing_or_wrong_token(authorization: str | None) -> None:
    settings = make_settings(api_auth_enabled=True, api_auth_token="s3cret")

    with pytest.raises(AuthenticationError):
        dependencies.enforce_api_auth(settings, authorization)


def test_api_auth_fails_closed_without_configured_token() -> None:
    settings = make_settings(api_auth_enabled=True, api_auth_token=None)

    with pytest.raises(AuthenticationError):
        dependencies.enforce_api_auth(settings, "Bearer anything")


def test_api_auth_accepts_matching_bearer_token() -> None:
    settings = make_settings(api_auth_enabled=True, api_auth_token="s3cret")

    assert dependencies.enforce_api_auth(settings, "bearer s3cret") is None
