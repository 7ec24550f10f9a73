from tests.helpers.app import build_app_with_router, create_test_client
from tests.helpers.assertions import assert_callback_acknowledged, assert_error_payload
from tests.helpers.factories import (
    make_callback_envelope,
    make_event,
    make_intent,
    make_settings,
    make_status_response,
    make_submission_response,
)
from tests.helpers.fakes import (
    FakeEventRepository,
    FakeGateway,
    FakeIntentStatusUseCase,
    FakeReconcileCallbackUseCase,
    FakeRedis,
    FakeSalesReportUseCase,
    FakeSession,
    FakeSessionFactory,
    FakeSubmitPaymentUseCase,
    InMemoryIntentRepository,
    RecordingInstrument,
    sales_row,
)

__all__ = [
    "FakeEventRepository",
    "FakeGateway",
    "FakeIntentStatusUseCase",
    "FakeReconcileCallbackUseCase",
    "FakeRedis",
    "FakeSalesReportUseCase",
    "FakeSession",
    "FakeSessionFactory",
    "FakeSubmitPaymentUseCase",
    "InMemoryIntentRepository",
    "RecordingInstrument",
    "assert_callback_acknowledged",
    "assert_error_payload",
    "build_app_with_router",
    "create_test_client",
    "make_callback_envelope",
    "make_event",
    "make_intent",
    "make_settings",
    "make_status_response",
    "make_submission_response",
    "sales_row",
]
