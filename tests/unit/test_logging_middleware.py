from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import FastAPI

from shared.logging import (
    INTENT_ID,
    CorrelationMiddleware,
    get_correlation_context,
    update_correlation_context,
)
from shared.logging.logger import JsonFormatter
from tests.helpers import create_test_client


def _log_line(message: str, extra_fields: dict[str, Any]) -> dict[str, Any]:
    record = logging.LogRecord("ticketing_api", logging.INFO, __file__, 1, message, None, None)
    record.extra_fields = extra_fields
    return json.loads(JsonFormatter().format(record))


def _build_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(CorrelationMiddleware)

    @app.post("/payments/mpesa/stkpush")
    def submit() -> dict[str, Any]:
        update_correlation_context({INTENT_ID: "5f0c0d7e"})
        return _log_line("intent_created", {"payer_phone": "254722000123", "amount": 1000})

    @app.post("/payments/mpesa/callback")
    def callback() -> None:
        raise RuntimeError("reconciler crashed")

    return app


def test_log_lines_carry_payer_and_idempotency_key_from_headers() -> None:
    headers = {"X-Payer-Id": "payer-42", "Idempotency-Key": "checkout-7"}

    with create_test_client(_build_app()) as client:
        line = client.post("/payments/mpesa/stkpush", headers=headers).json()

    assert line["message"] == "intent_created"
    assert line["payer_id"] == "payer-42"
    assert line["idempotency_key"] == "checkout-7"
    assert line[INTENT_ID] == "5f0c0d7e"
    assert line["payer_phone"] == "[REDACTED]"
    assert line["amount"] == 1000
    assert "trace_id" in line


def test_requests_without_payer_headers_log_empty_identity() -> None:
    with create_test_client(_build_app()) as client:
        line = client.post("/payments/mpesa/stkpush").json()

    assert line["payer_id"] == ""
    assert line["idempotency_key"] == ""


def test_context_is_cleared_after_each_request_even_on_failure() -> None:
    with create_test_client(_build_app(), raise_server_exceptions=False) as client:
        client.post("/payments/mpesa/stkpush", headers={"X-Payer-Id": "payer-42"})
        response = client.post("/payments/mpesa/callback", headers={"X-Payer-Id": "payer-43"})

    assert response.status_code == 500
    assert get_correlation_context() == {}
