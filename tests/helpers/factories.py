from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from uuid import UUID, uuid4

from ticketing_api.core.config import Settings

from shared.contracts import (
    GatewayMode,
    IntentState,
    IntentStatusResponse,
    PaymentSubmissionResponse,
)


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "gateway_mode": GatewayMode.LIVE,
        "degraded_fallback_enabled": True,
        "mpesa_consumer_key": "key",
        "mpesa_consumer_secret": "secret",
        "mpesa_short_code": "174379",
        "mpesa_passkey": "passkey",
        "mpesa_callback_url": "https://tickets.example.com/payments/mpesa/callback",
        "credential_backoff_seconds": 0.0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_event(
    event_id: str = "evt-1", *, title: str = "Nairobi Jazz Night", price: str | None = "1000"
) -> SimpleNamespace:
    return SimpleNamespace(
        event_id=event_id,
        title=title,
        price=Decimal(price) if price is not None else None,
    )


def make_intent(
    *,
    intent_id: UUID | None = None,
    state: IntentState = IntentState.PENDING,
    checkout_request_id: str | None = "ws_abc123",
    merchant_request_id: str | None = "29115-34620561-1",
    amount: int = 1000,
    payer_phone: str = "254722000000",
    receipt_ref: str | None = None,
    payer_id: str = "payer-1",
    idempotency_key: str | None = None,
) -> SimpleNamespace:
    now = datetime.now(UTC)
    return SimpleNamespace(
        intent_id=intent_id or uuid4(),
        payer_id=payer_id,
        resource_ref="evt-1",
        amount=amount,
        payer_phone=payer_phone,
        state=state,
        merchant_request_id=merchant_request_id,
        checkout_request_id=checkout_request_id,
        receipt_ref=receipt_ref,
        raw_callback=None,
        simulated=False,
        idempotency_key=idempotency_key,
        failure_reason=None,
        created_at=now,
        updated_at=now,
    )


def make_callback_envelope(
    *,
    checkout_request_id: str = "ws_abc123",
    merchant_request_id: str = "29115-34620561-1",
    result_code: int | str = 0,
    result_desc: str = "The service request is processed successfully.",
    receipt: str | None = "QCT123XYZ",
) -> dict[str, Any]:
    callback: dict[str, Any] = {
        "MerchantRequestID": merchant_request_id,
        "CheckoutRequestID": checkout_request_id,
        "ResultCode": result_code,
        "ResultDesc": result_desc,
    }
    if receipt is not None:
        callback["CallbackMetadata"] = {
            "Item": [
                {"Name": "Amount", "Value": 1000},
                {"Name": "MpesaReceiptNumber", "Value": receipt},
                {"Name": "TransactionDate", "Value": 20240101120000},
                {"Name": "PhoneNumber", "Value": 254722000000},
            ]
        }
    return {"Body": {"stkCallback": callback}}


def make_submission_response(
    *, status: IntentState = IntentState.PENDING, simulated: bool = False
) -> PaymentSubmissionResponse:
    return PaymentSubmissionResponse(
        intent_id=uuid4(),
        status=status,
        correlation_id="ws_abc123",
        merchant_request_id="29115-34620561-1",
        simulated=simulated,
        message="STK push initiated",
        trace_id="trace-123",
    )


def make_status_response(*, state: IntentState = IntentState.PENDING) -> IntentStatusResponse:
    now = datetime.now(UTC)
    return IntentStatusResponse(
        intent_id=uuid4(),
        state=state,
        amount=1000,
        payer_phone="254722***000",
        resource_ref="evt-1",
        correlation_id="ws_abc123",
        receipt_ref=None,
        simulated=False,
        failure_reason=None,
        created_at=now,
        updated_at=now,
    )
