from __future__ import annotations

import base64
from datetime import UTC, datetime
from uuid import uuid4

import httpx
import pytest
from ticketing_api.core.errors import (
    GatewayAuthError,
    GatewayCredentialsMissingError,
    GatewayRejectedError,
    GatewayTimeoutError,
    GatewayUnavailableError,
)
from ticketing_api.gateway.daraja import DarajaCredentials, DarajaGatewayClient

from shared.contracts import StkPushRequest

_BASE_URL = "https://sandbox.safaricom.co.ke"


class FakeHttpClient:
    def __init__(self) -> None:
        self.closed = False
        self.token_responses: list[httpx.Response | Exception] = []
        self.push_responses: list[httpx.Response | Exception] = []
        self.get_calls: list[dict[str, object]] = []
        self.post_calls: list[dict[str, object]] = []

    async def get(
        self, path: str, *, params: dict[str, str], headers: dict[str, str]
    ) -> httpx.Response:
        self.get_calls.append({"path": path, "params": params, "headers": headers})
        return _next(self.token_responses)

    async def post(
        self, path: str, *, json: dict, headers: dict[str, str]  # noqa: A002
    ) -> httpx.Response:
        self.post_calls.append({"path": path, "json": json, "headers": headers})
        return _next(self.push_responses)

    async def aclose(self) -> None:
        self.closed = True


def _next(queue: list[httpx.Response | Exception]) -> httpx.Response:
    item = queue.pop(0)
    if isinstance(item, Exception):
        raise item
    return item


def _response(status_code: int, path: str, **kwargs) -> httpx.Response:  # noqa: ANN003
    return httpx.Response(status_code, request=httpx.Request("GET", f"{_BASE_URL}{path}"), **kwargs)


def _token_response(expires_in: str = "3599") -> httpx.Response:
    return _response(
        200, "/oauth/v1/generate", json={"access_token": "tok-1", "expires_in": expires_in}
    )


def _credentials(**overrides: str | None) -> DarajaCredentials:
    values: dict[str, str | None] = {
        "consumer_key": "key",
        "consumer_secret": "secret",
        "short_code": "174379",
        "passkey": "passkey",
    }
    values.update(overrides)
    return DarajaCredentials(**values)  # type: ignore[arg-type]


def _push_request() -> StkPushRequest:
    return StkPushRequest(
        intent_id=uuid4(),
        amount=1000,
        phone="254722000000",
        short_code="174379",
        callback_url="https://tickets.example.com/payments/mpesa/callback",
        account_reference="EVT-evt-1",
        description="Event Ticket Nairobi Jazz Night",
    )


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _client(http_client: FakeHttpClient, **kwargs) -> DarajaGatewayClient:  # noqa: ANN003
    return DarajaGatewayClient(
        http_client,  # type: ignore[arg-type]
        kwargs.pop("credentials", _credentials()),
        now=lambda: datetime(2024, 1, 1, 9, 0, 0, tzinfo=UTC),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_obtain_credential_uses_basic_auth_and_caches_token() -> None:
    http_client = FakeHttpClient()
    http_client.token_responses = [_token_response()]
    clock = FakeClock()
    client = _client(http_client, clock=clock)

    first = await client.obtain_credential()
    clock.now += 100
    second = await client.obtain_credential()

    assert first == second == "tok-1"
    assert len(http_client.get_calls) == 1
    call = http_client.get_calls[0]
    assert call["path"] == "/oauth/v1/generate"
    assert call["params"] == {"grant_type": "client_credentials"}
    expected = base64.b64encode(b"key:secret").decode()
    assert call["headers"]["Authorization"] == f"Basic {expected}"  # type: ignore[index]


@pytest.mark.asyncio
async def test_obtain_credential_refreshes_token_after_expiry_margin() -> None:
    http_client = FakeHttpClient()
    http_client.token_responses = [_token_response("120"), _token_response("120")]
    clock = FakeClock()
    client = _client(http_client, clock=clock)

    await client.obtain_credential()
    clock.now += 61
    await client.obtain_credential()

    assert len(http_client.get_calls) == 2


@pytest.mark.asyncio
async def test_obtain_credential_raises_when_configuration_missing() -> None:
    http_client = FakeHttpClient()
    client = _client(http_client, credentials=_credentials(passkey=None))

    with pytest.raises(GatewayCredentialsMissingError):
        await client.obtain_credential()

    assert http_client.get_calls == []


@pytest.mark.asyncio
async def test_obtain_credential_maps_rejection_and_missing_token_to_auth_error() -> None:
    http_client = FakeHttpClient()
    http_client.token_responses = [
        _response(400, "/oauth/v1/generate", json={"errorMessage": "Invalid Authentication"}),
        _response(200, "/oauth/v1/generate", json={"expires_in": "3599"}),
    ]
    client = _client(http_client)

    with pytest.raises(GatewayAuthError):
        await client.obtain_credential()
    with pytest.raises(GatewayAuthError, match="access_token"):
        await client.obtain_credential()


@pytest.mark.asyncio
async def test_obtain_credential_maps_transport_failures() -> None:
    http_client = FakeHttpClient()
    http_client.token_responses = [
        httpx.ReadTimeout("slow"),
        httpx.ConnectError("refused"),
        _response(503, "/oauth/v1/generate", text="down"),
    ]
    client = _client(http_client)

    with pytest.raises(GatewayTimeoutError):
        await client.obtain_credential()
    with pytest.raises(GatewayUnavailableError, match="ConnectError"):
        await client.obtain_credential()
    with pytest.raises(GatewayUnavailableError, match="503"):
        await client.obtain_credential()


@pytest.mark.asyncio
async def test_submit_push_payment_builds_daraja_payload(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr(
        "ticketing_api.gateway.daraja.inject_headers",
        lambda headers: {**headers, "traceparent": "00-abc-abc-01"},
    )
    http_client = FakeHttpClient()
    http_client.push_responses = [
        _response(
            200,
            "/mpesa/stkpush/v1/processrequest",
            json={
                "MerchantRequestID": "29115-34620561-1",
                "CheckoutRequestID": "ws_abc123",
                "ResponseCode": "0",
                "ResponseDescription": "Success. Request accepted for processing",
                "CustomerMessage": "Success. Request accepted for processing",
            },
        )
    ]
    client = _client(http_client)

    acknowledgement = await client.submit_push_payment(_push_request(), "tok-1")

    assert acknowledgement.checkout_request_id == "ws_abc123"
    assert acknowledgement.merchant_request_id == "29115-34620561-1"
    call = http_client.post_calls[0]
    assert call["path"] == "/mpesa/stkpush/v1/processrequest"
    assert call["headers"]["Authorization"] == "Bearer tok-1"  # type: ignore[index]
    assert call["headers"]["traceparent"] == "00-abc-abc-01"  # type: ignore[index]
    body = call["json"]
    # 09:00 UTC is 12:00 in Nairobi.
    assert body["Timestamp"] == "20240101120000"  # type: ignore[index]
    assert body["Password"] == base64.b64encode(b"174379passkey20240101120000").decode()  # type: ignore[index]
    assert body["TransactionType"] == "CustomerPayBillOnline"  # type: ignore[index]
    assert body["PartyA"] == body["PhoneNumber"] == "254722000000"  # type: ignore[index]
    assert body["PartyB"] == body["BusinessShortCode"] == "174379"  # type: ignore[index]
    assert body["AccountReference"] == "EVT-evt-1"  # type: ignore[index]


@pytest.mark.asyncio
async def test_submit_push_payment_reads_checkout_id_from_response_metadata() -> None:
    http_client = FakeHttpClient()
    http_client.push_responses = [
        _response(
            200,
            "/mpesa/stkpush/v1/processrequest",
            json={"ResponseCode": "0", "ResponseMetadata": {"CheckoutRequestID": "ws_meta"}},
        )
    ]
    client = _client(http_client)

    acknowledgement = await client.submit_push_payment(_push_request(), "tok-1")

    assert acknowledgement.checkout_request_id == "ws_meta"


@pytest.mark.asyncio
async def test_submit_push_payment_maps_non_zero_response_code_to_rejection() -> None:
    http_client = FakeHttpClient()
    body = {"ResponseCode": "1", "ResponseDescription": "Invalid Account"}
    http_client.push_responses = [_response(200, "/mpesa/stkpush/v1/processrequest", json=body)]
    client = _client(http_client)

    with pytest.raises(GatewayRejectedError, match="Invalid Account") as exc_info:
        await client.submit_push_payment(_push_request(), "tok-1")

    assert exc_info.value.raw_body == body


@pytest.mark.asyncio
async def test_submit_push_payment_maps_4xx_to_rejection_with_raw_body() -> None:
    http_client = FakeHttpClient()
    body = {"requestId": "r-1", "errorCode": "400.002.02", "errorMessage": "Invalid Amount"}
    http_client.push_responses = [_response(400, "/mpesa/stkpush/v1/processrequest", json=body)]
    client = _client(http_client)

    with pytest.raises(GatewayRejectedError) as exc_info:
        await client.submit_push_payment(_push_request(), "tok-1")

    assert exc_info.value.message == "Invalid Amount"
    assert exc_info.value.raw_body == body


@pytest.mark.asyncio
async def test_submit_push_payment_treats_timeout_and_5xx_as_unavailable() -> None:
    http_client = FakeHttpClient()
    http_client.push_responses = [
        httpx.ReadTimeout("slow"),
        _response(500, "/mpesa/stkpush/v1/processrequest", text="boom"),
    ]
    client = _client(http_client)

    with pytest.raises(GatewayTimeoutError):
        await client.submit_push_payment(_push_request(), "tok-1")
    with pytest.raises(GatewayUnavailableError):
        await client.submit_push_payment(_push_request(), "tok-1")


@pytest.mark.asyncio
async def test_submit_push_payment_drops_cached_token_on_401() -> None:
    http_client = FakeHttpClient()
    http_client.token_responses = [_token_response(), _token_response()]
    http_client.push_responses = [
        _response(401, "/mpesa/stkpush/v1/processrequest", json={"errorMessage": "Invalid"})
    ]
    client = _client(http_client)
    token = await client.obtain_credential()

    with pytest.raises(GatewayAuthError):
        await client.submit_push_payment(_push_request(), token)
    await client.obtain_credential()

    assert len(http_client.get_calls) == 2


@pytest.mark.asyncio
async def test_close_delegates_to_http_client() -> None:
    http_client = FakeHttpClient()
    client = _client(http_client)

    await client.close()

    assert http_client.closed is True
