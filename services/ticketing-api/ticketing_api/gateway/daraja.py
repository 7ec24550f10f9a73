from __future__ import annotations

import asyncio
import base64
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from shared.constants import (
    GATEWAY_TIMEZONE,
    OAUTH_GRANT_TYPE,
    OAUTH_PATH,
    RESPONSE_CODE_ACCEPTED,
    STK_PUSH_PATH,
    TRANSACTION_TYPE_PAYBILL,
)
from shared.contracts import (
    DarajaStkPushPayload,
    GatewayMode,
    StkPushAcknowledgement,
    StkPushRequest,
)
from shared.observability import inject_headers
from shared.utils import gateway_timestamp, utc_now
from ticketing_api.core.config import Settings
from ticketing_api.core.errors import (
    GatewayAuthError,
    GatewayCredentialsMissingError,
    GatewayRejectedError,
    GatewayTimeoutError,
    GatewayUnavailableError,
)

_DEFAULT_TOKEN_TTL_SECONDS = 3599
_TOKEN_EXPIRY_MARGIN_SECONDS = 60


@dataclass(frozen=True)
class DarajaCredentials:
    consumer_key: str | None
    consumer_secret: str | None
    short_code: str | None
    passkey: str | None
    transaction_type: str = TRANSACTION_TYPE_PAYBILL
    timezone: str = GATEWAY_TIMEZONE

    @classmethod
    def from_settings(cls, settings: Settings) -> DarajaCredentials:
        return cls(
            consumer_key=settings.mpesa_consumer_key,
            consumer_secret=settings.mpesa_consumer_secret,
            short_code=settings.mpesa_short_code,
            passkey=settings.mpesa_passkey,
            transaction_type=settings.mpesa_transaction_type,
            timezone=settings.mpesa_timezone,
        )

    @property
    def complete(self) -> bool:
        return all((self.consumer_key, self.consumer_secret, self.short_code, self.passkey))


class DarajaGatewayClient:
    mode = GatewayMode.LIVE

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        credentials: DarajaCredentials,
        *,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._http_client = http_client
        self._credentials = credentials
        self._clock = clock
        self._now = now
        self._token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = asyncio.Lock()

    async def obtain_credential(self) -> str:
        if not self._credentials.complete:
            raise GatewayCredentialsMissingError()
        async with self._token_lock:
            if self._token and self._clock() < self._token_expires_at:
                return self._token
            return await self._exchange_credential()

    async def submit_push_payment(
        self, request: StkPushRequest, access_token: str
    ) -> StkPushAcknowledgement:
        payload = self._build_payload(request)
        headers = inject_headers(
            {"Authorization": f"Bearer {access_token}", "Content-Type": "application/json"}
        )
        try:
            response = await self._http_client.post(
                STK_PUSH_PATH, json=payload.model_dump(), headers=headers
            )
        except httpx.TimeoutException as exc:
            raise GatewayTimeoutError("STK push timed out") from exc
        except httpx.TransportError as exc:
            raise GatewayUnavailableError(f"STK push failed: {type(exc).__name__}") from exc
        return self._parse_acknowledgement(response)

    async def close(self) -> None:
        await self._http_client.aclose()

    async def _exchange_credential(self) -> str:
        headers = inject_headers({"Authorization": f"Basic {self._basic_auth()}"})
        try:
            response = await self._http_client.get(
                OAUTH_PATH, params={"grant_type": OAUTH_GRANT_TYPE}, headers=headers
            )
        except httpx.TimeoutException as exc:
            raise GatewayTimeoutError("Credential exchange timed out") from exc
        except httpx.TransportError as exc:
            raise GatewayUnavailableError(
                f"Credential exchange failed: {type(exc).__name__}"
            ) from exc

        if response.status_code >= 500:
            raise GatewayUnavailableError(f"Gateway returned {response.status_code}")
        if response.status_code >= 400:
            raise GatewayAuthError(f"Credential exchange rejected with {response.status_code}")
        body = _decode_body(response)
        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise GatewayAuthError("Credential response did not contain an access_token")

        expires_in = _as_int(body.get("expires_in"), _DEFAULT_TOKEN_TTL_SECONDS)
        self._token = str(token)
        self._token_expires_at = self._clock() + max(
            0, expires_in - _TOKEN_EXPIRY_MARGIN_SECONDS
        )
        return self._token

    def _basic_auth(self) -> str:
        raw = f"{self._credentials.consumer_key}:{self._credentials.consumer_secret}"
        return base64.b64encode(raw.encode()).decode()

    def _build_payload(self, request: StkPushRequest) -> DarajaStkPushPayload:
        timestamp = gateway_timestamp(self._now(), self._credentials.timezone)
        password = base64.b64encode(
            f"{request.short_code}{self._credentials.passkey}{timestamp}".encode()
        ).decode()
        return DarajaStkPushPayload(
            BusinessShortCode=request.short_code,
            Password=password,
            Timestamp=timestamp,
            TransactionType=self._credentials.transaction_type,
            Amount=request.amount,
            PartyA=request.phone,
            PartyB=request.short_code,
            PhoneNumber=request.phone,
            CallBackURL=request.callback_url,
            AccountReference=request.account_reference,
            TransactionDesc=request.description,
        )

    def _parse_acknowledgement(self, response: httpx.Response) -> StkPushAcknowledgement:
        body = _decode_body(response)
        if response.status_code >= 500:
            raise GatewayUnavailableError(f"Gateway returned {response.status_code}")
        if response.status_code == 401:
            self._token = None
            raise GatewayAuthError("Gateway rejected the access token")
        if response.status_code >= 400:
            raise GatewayRejectedError(_describe_error(body, response.status_code), raw_body=body)
        if not isinstance(body, dict):
            raise GatewayRejectedError("Gateway returned a non-JSON acknowledgement", raw_body=body)

        response_code = str(body.get("ResponseCode", ""))
        if response_code != RESPONSE_CODE_ACCEPTED:
            raise GatewayRejectedError(_describe_error(body, response.status_code), raw_body=body)

        checkout_request_id = body.get("CheckoutRequestID") or (
            body.get("ResponseMetadata") or {}
        ).get("CheckoutRequestID")
        if not checkout_request_id:
            raise GatewayRejectedError(
                "Gateway acknowledgement did not contain a CheckoutRequestID", raw_body=body
            )
        return StkPushAcknowledgement(
            merchant_request_id=body.get("MerchantRequestID"),
            checkout_request_id=str(checkout_request_id),
            response_code=response_code,
            response_description=body.get("ResponseDescription"),
            customer_message=body.get("CustomerMessage"),
        )


def _decode_body(response: httpx.Response) -> dict[str, Any] | str:
    try:
        return response.json()
    except ValueError:
        return response.text


def _describe_error(body: dict[str, Any] | str, status_code: int) -> str:
    if isinstance(body, dict):
        for key in ("errorMessage", "ResponseDescription", "CustomerMessage"):
            if body.get(key):
                return str(body[key])
    return f"Gateway returned {status_code}"


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
