from __future__ import annotations

import asyncio
import hashlib
import random
import string
from dataclasses import dataclass
from enum import Enum

from shared.constants import (
    RECEIPT_ITEM_NAME,
    RESULT_CODE_INSUFFICIENT_FUNDS,
    RESULT_CODE_SUCCESS,
    RESULT_CODE_USER_CANCELLED,
)
from shared.contracts import DarajaStkPushPayload

_RESULT_DESCRIPTIONS = {
    RESULT_CODE_SUCCESS: "The service request is processed successfully.",
    RESULT_CODE_USER_CANCELLED: "Request cancelled by user",
    RESULT_CODE_INSUFFICIENT_FUNDS: "The balance is insufficient for the transaction",
}
_RECEIPT_ALPHABET = string.ascii_uppercase + string.digits


class SubmissionVerdict(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class SimulationConfig:
    seed: int
    base_latency_ms: int
    timeout_ms: int
    timeout_rate: float
    unavailable_rate: float
    rejection_rate: float
    user_cancel_rate: float
    insufficient_funds_rate: float
    duplicate_callback_rate: float


@dataclass(frozen=True)
class SimulatedSubmission:
    verdict: SubmissionVerdict
    merchant_request_id: str
    checkout_request_id: str


@dataclass(frozen=True)
class SimulatedResult:
    result_code: int
    result_desc: str
    receipt_number: str | None
    deliveries: int


class GatewaySimulationEngine:
    """Seeded stand-in for Daraja's decision making.

    The same seed and request always produce the same verdict, and the same seed and
    checkout id always produce the same callback result.
    """

    def __init__(self, config: SimulationConfig) -> None:
        self._config = config

    async def submit(self, payload: DarajaStkPushPayload) -> SimulatedSubmission:
        request_key = f"{payload.AccountReference}:{payload.PhoneNumber}:{payload.Timestamp}"
        rng = self._rng("submit", request_key)
        await asyncio.sleep(self._config.base_latency_ms / 1000)
        if rng.random() < self._config.timeout_rate:
            await asyncio.sleep(self._config.timeout_ms / 1000)
            raise TimeoutError("Simulated gateway timeout")
        if rng.random() < self._config.unavailable_rate:
            raise RuntimeError("Simulated gateway outage")

        digest = hashlib.sha256(f"{self._config.seed}:{request_key}".encode()).hexdigest()
        verdict = (
            SubmissionVerdict.REJECTED
            if rng.random() < self._config.rejection_rate
            else SubmissionVerdict.ACCEPTED
        )
        return SimulatedSubmission(
            verdict=verdict,
            merchant_request_id=f"{digest[:5]}-{digest[5:13]}-1",
            checkout_request_id=f"ws_CO_{digest[13:33]}",
        )

    def result_for(self, checkout_request_id: str) -> SimulatedResult:
        rng = self._rng("callback", checkout_request_id)
        roll = rng.random()
        if roll < self._config.user_cancel_rate:
            result_code = RESULT_CODE_USER_CANCELLED
        elif roll < self._config.user_cancel_rate + self._config.insufficient_funds_rate:
            result_code = RESULT_CODE_INSUFFICIENT_FUNDS
        else:
            result_code = RESULT_CODE_SUCCESS
        receipt = None
        if result_code == RESULT_CODE_SUCCESS:
            receipt = "".join(rng.choice(_RECEIPT_ALPHABET) for _ in range(10))
        deliveries = 2 if rng.random() < self._config.duplicate_callback_rate else 1
        return SimulatedResult(
            result_code=result_code,
            result_desc=_RESULT_DESCRIPTIONS[result_code],
            receipt_number=receipt,
            deliveries=deliveries,
        )

    def _rng(self, stage: str, key: str) -> random.Random:
        return random.Random(f"{self._config.seed}:{stage}:{key}")


def build_callback_envelope(
    submission: SimulatedSubmission, result: SimulatedResult, payload: DarajaStkPushPayload
) -> dict[str, object]:
    callback: dict[str, object] = {
        "MerchantRequestID": submission.merchant_request_id,
        "CheckoutRequestID": submission.checkout_request_id,
        "ResultCode": result.result_code,
        "ResultDesc": result.result_desc,
    }
    if result.receipt_number:
        callback["CallbackMetadata"] = {
            "Item": [
                {"Name": "Amount", "Value": payload.Amount},
                {"Name": RECEIPT_ITEM_NAME, "Value": result.receipt_number},
                {"Name": "TransactionDate", "Value": int(payload.Timestamp)},
                {"Name": "PhoneNumber", "Value": int(payload.PhoneNumber)},
            ]
        }
    return {"Body": {"stkCallback": callback}}
