from __future__ import annotations

from shared.contracts import GatewayMode, StkPushAcknowledgement, StkPushRequest
from shared.utils import synthetic_correlation_ids

_SIMULATED_TOKEN = "simulated-access-token"


class SimulatedGatewayClient:
    """Gateway stand-in that never leaves the process.

    Intents submitted through it stay PENDING under synthetic correlation ids, so a test
    harness (or an operator) can reconcile them later by posting callbacks for those ids.
    """

    mode = GatewayMode.SIMULATED

    async def obtain_credential(self) -> str:
        return _SIMULATED_TOKEN

    async def submit_push_payment(
        self, request: StkPushRequest, access_token: str  # noqa: ARG002
    ) -> StkPushAcknowledgement:
        merchant_request_id, checkout_request_id = synthetic_correlation_ids(request.intent_id)
        return StkPushAcknowledgement(
            merchant_request_id=merchant_request_id,
            checkout_request_id=checkout_request_id,
            response_description="Simulated STK push created",
            customer_message="Simulated request accepted for processing",
        )

    async def close(self) -> None:
        return None
