from __future__ import annotations

from typing import Protocol

from shared.contracts import GatewayMode, StkPushAcknowledgement, StkPushRequest


class PaymentGateway(Protocol):
    mode: GatewayMode

    async def obtain_credential(self) -> str: ...

    async def submit_push_payment(
        self, request: StkPushRequest, access_token: str
    ) -> StkPushAcknowledgement: ...

    async def close(self) -> None: ...
