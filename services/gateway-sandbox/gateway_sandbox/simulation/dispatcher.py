from __future__ import annotations

import asyncio

import httpx

from shared.logging import get_logger
from shared.observability import inject_headers

logger = get_logger(__name__)


class CallbackDispatcher:
    """Posts result callbacks back to the merchant, the way Daraja does: late and maybe twice."""

    def __init__(self, http_client: httpx.AsyncClient, delay_ms: int) -> None:
        self._http_client = http_client
        self._delay_ms = delay_ms

    async def deliver(self, callback_url: str, envelope: dict[str, object], deliveries: int) -> None:
        for attempt in range(1, deliveries + 1):
            await asyncio.sleep(self._delay_ms / 1000)
            try:
                response = await self._http_client.post(
                    callback_url, json=envelope, headers=inject_headers()
                )
            except httpx.HTTPError as exc:
                logger.warning(
                    "sandbox_callback_failed",
                    extra={
                        "extra_fields": {
                            "attempt": attempt,
                            "callback_url": callback_url,
                            "error_type": type(exc).__name__,
                        }
                    },
                )
                continue
            logger.info(
                "sandbox_callback_delivered",
                extra={
                    "extra_fields": {
                        "attempt": attempt,
                        "callback_url": callback_url,
                        "status_code": response.status_code,
                    }
                },
            )
