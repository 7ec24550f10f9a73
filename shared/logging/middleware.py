from __future__ import annotations

from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from shared.logging.fields import IDEMPOTENCY_KEY, PAYER_ID, TRACE_ID
from shared.logging.logger import clear_correlation_context, set_correlation_context
from shared.observability.propagation import current_trace_id


class CorrelationMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        set_correlation_context(
            {
                TRACE_ID: current_trace_id() or "",
                IDEMPOTENCY_KEY: request.headers.get("Idempotency-Key", ""),
                PAYER_ID: request.headers.get("X-Payer-Id", ""),
            }
        )
        try:
            return await call_next(request)
        finally:
            clear_correlation_context()
