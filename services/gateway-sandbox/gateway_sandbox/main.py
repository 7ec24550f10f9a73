from __future__ import annotations

import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from opentelemetry import metrics, trace
from starlette.responses import Response

from gateway_sandbox.api.routes_gateway import router as gateway_router
from gateway_sandbox.core.config import get_settings
from gateway_sandbox.simulation.dispatcher import CallbackDispatcher
from gateway_sandbox.simulation.engine import GatewaySimulationEngine, SimulationConfig
from gateway_sandbox.simulation.tokens import SandboxTokenStore
from shared.logging import CorrelationMiddleware, configure_logging
from shared.observability import configure_otel, current_trace_id
from shared.utils import apply_security_headers

meter = metrics.get_meter("gateway-sandbox")
request_counter = meter.create_counter("gateway_sandbox_request_total")
latency = meter.create_histogram("gateway_sandbox_latency_ms")
error_counter = meter.create_counter("gateway_sandbox_error_total")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging(settings.log_level)
    configure_otel(settings.service_name)
    http_client = httpx.AsyncClient(timeout=settings.callback_timeout_seconds)

    app.state.settings = settings
    app.state.engine = GatewaySimulationEngine(
        SimulationConfig(
            seed=settings.random_seed,
            base_latency_ms=settings.base_latency_ms,
            timeout_ms=settings.timeout_ms,
            timeout_rate=settings.timeout_rate,
            unavailable_rate=settings.unavailable_rate,
            rejection_rate=settings.rejection_rate,
            user_cancel_rate=settings.user_cancel_rate,
            insufficient_funds_rate=settings.insufficient_funds_rate,
            duplicate_callback_rate=settings.duplicate_callback_rate,
        )
    )
    app.state.token_store = SandboxTokenStore(settings.access_token_ttl_seconds)
    app.state.dispatcher = CallbackDispatcher(http_client, settings.callback_delay_ms)
    yield
    await http_client.aclose()


app = FastAPI(title="gateway-sandbox", version="0.1.0", lifespan=lifespan)
app.add_middleware(CorrelationMiddleware)
app.include_router(gateway_router)


@app.middleware("http")
async def telemetry_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    tracer = trace.get_tracer("gateway-sandbox")
    start = time.perf_counter()
    request_counter.add(1, {"path": request.url.path, "method": request.method})
    with tracer.start_as_current_span(f"{request.method} {request.url.path}"):
        response = await call_next(request)
    elapsed = (time.perf_counter() - start) * 1000
    latency.record(elapsed, {"path": request.url.path})
    if response.status_code >= 400:
        error_counter.add(1, {"status_code": response.status_code})
    response.headers["X-Trace-Id"] = current_trace_id()
    apply_security_headers(response)
    return response


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
