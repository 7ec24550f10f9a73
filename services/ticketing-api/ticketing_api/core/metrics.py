from __future__ import annotations

from opentelemetry import metrics

meter = metrics.get_meter("ticketing-api")
request_counter = meter.create_counter("ticketing_api_request_total", description="Total requests")
error_counter = meter.create_counter(
    "ticketing_api_error_total", description="Total error responses"
)
latency_histogram = meter.create_histogram(
    "ticketing_api_request_latency_ms", description="Request latency in ms"
)

intents_created_total = meter.create_counter(
    "payment_intents_created_total", description="Payment intents persisted"
)
submission_outcomes_total = meter.create_counter(
    "payment_submission_outcomes_total", description="STK push submissions by outcome"
)
gateway_latency = meter.create_histogram(
    "mpesa_gateway_latency_ms", description="Daraja call latency in ms"
)
gateway_errors = meter.create_counter("mpesa_gateway_errors_total", description="Daraja errors")
callbacks_total = meter.create_counter(
    "mpesa_callbacks_total", description="Gateway callbacks by reconciliation outcome"
)
idempotency_replay_total = meter.create_counter(
    "idempotency_replay_total", description="Submissions answered from an existing intent"
)
