from __future__ import annotations

TRACE_ID = "trace_id"
IDEMPOTENCY_KEY = "idempotency_key"
PAYER_ID = "payer_id"
INTENT_ID = "intent_id"
STATE = "state"
CORRELATION_ID = "correlation_id"
RESOURCE_REF = "resource_ref"
GATEWAY_MODE = "gateway_mode"
RESULT_CODE = "result_code"
OUTCOME = "outcome"
