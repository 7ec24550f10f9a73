from shared.logging.fields import (
    CORRELATION_ID,
    GATEWAY_MODE,
    IDEMPOTENCY_KEY,
    INTENT_ID,
    OUTCOME,
    PAYER_ID,
    RESOURCE_REF,
    RESULT_CODE,
    STATE,
    TRACE_ID,
)
from shared.logging.logger import (
    clear_correlation_context,
    configure_logging,
    get_correlation_context,
    get_logger,
    set_correlation_context,
    update_correlation_context,
)
from shared.logging.middleware import CorrelationMiddleware

__all__ = [
    "CORRELATION_ID",
    "CorrelationMiddleware",
    "GATEWAY_MODE",
    "IDEMPOTENCY_KEY",
    "INTENT_ID",
    "OUTCOME",
    "PAYER_ID",
    "RESOURCE_REF",
    "RESULT_CODE",
    "STATE",
    "TRACE_ID",
    "clear_correlation_context",
    "configure_logging",
    "get_correlation_context",
    "get_logger",
    "set_correlation_context",
    "update_correlation_context",
]
