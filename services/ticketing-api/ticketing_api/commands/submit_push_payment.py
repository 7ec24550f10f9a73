from __future__ import annotations

import time

from shared.contracts import GatewayMode, StkPushAcknowledgement, StkPushRequest
from shared.logging import get_logger
from shared.resilience import CircuitBreaker, CircuitBreakerOpenError, retry_async
from ticketing_api.core.errors import (
    GatewayCredentialsMissingError,
    GatewayError,
    GatewayRejectedError,
    GatewayUnavailableError,
)
from ticketing_api.core.metrics import gateway_errors, gateway_latency
from ticketing_api.gateway.contracts import PaymentGateway

logger = get_logger(__name__)


class SubmitPushPaymentCommand:
    """Credential exchange plus one STK push, behind the gateway circuit breaker.

    Only the credential exchange is retried. The push itself is sent once: a repeat could
    prompt the payer twice for the same intent.
    """

    def __init__(
        self,
        gateway: PaymentGateway,
        breaker: CircuitBreaker,
        *,
        credential_max_attempts: int = 3,
        credential_backoff_seconds: float = 0.2,
    ) -> None:
        self._gateway = gateway
        self._breaker = breaker
        self._credential_max_attempts = credential_max_attempts
        self._credential_backoff_seconds = credential_backoff_seconds

    @property
    def mode(self) -> GatewayMode:
        return self._gateway.mode

    async def execute(self, request: StkPushRequest) -> StkPushAcknowledgement:
        attributes = {"mode": self.mode.value}
        try:
            self._breaker.allow_call()
        except CircuitBreakerOpenError as exc:
            gateway_errors.add(1, {**attributes, "error": "circuit_open"})
            raise GatewayUnavailableError(str(exc)) from exc
        start = time.perf_counter()
        try:
            access_token = await retry_async(
                self._gateway.obtain_credential,
                should_retry=self._is_transient,
                max_attempts=self._credential_max_attempts,
                base_seconds=self._credential_backoff_seconds,
                on_retry=self._log_credential_retry,
            )
            acknowledgement = await self._gateway.submit_push_payment(request, access_token)
        except GatewayRejectedError as exc:
            # The gateway answered; a business rejection says nothing about its health.
            self._breaker.on_success()
            gateway_errors.add(1, {**attributes, "error": exc.category.value})
            raise
        except GatewayError as exc:
            self._breaker.on_failure()
            gateway_errors.add(1, {**attributes, "error": exc.category.value})
            raise
        self._breaker.on_success()
        gateway_latency.record((time.perf_counter() - start) * 1000, attributes)
        return acknowledgement

    def _is_transient(self, exc: Exception) -> bool:
        if isinstance(exc, GatewayCredentialsMissingError):
            return False
        return isinstance(exc, GatewayError) and not isinstance(exc, GatewayRejectedError)

    def _log_credential_retry(self, attempt: int, exc: Exception, delay: float) -> None:
        logger.warning(
            "gateway_credential_retry",
            extra={
                "extra_fields": {
                    "attempt": attempt,
                    "error_type": type(exc).__name__,
                    "delay_seconds": round(delay, 3),
                }
            },
        )
