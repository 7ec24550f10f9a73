from __future__ import annotations

import pytest

from shared.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerOpenError,
    CircuitState,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_circuit_breaker_opens_after_threshold() -> None:
    breaker = CircuitBreaker(
        "mpesa", CircuitBreakerConfig(failure_threshold=2, recovery_timeout_seconds=999)
    )

    breaker.on_failure()
    assert breaker.state == CircuitState.CLOSED
    breaker.on_failure()

    assert breaker.state == CircuitState.OPEN
    with pytest.raises(CircuitBreakerOpenError, match="mpesa"):
        breaker.allow_call()


def test_success_resets_the_consecutive_failure_count() -> None:
    breaker = CircuitBreaker("mpesa", CircuitBreakerConfig(failure_threshold=2))

    breaker.on_failure()
    breaker.on_success()
    breaker.on_failure()

    assert breaker.state == CircuitState.CLOSED


def test_circuit_breaker_moves_to_half_open_and_closes_on_success() -> None:
    clock = FakeClock()
    breaker = CircuitBreaker(
        "mpesa", CircuitBreakerConfig(failure_threshold=1, recovery_timeout_seconds=30), clock
    )

    breaker.on_failure()
    assert breaker.state == CircuitState.OPEN

    clock.now += 30
    assert breaker.state == CircuitState.HALF_OPEN
    breaker.allow_call()
    breaker.on_success()
    assert breaker.state == CircuitState.CLOSED


def test_failed_trial_call_reopens_the_circuit() -> None:
    clock = FakeClock()
    breaker = CircuitBreaker(
        "mpesa", CircuitBreakerConfig(failure_threshold=3, recovery_timeout_seconds=10), clock
    )
    for _ in range(3):
        breaker.on_failure()

    clock.now += 10
    breaker.allow_call()
    breaker.on_failure()

    assert breaker.state == CircuitState.OPEN
    with pytest.raises(CircuitBreakerOpenError):
        breaker.allow_call()
