from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class CircuitBreakerOpenError(RuntimeError):
    pass


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitBreakerConfig:
    failure_threshold: int = 5
    recovery_timeout_seconds: float = 30.0


class CircuitBreaker:
    """Consecutive-failure breaker; one trial call is let through after the recovery window."""

    def __init__(
        self,
        name: str,
        config: CircuitBreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._config = config or CircuitBreakerConfig()
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at: float | None = None

    @property
    def state(self) -> CircuitState:
        if self._state == CircuitState.OPEN and self._recovery_elapsed():
            return CircuitState.HALF_OPEN
        return self._state

    def allow_call(self) -> None:
        if self._state != CircuitState.OPEN:
            return
        if not self._recovery_elapsed():
            raise CircuitBreakerOpenError(f"Circuit '{self.name}' is open")
        self._state = CircuitState.HALF_OPEN

    def on_success(self) -> None:
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = None

    def on_failure(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            self._trip_open()
            return
        self._failures += 1
        if self._failures >= self._config.failure_threshold:
            self._trip_open()

    def _trip_open(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()

    def _recovery_elapsed(self) -> bool:
        if self._opened_at is None:
            return False
        return self._clock() - self._opened_at >= self._config.recovery_timeout_seconds
