from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")


def backoff_delay(
    attempt: int, *, base_seconds: float, cap_seconds: float, jitter: float = 0.25
) -> float:
    """Delay before retry number ``attempt`` (1-based): doubled each time, capped, jittered."""
    if base_seconds <= 0:
        return 0.0
    raw = min(cap_seconds, base_seconds * (2 ** max(0, attempt - 1)))
    spread = raw * jitter
    return max(0.0, raw + random.uniform(-spread, spread))


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    should_retry: Callable[[Exception], bool],
    max_attempts: int = 3,
    base_seconds: float = 0.2,
    cap_seconds: float = 5.0,
    on_retry: Callable[[int, Exception, float], None] | None = None,
) -> T:
    """Run ``operation`` until it succeeds, a non-retryable error occurs or attempts run out."""
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:  # noqa: BLE001
            if attempt >= max_attempts or not should_retry(exc):
                raise
            delay = backoff_delay(attempt, base_seconds=base_seconds, cap_seconds=cap_seconds)
            if on_retry is not None:
                on_retry(attempt, exc, delay)
            await asyncio.sleep(delay)
            attempt += 1
