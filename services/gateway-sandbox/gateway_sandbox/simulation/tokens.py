from __future__ import annotations

import secrets
import time
from collections.abc import Callable


class SandboxTokenStore:
    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._expiry_by_token: dict[str, float] = {}

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue(self) -> str:
        now = self._clock()
        self._expiry_by_token = {
            token: expiry for token, expiry in self._expiry_by_token.items() if expiry > now
        }
        token = secrets.token_urlsafe(24)
        self._expiry_by_token[token] = now + self._ttl_seconds
        return token

    def is_valid(self, token: str) -> bool:
        expiry = self._expiry_by_token.get(token)
        return expiry is not None and expiry > self._clock()
