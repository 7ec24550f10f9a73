from __future__ import annotations

import hashlib
import secrets

from redis.asyncio import Redis

from shared.constants import one_time_token_key

_TOKEN_BYTES = 32


class OneTimeTokenService:
    """Single-use expiring tokens (password reset links and the like).

    Only the SHA-256 of a token is stored, so a Redis dump does not leak usable tokens.
    Consumption is a single ``GETDEL``; two concurrent redemptions cannot both succeed.
    """

    def __init__(self, redis_client: Redis, ttl_seconds: int) -> None:
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds

    async def issue(self, subject: str) -> str:
        token = secrets.token_urlsafe(_TOKEN_BYTES)
        await self._redis.set(_storage_key(token), subject, ex=self._ttl_seconds)
        return token

    async def consume(self, token: str) -> str | None:
        if not token:
            return None
        subject = await self._redis.getdel(_storage_key(token))
        if subject is None:
            return None
        if isinstance(subject, bytes):
            return subject.decode()
        return str(subject)


def _storage_key(token: str) -> str:
    return one_time_token_key(hashlib.sha256(token.encode()).hexdigest())
