from __future__ import annotations

from redis.asyncio import Redis
from redis.exceptions import RedisError

from shared.constants import idempotency_lock_key
from shared.logging import get_logger

logger = get_logger(__name__)


class IdempotencyService:
    def __init__(self, redis_client: Redis, ttl_seconds: int) -> None:
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds

    async def acquire(self, payer_id: str, idempotency_key: str) -> bool:
        scoped = idempotency_lock_key(payer_id, idempotency_key)
        try:
            acquired = await self._redis.set(scoped, "1", ex=self._ttl_seconds, nx=True)
            return bool(acquired)
        except RedisError as exc:
            logger.warning(
                "idempotency_redis_unavailable",
                extra={
                    "extra_fields": {
                        "error_type": type(exc).__name__,
                        "idempotency_key": idempotency_key,
                    }
                },
            )
            return True

    async def release(self, payer_id: str, idempotency_key: str) -> None:
        try:
            await self._redis.delete(idempotency_lock_key(payer_id, idempotency_key))
        except RedisError as exc:
            logger.warning(
                "idempotency_release_failed",
                extra={"extra_fields": {"error_type": type(exc).__name__}},
            )
