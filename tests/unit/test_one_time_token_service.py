from __future__ import annotations

import hashlib

import pytest
from redis.exceptions import RedisError
from ticketing_api.services.one_time_token_service import OneTimeTokenService

from shared.constants import one_time_token_key
from tests.helpers import FakeRedis


@pytest.mark.asyncio
async def test_issued_token_is_stored_hashed_with_ttl() -> None:
    redis = FakeRedis()
    service = OneTimeTokenService(redis, ttl_seconds=900)  # type: ignore[arg-type]

    token = await service.issue("payer-1")

    key = one_time_token_key(hashlib.sha256(token.encode()).hexdigest())
    assert redis.values == {key: "payer-1"}
    assert redis.expiries[key] == 900
    assert token not in key


@pytest.mark.asyncio
async def test_token_can_be_consumed_exactly_once() -> None:
    service = OneTimeTokenService(FakeRedis(), ttl_seconds=900)  # type: ignore[arg-type]
    token = await service.issue("payer-1")

    assert await service.consume(token) == "payer-1"
    assert await service.consume(token) is None


@pytest.mark.asyncio
async def test_unknown_or_empty_token_is_rejected() -> None:
    service = OneTimeTokenService(FakeRedis(), ttl_seconds=900)  # type: ignore[arg-type]

    assert await service.consume("") is None
    assert await service.consume("never-issued") is None


@pytest.mark.asyncio
async def test_consume_decodes_byte_values() -> None:
    redis = FakeRedis()
    service = OneTimeTokenService(redis, ttl_seconds=900)  # type: ignore[arg-type]
    token = await service.issue("payer-1")
    key = next(iter(redis.values))
    redis.values[key] = b"payer-1"  # type: ignore[assignment]

    assert await service.consume(token) == "payer-1"


@pytest.mark.asyncio
async def test_redis_errors_propagate() -> None:
    service = OneTimeTokenService(FakeRedis(should_fail=True), ttl_seconds=900)  # type: ignore[arg-type]

    with pytest.raises(RedisError):
        await service.issue("payer-1")
