from __future__ import annotations

ONE_TIME_TOKEN_PREFIX = "otp"


def idempotency_lock_key(payer_id: str, idempotency_key: str) -> str:
    return f"idempotency:{payer_id}:{idempotency_key}"


def one_time_token_key(token_hash: str) -> str:
    return f"{ONE_TIME_TOKEN_PREFIX}:{token_hash}"
