from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="SANDBOX_", extra="ignore"
    )

    service_name: str = "gateway-sandbox"
    log_level: str = "INFO"

    consumer_key: str = "sandbox-consumer-key"
    consumer_secret: str = "sandbox-consumer-secret"
    passkey: str | None = None
    access_token_ttl_seconds: int = Field(default=3599, ge=60)

    random_seed: int = 42
    base_latency_ms: int = Field(default=40, ge=0)
    timeout_ms: int = Field(default=1200, ge=1)
    timeout_rate: float = Field(default=0.02, ge=0.0, le=1.0)
    unavailable_rate: float = Field(default=0.03, ge=0.0, le=1.0)
    rejection_rate: float = Field(default=0.05, ge=0.0, le=1.0)

    callback_delay_ms: int = Field(default=500, ge=0)
    callback_timeout_seconds: float = Field(default=5.0, gt=0)
    user_cancel_rate: float = Field(default=0.10, ge=0.0, le=1.0)
    insufficient_funds_rate: float = Field(default=0.05, ge=0.0, le=1.0)
    duplicate_callback_rate: float = Field(default=0.05, ge=0.0, le=1.0)


@lru_cache
def get_settings() -> Settings:
    return Settings()
