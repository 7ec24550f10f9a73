from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from shared.contracts import ErrorCategory


@dataclass
class AppError(Exception):
    category: ErrorCategory
    message: str
    http_status: int = 400


class InvalidRequestError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorCategory.INVALID_REQUEST, message, http_status=400)


class AuthenticationError(AppError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(ErrorCategory.UNAUTHORIZED, message, http_status=401)


class NotFoundError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorCategory.NOT_FOUND, message, http_status=404)


class IdempotencyConflictError(AppError):
    def __init__(self, message: str = "A payment with this Idempotency-Key is in progress") -> None:
        super().__init__(ErrorCategory.IDEMPOTENCY_CONFLICT, message, http_status=409)


class GatewayUnavailableAppError(AppError):
    def __init__(self, message: str = "Could not reach payment provider") -> None:
        super().__init__(ErrorCategory.GATEWAY_UNAVAILABLE, message, http_status=503)


@dataclass
class GatewayError(Exception):
    """Failure talking to the payment gateway; never rendered to API callers directly."""

    category: ErrorCategory
    message: str


class GatewayAuthError(GatewayError):
    def __init__(self, message: str = "Gateway rejected the credential handshake") -> None:
        super().__init__(ErrorCategory.GATEWAY_AUTH, message)


class GatewayCredentialsMissingError(GatewayAuthError):
    def __init__(self, message: str = "M-Pesa credentials are not configured") -> None:
        super().__init__(message)


class GatewayUnavailableError(GatewayError):
    def __init__(
        self,
        message: str = "Gateway unavailable",
        *,
        category: ErrorCategory = ErrorCategory.GATEWAY_UNAVAILABLE,
    ) -> None:
        super().__init__(category, message)


class GatewayTimeoutError(GatewayUnavailableError):
    def __init__(self, message: str = "Gateway timeout") -> None:
        super().__init__(message, category=ErrorCategory.GATEWAY_TIMEOUT)


class GatewayRejectedError(GatewayError):
    def __init__(self, message: str, *, raw_body: dict[str, Any] | str | None = None) -> None:
        self.raw_body = raw_body
        super().__init__(ErrorCategory.GATEWAY_REJECTED, message)
