from __future__ import annotations

from enum import Enum


class IntentState(str, Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not IntentState.PENDING


class GatewayMode(str, Enum):
    LIVE = "live"
    SIMULATED = "simulated"


class MpesaEnvironment(str, Enum):
    SANDBOX = "sandbox"
    PRODUCTION = "production"


class ReportGrouping(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class SubmissionOutcome(str, Enum):
    SUBMITTED = "submitted"
    SIMULATED = "simulated"
    DEGRADED = "degraded"
    REJECTED = "rejected"
    UNREACHABLE = "unreachable"
    REPLAYED = "replayed"


class CallbackOutcome(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    UNMATCHED = "unmatched"
    IGNORED = "ignored"
    ERROR = "error"


class FailureReason(str, Enum):
    GATEWAY_UNREACHABLE = "gateway_unreachable"
    GATEWAY_REJECTED = "gateway_rejected"


class ErrorCategory(str, Enum):
    INVALID_REQUEST = "invalid_request"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    IDEMPOTENCY_CONFLICT = "idempotency_conflict"
    GATEWAY_AUTH = "gateway_auth"
    GATEWAY_UNAVAILABLE = "gateway_unavailable"
    GATEWAY_TIMEOUT = "gateway_timeout"
    GATEWAY_REJECTED = "gateway_rejected"
    INTERNAL = "internal_error"
