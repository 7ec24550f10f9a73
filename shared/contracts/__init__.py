from shared.contracts.dto import (
    CallbackAcknowledgement,
    DarajaErrorBody,
    DarajaStkPushPayload,
    IntentStatusResponse,
    PaymentSubmissionResponse,
    SalesBucket,
    SalesReportQuery,
    SalesReportResponse,
    StatusSummaryResponse,
    StkPushAcknowledgement,
    StkPushRequest,
    SubmitPaymentRequest,
)
from shared.contracts.enums import (
    CallbackOutcome,
    ErrorCategory,
    FailureReason,
    GatewayMode,
    IntentState,
    MpesaEnvironment,
    ReportGrouping,
    SubmissionOutcome,
)
from shared.contracts.persistence import Base, EventORM, PaymentIntentORM

__all__ = [
    "Base",
    "CallbackAcknowledgement",
    "CallbackOutcome",
    "DarajaErrorBody",
    "DarajaStkPushPayload",
    "ErrorCategory",
    "EventORM",
    "FailureReason",
    "GatewayMode",
    "IntentState",
    "IntentStatusResponse",
    "MpesaEnvironment",
    "PaymentIntentORM",
    "PaymentSubmissionResponse",
    "ReportGrouping",
    "SalesBucket",
    "SalesReportQuery",
    "SalesReportResponse",
    "StatusSummaryResponse",
    "StkPushAcknowledgement",
    "StkPushRequest",
    "SubmissionOutcome",
    "SubmitPaymentRequest",
]
