from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from shared.constants.limits import MAX_TRANSACTION_AMOUNT
from shared.contracts.enums import IntentState, ReportGrouping


class SubmitPaymentRequest(BaseModel):
    event_id: str | None = Field(
        default=None, max_length=64, validation_alias=AliasChoices("event_id", "eventId")
    )
    phone: str = Field(min_length=1, max_length=32)
    amount: Decimal | None = Field(default=None, le=MAX_TRANSACTION_AMOUNT)

    @field_validator("event_id")
    @classmethod
    def blank_event_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


class PaymentSubmissionResponse(BaseModel):
    intent_id: UUID
    status: IntentState
    correlation_id: str | None = None
    merchant_request_id: str | None = None
    simulated: bool = False
    message: str
    trace_id: str = ""


class IntentStatusResponse(BaseModel):
    intent_id: UUID
    state: IntentState
    amount: int
    payer_phone: str
    resource_ref: str | None = None
    correlation_id: str | None = None
    receipt_ref: str | None = None
    simulated: bool = False
    failure_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class CallbackAcknowledgement(BaseModel):
    result_code: int = Field(default=0, alias="ResultCode")
    result_desc: str = Field(default="Accepted", alias="ResultDesc")

    model_config = ConfigDict(populate_by_name=True)


class StkPushRequest(BaseModel):
    intent_id: UUID
    amount: int = Field(gt=0, le=MAX_TRANSACTION_AMOUNT)
    phone: str = Field(pattern=r"^2547\d{8}$")
    short_code: str
    callback_url: str
    account_reference: str = Field(max_length=32)
    description: str = Field(max_length=64)


class StkPushAcknowledgement(BaseModel):
    merchant_request_id: str | None = None
    checkout_request_id: str
    response_code: str = "0"
    response_description: str | None = None
    customer_message: str | None = None


class SalesReportQuery(BaseModel):
    start: date
    end: date
    group_by: ReportGrouping = ReportGrouping.MONTH

    @model_validator(mode="after")
    def check_range(self) -> SalesReportQuery:
        if self.start > self.end:
            raise ValueError("from must not be after to")
        return self


class SalesBucket(BaseModel):
    period: date
    total_amount: int
    payments: int


class SalesReportResponse(BaseModel):
    start: date
    end: date
    group_by: ReportGrouping
    data: list[SalesBucket]


class StatusSummaryResponse(BaseModel):
    counts: dict[IntentState, int]
    total: int


class DarajaStkPushPayload(BaseModel):
    BusinessShortCode: str
    Password: str
    Timestamp: str = Field(pattern=r"^\d{14}$")
    TransactionType: str
    Amount: int = Field(gt=0)
    PartyA: str
    PartyB: str
    PhoneNumber: str
    CallBackURL: str
    AccountReference: str
    TransactionDesc: str

    model_config = ConfigDict(extra="ignore")


class DarajaErrorBody(BaseModel):
    requestId: str | None = None
    errorCode: str
    errorMessage: str

    model_config = ConfigDict(extra="allow")
