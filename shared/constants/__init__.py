from shared.constants.gateway import (
    ACCOUNT_REFERENCE_PREFIX,
    CALLBACK_PATH,
    DIRECT_PAYMENT_DESCRIPTION,
    GATEWAY_TIMEZONE,
    OAUTH_GRANT_TYPE,
    OAUTH_PATH,
    RECEIPT_ITEM_NAME,
    RESPONSE_CODE_ACCEPTED,
    RESULT_CODE_INSUFFICIENT_FUNDS,
    RESULT_CODE_SUCCESS,
    RESULT_CODE_USER_CANCELLED,
    STK_PUSH_PATH,
    SYNTHETIC_CHECKOUT_PREFIX,
    SYNTHETIC_MERCHANT_PREFIX,
    TIMESTAMP_FORMAT,
    TRANSACTION_TYPE_PAYBILL,
    base_url_for_environment,
)
from shared.constants.limits import MAX_TRANSACTION_AMOUNT
from shared.constants.redis_keys import idempotency_lock_key, one_time_token_key

__all__ = [
    "ACCOUNT_REFERENCE_PREFIX",
    "CALLBACK_PATH",
    "DIRECT_PAYMENT_DESCRIPTION",
    "GATEWAY_TIMEZONE",
    "MAX_TRANSACTION_AMOUNT",
    "OAUTH_GRANT_TYPE",
    "OAUTH_PATH",
    "RECEIPT_ITEM_NAME",
    "RESPONSE_CODE_ACCEPTED",
    "RESULT_CODE_INSUFFICIENT_FUNDS",
    "RESULT_CODE_SUCCESS",
    "RESULT_CODE_USER_CANCELLED",
    "STK_PUSH_PATH",
    "SYNTHETIC_CHECKOUT_PREFIX",
    "SYNTHETIC_MERCHANT_PREFIX",
    "TIMESTAMP_FORMAT",
    "TRANSACTION_TYPE_PAYBILL",
    "base_url_for_environment",
    "idempotency_lock_key",
    "one_time_token_key",
]
