from __future__ import annotations

from shared.contracts.enums import MpesaEnvironment

OAUTH_PATH = "/oauth/v1/generate"
OAUTH_GRANT_TYPE = "client_credentials"
STK_PUSH_PATH = "/mpesa/stkpush/v1/processrequest"
CALLBACK_PATH = "/payments/mpesa/callback"

TRANSACTION_TYPE_PAYBILL = "CustomerPayBillOnline"
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
GATEWAY_TIMEZONE = "Africa/Nairobi"

RESPONSE_CODE_ACCEPTED = "0"
RESULT_CODE_SUCCESS = 0
RESULT_CODE_INSUFFICIENT_FUNDS = 1
RESULT_CODE_USER_CANCELLED = 1032

RECEIPT_ITEM_NAME = "MpesaReceiptNumber"
ACCOUNT_REFERENCE_PREFIX = "EVT-"
DIRECT_PAYMENT_DESCRIPTION = "Direct Payment"

SYNTHETIC_MERCHANT_PREFIX = "SIM-MERCHANT-"
SYNTHETIC_CHECKOUT_PREFIX = "SIM-CHECKOUT-"

_BASE_URLS = {
    MpesaEnvironment.SANDBOX: "https://sandbox.safaricom.co.ke",
    MpesaEnvironment.PRODUCTION: "https://api.safaricom.co.ke",
}


def base_url_for_environment(environment: MpesaEnvironment) -> str:
    return _BASE_URLS[environment]
