from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from shared.constants import RECEIPT_ITEM_NAME, RESULT_CODE_SUCCESS

_ENVELOPE_KEYS = ("Body", "body")
_CALLBACK_KEYS = ("stkCallback", "StkCallback")
_CHECKOUT_ID_KEYS = ("CheckoutRequestID", "checkoutRequestID", "CheckoutRequestId")
_MERCHANT_ID_KEYS = ("MerchantRequestID", "merchantRequestID", "MerchantRequestId")


@dataclass(frozen=True)
class CallbackResult:
    checkout_request_id: str | None
    merchant_request_id: str | None
    result_code: int
    result_desc: str | None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.result_code == RESULT_CODE_SUCCESS

    @property
    def receipt_ref(self) -> str | None:
        value = self.metadata.get(RECEIPT_ITEM_NAME)
        return str(value) if value not in (None, "") else None

    @property
    def correlation_ids(self) -> tuple[str, ...]:
        return tuple(
            value for value in (self.checkout_request_id, self.merchant_request_id) if value
        )


def normalize_callback(envelope: Any) -> CallbackResult | None:
    """Map the callback envelope variants Daraja has shipped onto one ``CallbackResult``.

    Returns ``None`` when the payload has no recognisable result block, no correlation id,
    or no usable ``ResultCode``.
    """
    callback = _extract_callback(envelope)
    if callback is None:
        return None
    result_code = _as_result_code(callback.get("ResultCode"))
    if result_code is None:
        return None

    response_metadata = callback.get("ResponseMetadata")
    if not isinstance(response_metadata, Mapping):
        response_metadata = {}
    checkout_request_id = _first_present(callback, _CHECKOUT_ID_KEYS) or _first_present(
        response_metadata, _CHECKOUT_ID_KEYS
    )
    merchant_request_id = _first_present(callback, _MERCHANT_ID_KEYS) or _first_present(
        response_metadata, _MERCHANT_ID_KEYS
    )
    if not checkout_request_id and not merchant_request_id:
        return None

    result_desc = callback.get("ResultDesc")
    return CallbackResult(
        checkout_request_id=checkout_request_id,
        merchant_request_id=merchant_request_id,
        result_code=result_code,
        result_desc=str(result_desc) if result_desc is not None else None,
        metadata=_flatten_items(callback.get("CallbackMetadata")),
    )


def _extract_callback(envelope: Any) -> Mapping[str, Any] | None:
    if not isinstance(envelope, Mapping):
        return None
    for envelope_key in _ENVELOPE_KEYS:
        body = envelope.get(envelope_key)
        if isinstance(body, Mapping):
            callback = _first_mapping(body, _CALLBACK_KEYS)
            if callback is not None:
                return callback
    return _first_mapping(envelope, _CALLBACK_KEYS)


def _first_mapping(source: Mapping[str, Any], keys: tuple[str, ...]) -> Mapping[str, Any] | None:
    for key in keys:
        value = source.get(key)
        if isinstance(value, Mapping):
            return value
    return None


def _first_present(source: Mapping[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = source.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def _as_result_code(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def _flatten_items(callback_metadata: Any) -> dict[str, Any]:
    if not isinstance(callback_metadata, Mapping):
        return {}
    items = callback_metadata.get("Item")
    if not isinstance(items, list):
        return {}
    flattened: dict[str, Any] = {}
    for item in items:
        if isinstance(item, Mapping) and item.get("Name"):
            flattened[str(item["Name"])] = item.get("Value")
    return flattened
