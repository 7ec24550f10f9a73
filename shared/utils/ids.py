from __future__ import annotations

from uuid import UUID, uuid4

from shared.constants import SYNTHETIC_CHECKOUT_PREFIX, SYNTHETIC_MERCHANT_PREFIX


def new_uuid() -> UUID:
    return uuid4()


def synthetic_correlation_ids(intent_id: UUID) -> tuple[str, str]:
    """Return ``(merchant_request_id, checkout_request_id)`` for an intent never sent to Daraja."""
    return f"{SYNTHETIC_MERCHANT_PREFIX}{intent_id}", f"{SYNTHETIC_CHECKOUT_PREFIX}{intent_id}"
