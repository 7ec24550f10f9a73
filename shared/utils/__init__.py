from shared.utils.http_security import (
    SECURITY_HEADERS,
    apply_security_headers,
    authorization_credentials,
    secrets_match,
)
from shared.utils.ids import new_uuid, synthetic_correlation_ids
from shared.utils.time import day_bounds, gateway_timestamp, utc_now
from shared.utils.validation import (
    mask_msisdn,
    normalize_msisdn,
    optional_header,
    require_header,
)

__all__ = [
    "SECURITY_HEADERS",
    "apply_security_headers",
    "authorization_credentials",
    "day_bounds",
    "gateway_timestamp",
    "mask_msisdn",
    "new_uuid",
    "normalize_msisdn",
    "optional_header",
    "require_header",
    "secrets_match",
    "synthetic_correlation_ids",
    "utc_now",
]
