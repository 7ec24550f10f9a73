from __future__ import annotations

import re
from typing import Any

_MAX_HEADER_LENGTH = 128
_NON_DIGITS = re.compile(r"\D")
_CANONICAL_MSISDN = re.compile(r"^2547\d{8}$")
_COUNTRY_CODE = "254"
_MIN_MASKABLE_LENGTH = 10


def _normalize_text(value: Any, *, field_name: str) -> str:
    if value is None or not isinstance(value, str):
        raise ValueError(f"Missing required {field_name}")
    normalized = value.strip()
    if not normalized:
        raise ValueError(f"Missing required {field_name}")
    return normalized


def require_header(headers: dict[str, Any], key: str) -> str:
    value = _normalize_text(headers.get(key), field_name=f"header: {key}")
    if len(value) > _MAX_HEADER_LENGTH:
        raise ValueError(f"Header too long: {key}")
    return value


def optional_header(headers: dict[str, Any], key: str) -> str | None:
    if not headers.get(key):
        return None
    return require_header(headers, key)


def normalize_msisdn(raw: str) -> str:
    """Rewrite a Kenyan mobile number into the ``2547XXXXXXXX`` form Daraja expects.

    Accepts local (``07...``), short (``7...``) and international (``254...`` or
    ``+254...``) spellings; separators are ignored. Raises ``ValueError`` when the
    result is not a Safaricom-style mobile number.
    """
    digits = _NON_DIGITS.sub("", _normalize_text(raw, field_name="phone"))
    if digits.startswith("07"):
        digits = _COUNTRY_CODE + digits[1:]
    elif digits.startswith("7"):
        digits = _COUNTRY_CODE + digits
    if not _CANONICAL_MSISDN.match(digits):
        raise ValueError("Invalid phone format (use 2547XXXXXXXX)")
    return digits


def mask_msisdn(value: str) -> str:
    # Anything shorter than a national number would leak most of its digits.
    if len(value) < _MIN_MASKABLE_LENGTH:
        return "*" * len(value)
    return f"{value[:6]}{'*' * (len(value) - 9)}{value[-3:]}"
