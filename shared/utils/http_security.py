from __future__ import annotations

import hmac

from starlette.responses import Response

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    # Payment state must never be served from an intermediary cache.
    "Cache-Control": "no-store",
}


def apply_security_headers(response: Response) -> None:
    for header_name, header_value in SECURITY_HEADERS.items():
        response.headers.setdefault(header_name, header_value)


def authorization_credentials(authorization: str | None, scheme: str) -> str | None:
    """Return the credentials of an ``Authorization`` header using ``scheme``, if any."""
    received_scheme, _, credentials = (authorization or "").partition(" ")
    credentials = credentials.strip()
    if received_scheme.lower() != scheme.lower() or not credentials:
        return None
    return credentials


def secrets_match(received: str | None, expected: str | None) -> bool:
    if not received or not expected:
        return False
    return hmac.compare_digest(received.encode(), expected.encode())
