from __future__ import annotations

import pytest
from fastapi import Response

from shared.utils import (
    SECURITY_HEADERS,
    apply_security_headers,
    authorization_credentials,
    secrets_match,
)


def test_apply_security_headers_marks_responses_as_uncacheable() -> None:
    response = Response()
    apply_security_headers(response)

    for key, expected_value in SECURITY_HEADERS.items():
        assert response.headers[key] == expected_value
    assert response.headers["Cache-Control"] == "no-store"


def test_apply_security_headers_keeps_headers_set_by_the_route() -> None:
    response = Response(headers={"Cache-Control": "max-age=60"})
    apply_security_headers(response)

    assert response.headers["Cache-Control"] == "max-age=60"


@pytest.mark.parametrize(
    ("header", "scheme", "expected"),
    [
        ("Bearer abc123", "Bearer", "abc123"),
        ("bearer  abc123 ", "Bearer", "abc123"),
        ("Basic Zm9vOmJhcg==", "Basic", "Zm9vOmJhcg=="),
        ("Basic Zm9vOmJhcg==", "Bearer", None),
        ("Bearer", "Bearer", None),
        (None, "Bearer", None),
    ],
)
def test_authorization_credentials(header: str | None, scheme: str, expected: str | None) -> None:
    assert authorization_credentials(header, scheme) == expected


def test_secrets_match_rejects_missing_values() -> None:
    assert secrets_match("s3cret", "s3cret") is True
    assert secrets_match("s3cret", "other") is False
    assert secrets_match(None, "s3cret") is False
    assert secrets_match("s3cret", None) is False
    assert secrets_match("", "") is False
