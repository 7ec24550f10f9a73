from __future__ import annotations

from typing import Any

from shared.constants import RESULT_CODE_SUCCESS


def assert_error_payload(
    response: Any,
    *,
    expected_status: int,
    expected_category: str,
) -> None:
    payload = response.json()
    assert response.status_code == expected_status
    assert payload["error"]["category"] == expected_category
    assert isinstance(payload["error"]["message"], str)


def assert_callback_acknowledged(response: Any) -> None:
    """The gateway treats anything but a 200 with ResultCode 0 as a reason to redeliver."""
    assert response.status_code == 200
    assert response.json() == {"ResultCode": RESULT_CODE_SUCCESS, "ResultDesc": "Accepted"}
