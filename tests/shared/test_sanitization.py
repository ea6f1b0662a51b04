"""Tests for log sanitization"""

import logging

from rbac_console.shared.telemetry.logging import SensitiveDataFilter
from rbac_console.shared.utils.sanitization import (
    MAX_DEPTH,
    REDACTED,
    LogSanitizer,
    sanitize_log_context,
)


def test_redacts_sensitive_keys():
    data = {
        "user_id": "u1",
        "password": "hunter2",
        "access_token": "abc",
        "API_KEY": "xyz",
        "role_name": "editor",
    }

    result = sanitize_log_context(data)

    assert result == {
        "user_id": "u1",
        "password": REDACTED,
        "access_token": REDACTED,
        "API_KEY": REDACTED,
        "role_name": "editor",
    }


def test_redacts_nested_structures():
    data = {"request": {"headers": {"authorization": "Bearer abc"}, "items": [{"secret": "s"}, {"ok": 1}]}}

    result = sanitize_log_context(data)

    assert result["request"]["headers"]["authorization"] == REDACTED
    assert result["request"]["items"] == [{"secret": REDACTED}, {"ok": 1}]


def test_stops_at_max_depth():
    data: dict = {}
    current = data
    for _ in range(MAX_DEPTH + 5):
        current["next"] = {}
        current = current["next"]

    result = sanitize_log_context(data)

    depth = 0
    node = result
    while isinstance(node, dict):
        node = node["next"]
        depth += 1
    assert node == "[Max depth exceeded]"
    assert depth == MAX_DEPTH + 1


def test_masks_bearer_tokens_in_text():
    message = "Calling upstream with Bearer eyJhbGciOiJIUzI1NiJ9.payload.sig"

    assert LogSanitizer.sanitize_text(message) == f"Calling upstream with Bearer {REDACTED}"


def test_does_not_mutate_input():
    data = {"password": "p"}

    sanitize_log_context(data)

    assert data == {"password": "p"}


def test_filter_sanitizes_args_and_context():
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="login %(user)s",
        args=({"password": "p", "user": "u"},),
        exc_info=None,
    )
    record.context = {"token": "t", "role_id": "r1"}

    assert SensitiveDataFilter().filter(record) is True
    # A single mapping argument is unpacked by LogRecord itself
    assert record.args == {"password": REDACTED, "user": "u"}
    assert record.getMessage() == "login u"
    assert record.context == {"token": REDACTED, "role_id": "r1"}
