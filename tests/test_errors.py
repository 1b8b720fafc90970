import pytest

from siteforge.core.errors import (
    BackendCallError,
    FailureKind,
    classify_failure,
    is_retryable,
    user_message,
)


@pytest.mark.parametrize("status, message, expected", [
    (401, "Unauthorized", FailureKind.INVALID_CREDENTIALS),
    (403, "Forbidden", FailureKind.INVALID_CREDENTIALS),
    (None, "Incorrect API key provided", FailureKind.INVALID_CREDENTIALS),
    (429, "Rate limit reached for requests", FailureKind.RATE_LIMITED),
    (429, "You exceeded your current quota, please check your plan and billing details", FailureKind.QUOTA_EXCEEDED),
    (None, "insufficient_quota", FailureKind.QUOTA_EXCEEDED),
    (408, "Request Timeout", FailureKind.TIMEOUT),
    (504, "Gateway Timeout", FailureKind.TIMEOUT),
    (None, "The read operation timed out", FailureKind.TIMEOUT),
    (500, "Internal server error", FailureKind.NETWORK_ERROR),
    (None, "Connection reset by peer", FailureKind.NETWORK_ERROR),
])
def test_classify_failure(status, message, expected):
    assert classify_failure(status, message) == expected


def test_retryability():
    assert is_retryable(FailureKind.NETWORK_ERROR)
    assert is_retryable(FailureKind.TIMEOUT)
    assert is_retryable(FailureKind.MALFORMED_RESPONSE)
    assert not is_retryable(FailureKind.RATE_LIMITED)
    assert not is_retryable(FailureKind.QUOTA_EXCEEDED)
    assert not is_retryable(FailureKind.INVALID_CREDENTIALS)


def test_backend_call_error_kind():
    error = BackendCallError(429, "Too many requests")
    assert error.kind == FailureKind.RATE_LIMITED
    assert "429" in str(error)
    assert str(BackendCallError(None, "boom")) == "boom"


def test_user_message_includes_detail():
    message = user_message(FailureKind.RATE_LIMITED, "HTTP 429")
    assert message.startswith("Rate limit reached")
    assert message.endswith("(HTTP 429)")
    assert "(" not in user_message(FailureKind.TIMEOUT)
