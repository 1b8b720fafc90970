"""
Failure taxonomy and exceptions for SiteForge
"""

import re
from enum import Enum
from typing import Optional


class FailureKind(Enum):
    """Classified failure of a backend call or a chunk"""
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_CREDENTIALS = "invalid_credentials"
    MALFORMED_RESPONSE = "malformed_response"
    CHUNK_FAILURE = "chunk_failure"


NON_RETRYABLE_KINDS = frozenset({
    FailureKind.RATE_LIMITED,
    FailureKind.QUOTA_EXCEEDED,
    FailureKind.INVALID_CREDENTIALS,
})

_AUTH_PATTERNS = [
    "invalid api key", "incorrect api key", "api key not", "unauthorized",
    "authentication", "forbidden", "invalid_api_key", "permission denied",
]
_QUOTA_PATTERNS = ["quota", "insufficient_quota", "billing", "exceeded your current"]
_RATE_PATTERNS = ["rate limit", "rate_limit", "too many requests", "throttl"]
_TIMEOUT_PATTERNS = ["timeout", "timed out"]

_USER_MESSAGES = {
    FailureKind.NETWORK_ERROR: "Could not reach the generation service. Check your connection and try again.",
    FailureKind.TIMEOUT: "The generation service took too long to respond. Try again or simplify the request.",
    FailureKind.RATE_LIMITED: "Rate limit reached on the generation service. Wait a minute before sending another request.",
    FailureKind.QUOTA_EXCEEDED: "The API quota for this key is exhausted. Check your plan and billing details.",
    FailureKind.INVALID_CREDENTIALS: "The API key is missing or invalid. Set OPENAI_API_KEY to a valid key.",
    FailureKind.MALFORMED_RESPONSE: "The generation service returned an unusable response. Try again.",
    FailureKind.CHUNK_FAILURE: "Part of the project could not be generated.",
}


def classify_failure(status: Optional[int], message: str) -> FailureKind:
    """Derive a failure kind from an HTTP-style status and an error message"""
    text = (message or "").lower()

    if status in (401, 403) or any(p in text for p in _AUTH_PATTERNS):
        return FailureKind.INVALID_CREDENTIALS

    if status == 429 or any(p in text for p in _RATE_PATTERNS) or any(p in text for p in _QUOTA_PATTERNS):
        if any(p in text for p in _QUOTA_PATTERNS):
            return FailureKind.QUOTA_EXCEEDED
        return FailureKind.RATE_LIMITED

    if status in (408, 504) or any(re.search(rf"\b{p}\b", text) for p in _TIMEOUT_PATTERNS):
        return FailureKind.TIMEOUT

    return FailureKind.NETWORK_ERROR


def is_retryable(kind: FailureKind) -> bool:
    return kind not in NON_RETRYABLE_KINDS


def user_message(kind: FailureKind, detail: Optional[str] = None) -> str:
    """User-actionable message for a failure kind, with optional detail appended"""
    message = _USER_MESSAGES[kind]
    if detail:
        return f"{message} ({detail})"
    return message


class SiteForgeError(Exception):
    """Base class for SiteForge errors"""


class ConfigurationError(SiteForgeError):
    """Invalid or incomplete configuration"""


class BackendCallError(SiteForgeError):
    """Raised by a completion backend when a call fails.

    ``status`` is the HTTP status when the backend answered, ``None`` for
    transport-level failures.
    """

    def __init__(self, status: Optional[int], message: str):
        self.status = status
        self.message = message
        super().__init__(f"HTTP {status}: {message}" if status else message)

    @property
    def kind(self) -> FailureKind:
        return classify_failure(self.status, self.message)


class ProjectNotFoundError(SiteForgeError):
    """Requested project does not exist in the store"""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")
