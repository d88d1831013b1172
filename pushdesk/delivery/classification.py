"""Provider error classification.

This is the only place that interprets provider error codes. Everything
downstream works with FailureReason.
"""

from typing import Optional, Sequence

from .models import EndpointResponse, FailureReason

# The endpoint itself is dead or malformed: retire it.
PERMANENT_ERROR_CODES = frozenset(
    {
        "unregistered",
        "registration-token-not-registered",
        "invalid-registration-token",
        "invalid-argument",
        "sender-id-mismatch",
    }
)

# Also raised for a bad message, once per endpoint.
PAYLOAD_ERROR_CODES = frozenset({"invalid-argument"})

# The attempt failed but says nothing about the endpoint. Listed for
# documentation; unknown codes are treated the same way.
TRANSIENT_ERROR_CODES = frozenset(
    {
        "unavailable",
        "internal",
        "quota-exceeded",
        "third-party-auth-error",
        "timeout",
        "cancelled",
        "transport",
        "missing-response",
        "unknown",
    }
)


def normalize_error_code(code: Optional[str]) -> str:
    """Normalise provider spellings to one form.

    Strips the "messaging/" prefix used by the JavaScript SDK and converts
    enum-style names such as "NOT_FOUND" to lowercase-hyphenated form.

    Examples:
        >>> normalize_error_code("messaging/registration-token-not-registered")
        'registration-token-not-registered'
        >>> normalize_error_code("INVALID_ARGUMENT")
        'invalid-argument'
    """
    if not code or not code.strip():
        return "unknown"
    normalized = code.strip().lower()
    if normalized.startswith("messaging/"):
        normalized = normalized[len("messaging/") :]
    return normalized.replace("_", "-")


def is_payload_rejection(responses: Sequence[EndpointResponse]) -> bool:
    """True when every response of one call failed with a payload-level code.

    The provider reports a bad message (too large, malformed field) on each
    endpoint separately, so an invalid-argument only points at the endpoint
    when some other endpoint in the same call was delivered or failed
    differently.
    """
    if not responses:
        return False
    return all(
        not response.success and normalize_error_code(response.error_code) in PAYLOAD_ERROR_CODES
        for response in responses
    )


def classify_error_code(code: Optional[str], payload_rejected: bool = False) -> FailureReason:
    """Map a provider error code to a FailureReason.

    Only known endpoint-invalidating codes are permanent. Anything else,
    including codes never seen before, is transient. When payload_rejected
    is set, payload-level codes are transient too.
    """
    normalized = normalize_error_code(code)
    if payload_rejected and normalized in PAYLOAD_ERROR_CODES:
        return FailureReason.TRANSIENT
    if normalized in PERMANENT_ERROR_CODES:
        return FailureReason.PERMANENT_ENDPOINT
    return FailureReason.TRANSIENT
