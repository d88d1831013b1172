"""Exceptions for the delivery pipeline.

Only InvalidRequestError (and its subclass) ever aborts a delivery request.
Provider errors are caught per batch and turned into per-recipient outcomes.
"""

from typing import Optional


class DeliveryError(Exception):
    """Base exception for delivery-related errors."""

    pass


class InvalidRequestError(DeliveryError):
    """Raised when a request is rejected before any dispatch.

    Examples: blank title or body, empty explicit recipient list, malformed
    target string. The caller can fix the input and resubmit.
    """

    pass


class InvalidTargetError(InvalidRequestError):
    """Raised when a target selector references an unknown segment."""

    pass


class ProviderError(DeliveryError):
    """Base exception for push provider failures."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code


class ProviderUnavailableError(ProviderError):
    """A provider call could not be completed at all.

    Covers transport failures, timeouts and provider-side 5xx responses.
    Every endpoint in the affected batch is counted as a transient failure.
    """

    def __init__(self, message: str, error_code: Optional[str] = "transport"):
        super().__init__(message, error_code=error_code)


class ProviderConfigurationError(ProviderError):
    """The provider client cannot be built (missing or invalid credentials)."""

    pass
