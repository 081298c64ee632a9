"""
Exception hierarchy shared by every Blink Debit helper.

All errors derive from :class:`BlinkDebitError`. Failures caused by the remote
service or the network are :class:`BlinkServiceError` subclasses; terminal
resource states observed while polling are :class:`BlinkRejectedError` and
:class:`BlinkTimeoutError`.
"""

from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "BlinkApiError",
    "BlinkAwaitError",
    "BlinkClientError",
    "BlinkConsentRejectedError",
    "BlinkConsentTimeoutError",
    "BlinkDebitError",
    "BlinkForbiddenError",
    "BlinkInvalidValueError",
    "BlinkNotImplementedError",
    "BlinkPaymentRejectedError",
    "BlinkPaymentTimeoutError",
    "BlinkRateLimitExceededError",
    "BlinkRejectedError",
    "BlinkRequestTimeoutError",
    "BlinkResourceNotFoundError",
    "BlinkServerError",
    "BlinkServiceError",
    "BlinkTimeoutError",
    "BlinkTransportError",
    "BlinkUnauthorisedError",
    "BlinkUnknownStatusError",
]


class BlinkDebitError(Exception):
    """Base exception for all Blink Debit SDK errors."""


class BlinkInvalidValueError(BlinkDebitError, ValueError):
    """A caller supplied an argument the API would never accept."""


class BlinkServiceError(BlinkDebitError):
    """The Blink Debit service, or the network in front of it, failed the call."""


class BlinkTransportError(BlinkServiceError):
    """The request never completed: connection refused, reset or read timeout."""


class BlinkUnknownStatusError(BlinkServiceError):
    """The service returned a status value this SDK does not know about."""

    def __init__(self, status: Any, resource_kind: Any = None):
        self.status = status
        self.resource_kind = resource_kind
        message = f"Unknown status: {status}"
        if resource_kind is not None:
            message += f" for {resource_kind}"
        super().__init__(message)


class BlinkApiError(BlinkServiceError):
    """HTTP error response from the Blink Debit API."""

    default_detail = "Service call to Blink Debit failed"

    def __init__(
        self,
        status_code: int,
        detail: Optional[str] = None,
        *,
        correlation_id: Optional[str] = None,
        code: Optional[str] = None,
    ):
        self.status_code = status_code
        self.detail = detail or self.default_detail
        self.correlation_id = correlation_id
        self.code = code
        message = f"Blink Debit API error {status_code}: {self.detail}"
        if correlation_id:
            message += f" (correlation ID: {correlation_id})"
        super().__init__(message)


class BlinkClientError(BlinkApiError):
    default_detail = "Client request is invalid"


class BlinkUnauthorisedError(BlinkClientError):
    default_detail = (
        "Unauthorised access to resource, check the JWT in Authorization "
        "HTTP request header with Bearer authentication scheme"
    )


class BlinkForbiddenError(BlinkClientError):
    default_detail = "Insufficient access right to resource, please contact BlinkPay"


class BlinkResourceNotFoundError(BlinkClientError):
    default_detail = "Resource not found"


class BlinkRequestTimeoutError(BlinkClientError):
    default_detail = "Request timed out"


class BlinkRateLimitExceededError(BlinkClientError):
    default_detail = "Rate limit exceeded, please contact BlinkPay"


class BlinkServerError(BlinkApiError):
    default_detail = "Internal server error occurred in Blink Debit, please contact BlinkPay"


class BlinkNotImplementedError(BlinkServerError):
    default_detail = "Service not yet implemented"


class BlinkRejectedError(BlinkDebitError):
    """The resource reached a rejected or revoked terminal state."""

    def __init__(self, message: str, *, resource_kind: Any, resource_id: Any):
        self.resource_kind = resource_kind
        self.resource_id = resource_id
        super().__init__(message)


class BlinkConsentRejectedError(BlinkRejectedError):
    pass


class BlinkPaymentRejectedError(BlinkRejectedError):
    pass


class BlinkTimeoutError(BlinkDebitError):
    """
    The resource did not complete in time.

    ``gateway`` is true when the remote gateway itself reported the timeout
    rather than the local wait budget running out. ``revocation_error`` holds
    the failure of the best-effort revoke attempted after the local budget ran
    out, if that revoke failed; it is also set as ``__context__`` so tracebacks
    show it.
    """

    def __init__(
        self,
        message: str,
        *,
        resource_kind: Any,
        resource_id: Any,
        gateway: bool = False,
    ):
        self.resource_kind = resource_kind
        self.resource_id = resource_id
        self.gateway = gateway
        self.revocation_error: Optional[BaseException] = None
        super().__init__(message)


class BlinkConsentTimeoutError(BlinkTimeoutError):
    pass


class BlinkPaymentTimeoutError(BlinkTimeoutError):
    pass


class BlinkAwaitError(BlinkDebitError):
    """
    Generic failure raised by the non-strict await helpers.

    ``failure`` is the :class:`~blink_debit.core.polling.AwaitFailureKind`
    describing what went wrong; the precise error is available as
    ``__cause__``.
    """

    def __init__(self, message: str, *, failure: Any, resource_kind: Any, resource_id: Any):
        self.failure = failure
        self.resource_kind = resource_kind
        self.resource_id = resource_id
        super().__init__(message)
