"""
Core primitives that implement the Blink Debit client.
"""

from .client import BlinkDebitClient
from .config import (
    BlinkDebitConfig,
    BlinkParameters,
    ConfigError,
    load_blink_config,
)
from .environment import BlinkEnvironment, build_environment, load_env_file
from .errors import (
    BlinkApiError,
    BlinkAwaitError,
    BlinkClientError,
    BlinkConsentRejectedError,
    BlinkConsentTimeoutError,
    BlinkDebitError,
    BlinkForbiddenError,
    BlinkInvalidValueError,
    BlinkNotImplementedError,
    BlinkPaymentRejectedError,
    BlinkPaymentTimeoutError,
    BlinkRateLimitExceededError,
    BlinkRejectedError,
    BlinkRequestTimeoutError,
    BlinkResourceNotFoundError,
    BlinkServerError,
    BlinkServiceError,
    BlinkTimeoutError,
    BlinkTransportError,
    BlinkUnauthorisedError,
    BlinkUnknownStatusError,
)
from .payloads import (
    build_amount,
    build_decoupled_flow,
    build_enduring_consent_request,
    build_flow_hint,
    build_gateway_flow,
    build_payment_request,
    build_pcr,
    build_quick_payment_request,
    build_redirect_flow,
    build_refund_request,
    build_single_consent_request,
)
from .polling import AwaitFailureKind, AwaitOutcome, poll_until_terminal
from .retry import RetryPolicy, run_with_retry
from .status import ResourceKind, StatusOutcome, classify

__all__ = [
    "AwaitFailureKind",
    "AwaitOutcome",
    "BlinkApiError",
    "BlinkAwaitError",
    "BlinkClientError",
    "BlinkConsentRejectedError",
    "BlinkConsentTimeoutError",
    "BlinkDebitClient",
    "BlinkDebitConfig",
    "BlinkDebitError",
    "BlinkEnvironment",
    "BlinkForbiddenError",
    "BlinkInvalidValueError",
    "BlinkNotImplementedError",
    "BlinkParameters",
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
    "ConfigError",
    "ResourceKind",
    "RetryPolicy",
    "StatusOutcome",
    "build_amount",
    "build_decoupled_flow",
    "build_enduring_consent_request",
    "build_environment",
    "build_flow_hint",
    "build_gateway_flow",
    "build_payment_request",
    "build_pcr",
    "build_quick_payment_request",
    "build_redirect_flow",
    "build_refund_request",
    "build_single_consent_request",
    "classify",
    "load_blink_config",
    "load_env_file",
    "poll_until_terminal",
    "run_with_retry",
]
