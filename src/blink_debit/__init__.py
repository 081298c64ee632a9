"""
Public facade for the Blink Debit client package.

The most useful pieces are re-exported here so integrators can
``from blink_debit import ...`` without navigating the package.
"""

__version__ = "1.0.0"

from .api import create_blink_debit_client
from .core import (
    AwaitFailureKind,
    AwaitOutcome,
    BlinkApiError,
    BlinkAwaitError,
    BlinkConsentRejectedError,
    BlinkConsentTimeoutError,
    BlinkDebitClient,
    BlinkDebitConfig,
    BlinkDebitError,
    BlinkEnvironment,
    BlinkInvalidValueError,
    BlinkParameters,
    BlinkPaymentRejectedError,
    BlinkPaymentTimeoutError,
    BlinkRejectedError,
    BlinkResourceNotFoundError,
    BlinkServiceError,
    BlinkTimeoutError,
    BlinkUnauthorisedError,
    ConfigError,
    ResourceKind,
    RetryPolicy,
    build_amount,
    build_decoupled_flow,
    build_enduring_consent_request,
    build_environment,
    build_flow_hint,
    build_gateway_flow,
    build_payment_request,
    build_pcr,
    build_quick_payment_request,
    build_redirect_flow,
    build_refund_request,
    build_single_consent_request,
    load_blink_config,
    load_env_file,
)
from .core.models import Bank, ConsentStatus, IdentifierType, PaymentStatus, Period

__all__ = (
    "AwaitFailureKind",
    "AwaitOutcome",
    "Bank",
    "BlinkApiError",
    "BlinkAwaitError",
    "BlinkConsentRejectedError",
    "BlinkConsentTimeoutError",
    "BlinkDebitClient",
    "BlinkDebitConfig",
    "BlinkDebitError",
    "BlinkEnvironment",
    "BlinkInvalidValueError",
    "BlinkParameters",
    "BlinkPaymentRejectedError",
    "BlinkPaymentTimeoutError",
    "BlinkRejectedError",
    "BlinkResourceNotFoundError",
    "BlinkServiceError",
    "BlinkTimeoutError",
    "BlinkUnauthorisedError",
    "ConfigError",
    "ConsentStatus",
    "IdentifierType",
    "PaymentStatus",
    "Period",
    "ResourceKind",
    "RetryPolicy",
    "__version__",
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
    "create_blink_debit_client",
    "load_blink_config",
    "load_env_file",
)
