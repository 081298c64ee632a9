"""
One thin wrapper per Blink Debit REST resource.
"""

from __future__ import annotations

import uuid
from typing import Any, List, Optional, Union
from uuid import UUID

from .errors import BlinkInvalidValueError
from .http import BlinkHttp
from .models import (
    BankMetadata,
    Consent,
    CreateConsentResponse,
    CreateQuickPaymentResponse,
    EnduringConsentRequest,
    Payment,
    PaymentRequest,
    PaymentResponse,
    QuickPayment,
    QuickPaymentRequest,
    Refund,
    RefundRequest,
    RefundResponse,
    SingleConsentRequest,
)

__all__ = [
    "ENDURING_CONSENTS_PATH",
    "EnduringConsentsApi",
    "META_PATH",
    "MetaApi",
    "PAYMENTS_PATH",
    "PaymentsApi",
    "QUICK_PAYMENTS_PATH",
    "QuickPaymentsApi",
    "REFUNDS_PATH",
    "RefundsApi",
    "SINGLE_CONSENTS_PATH",
    "SingleConsentsApi",
]

SINGLE_CONSENTS_PATH = "/payments/v1/single-consents"
ENDURING_CONSENTS_PATH = "/payments/v1/enduring-consents"
QUICK_PAYMENTS_PATH = "/payments/v1/quick-payments"
PAYMENTS_PATH = "/payments/v1/payments"
REFUNDS_PATH = "/payments/v1/refunds"
META_PATH = "/payments/v1/meta"

ResourceId = Union[UUID, str]


def _resource_path(base: str, resource_id: Optional[ResourceId], label: str) -> str:
    if resource_id is None:
        raise BlinkInvalidValueError(f"{label} ID must not be null")
    text = str(resource_id).strip()
    if not text:
        raise BlinkInvalidValueError(f"{label} ID must not be blank")
    return f"{base}/{text}"


def _require_request(request: Any, label: str) -> None:
    if request is None:
        raise BlinkInvalidValueError(f"{label} request must not be null")


class _ResourceApi:
    path: str = ""

    def __init__(self, http: BlinkHttp) -> None:
        self.http = http

    def _create(self, request: Any, **headers: Any) -> Any:
        # one key per logical call, reused by every retry
        return self.http.post(
            self.path,
            request.to_payload(),
            idempotency_key=str(uuid.uuid4()),
            **headers,
        )


class SingleConsentsApi(_ResourceApi):
    path = SINGLE_CONSENTS_PATH

    def create(
        self,
        request: SingleConsentRequest,
        *,
        request_id: Optional[str] = None,
        customer_ip: Optional[str] = None,
        customer_user_agent: Optional[str] = None,
    ) -> CreateConsentResponse:
        _require_request(request, "Single consent")
        payload = self._create(
            request,
            request_id=request_id,
            customer_ip=customer_ip,
            customer_user_agent=customer_user_agent,
        )
        return CreateConsentResponse.from_response(payload)

    def get(self, consent_id: ResourceId, *, request_id: Optional[str] = None) -> Consent:
        path = _resource_path(self.path, consent_id, "Consent")
        return Consent.from_response(self.http.get(path, request_id=request_id))

    def revoke(self, consent_id: ResourceId, *, request_id: Optional[str] = None) -> None:
        path = _resource_path(self.path, consent_id, "Consent")
        self.http.delete(path, request_id=request_id)


class EnduringConsentsApi(_ResourceApi):
    path = ENDURING_CONSENTS_PATH

    def create(
        self,
        request: EnduringConsentRequest,
        *,
        request_id: Optional[str] = None,
        customer_ip: Optional[str] = None,
        customer_user_agent: Optional[str] = None,
    ) -> CreateConsentResponse:
        _require_request(request, "Enduring consent")
        payload = self._create(
            request,
            request_id=request_id,
            customer_ip=customer_ip,
            customer_user_agent=customer_user_agent,
        )
        return CreateConsentResponse.from_response(payload)

    def get(self, consent_id: ResourceId, *, request_id: Optional[str] = None) -> Consent:
        path = _resource_path(self.path, consent_id, "Consent")
        return Consent.from_response(self.http.get(path, request_id=request_id))

    def revoke(self, consent_id: ResourceId, *, request_id: Optional[str] = None) -> None:
        path = _resource_path(self.path, consent_id, "Consent")
        self.http.delete(path, request_id=request_id)


class QuickPaymentsApi(_ResourceApi):
    path = QUICK_PAYMENTS_PATH

    def create(
        self,
        request: QuickPaymentRequest,
        *,
        request_id: Optional[str] = None,
        customer_ip: Optional[str] = None,
        customer_user_agent: Optional[str] = None,
    ) -> CreateQuickPaymentResponse:
        _require_request(request, "Quick payment")
        payload = self._create(
            request,
            request_id=request_id,
            customer_ip=customer_ip,
            customer_user_agent=customer_user_agent,
        )
        return CreateQuickPaymentResponse.from_response(payload)

    def get(self, quick_payment_id: ResourceId, *, request_id: Optional[str] = None) -> QuickPayment:
        path = _resource_path(self.path, quick_payment_id, "Quick payment")
        return QuickPayment.from_response(self.http.get(path, request_id=request_id))

    def revoke(self, quick_payment_id: ResourceId, *, request_id: Optional[str] = None) -> None:
        path = _resource_path(self.path, quick_payment_id, "Quick payment")
        self.http.delete(path, request_id=request_id)


class PaymentsApi(_ResourceApi):
    path = PAYMENTS_PATH

    def create(self, request: PaymentRequest, *, request_id: Optional[str] = None) -> PaymentResponse:
        _require_request(request, "Payment")
        return PaymentResponse.from_response(self._create(request, request_id=request_id))

    def get(self, payment_id: ResourceId, *, request_id: Optional[str] = None) -> Payment:
        path = _resource_path(self.path, payment_id, "Payment")
        return Payment.from_response(self.http.get(path, request_id=request_id))


class RefundsApi(_ResourceApi):
    path = REFUNDS_PATH

    def create(self, request: RefundRequest, *, request_id: Optional[str] = None) -> RefundResponse:
        _require_request(request, "Refund")
        return RefundResponse.from_response(self._create(request, request_id=request_id))

    def get(self, refund_id: ResourceId, *, request_id: Optional[str] = None) -> Refund:
        path = _resource_path(self.path, refund_id, "Refund")
        return Refund.from_response(self.http.get(path, request_id=request_id))


class MetaApi:
    def __init__(self, http: BlinkHttp) -> None:
        self.http = http

    def get_meta(self, *, request_id: Optional[str] = None) -> List[BankMetadata]:
        return BankMetadata.list_from_response(self.http.get(META_PATH, request_id=request_id))
