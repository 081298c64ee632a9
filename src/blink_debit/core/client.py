"""
High-level Blink Debit client.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional

import requests

from .config import BlinkDebitConfig
from .http import BlinkHttp, build_session
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
from .polling import POLL_INTERVAL_SECONDS, AwaitOutcome, ResourcePoller, poll_until_terminal
from .resources import (
    EnduringConsentsApi,
    MetaApi,
    PaymentsApi,
    QuickPaymentsApi,
    RefundsApi,
    ResourceId,
    SingleConsentsApi,
)
from .retry import RetryPolicy
from .status import ResourceKind
from .tokens import AccessTokenManager, OAuthApi

__all__ = ["BlinkDebitClient"]


class BlinkDebitClient:
    """
    Convenience wrapper around every Blink Debit resource.

    The ``await_*`` helpers raise :class:`~blink_debit.core.errors.BlinkAwaitError`
    on failure; their ``*_or_raise`` twins raise the precise rejected, timeout,
    not-found or service error instead.
    """

    def __init__(
        self,
        config: BlinkDebitConfig,
        *,
        session: Optional[requests.Session] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self.config = config
        self.session = session or build_session(config)
        self.sleep = sleep
        self.poll_interval = poll_interval
        policy = retry_policy or config.retry_policy()

        self.oauth = OAuthApi(config, session=self.session, retry_policy=policy, sleep=sleep)
        self.token_manager = AccessTokenManager(self.oauth, initial_token=config.access_token)
        self.http = BlinkHttp(
            config,
            self.token_manager,
            session=self.session,
            retry_policy=policy,
            sleep=sleep,
        )

        self.single_consents = SingleConsentsApi(self.http)
        self.enduring_consents = EnduringConsentsApi(self.http)
        self.quick_payments = QuickPaymentsApi(self.http)
        self.payments = PaymentsApi(self.http)
        self.refunds = RefundsApi(self.http)
        self.meta = MetaApi(self.http)

        self._pollers: Dict[ResourceKind, ResourcePoller] = {
            ResourceKind.SINGLE_CONSENT: ResourcePoller(
                kind=ResourceKind.SINGLE_CONSENT,
                fetch=self.single_consents.get,
                status_of=lambda consent: consent.status,
            ),
            ResourceKind.ENDURING_CONSENT: ResourcePoller(
                kind=ResourceKind.ENDURING_CONSENT,
                fetch=self.enduring_consents.get,
                status_of=lambda consent: consent.status,
                revoke=self.enduring_consents.revoke,
            ),
            ResourceKind.QUICK_PAYMENT: ResourcePoller(
                kind=ResourceKind.QUICK_PAYMENT,
                fetch=self.quick_payments.get,
                status_of=lambda quick_payment: quick_payment.status,
                revoke=self.quick_payments.revoke,
            ),
            ResourceKind.PAYMENT: ResourcePoller(
                kind=ResourceKind.PAYMENT,
                fetch=self.payments.get,
                status_of=lambda payment: payment.status,
            ),
        }

    # --- lifecycle ---

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "BlinkDebitClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # --- metadata ---

    def get_meta(self, *, request_id: Optional[str] = None) -> List[BankMetadata]:
        return self.meta.get_meta(request_id=request_id)

    # --- single consents ---

    def create_single_consent(
        self,
        request: SingleConsentRequest,
        *,
        request_id: Optional[str] = None,
        customer_ip: Optional[str] = None,
        customer_user_agent: Optional[str] = None,
    ) -> CreateConsentResponse:
        return self.single_consents.create(
            request,
            request_id=request_id,
            customer_ip=customer_ip,
            customer_user_agent=customer_user_agent,
        )

    def get_single_consent(self, consent_id: ResourceId, *, request_id: Optional[str] = None) -> Consent:
        return self.single_consents.get(consent_id, request_id=request_id)

    def revoke_single_consent(self, consent_id: ResourceId, *, request_id: Optional[str] = None) -> None:
        self.single_consents.revoke(consent_id, request_id=request_id)

    # --- enduring consents ---

    def create_enduring_consent(
        self,
        request: EnduringConsentRequest,
        *,
        request_id: Optional[str] = None,
        customer_ip: Optional[str] = None,
        customer_user_agent: Optional[str] = None,
    ) -> CreateConsentResponse:
        return self.enduring_consents.create(
            request,
            request_id=request_id,
            customer_ip=customer_ip,
            customer_user_agent=customer_user_agent,
        )

    def get_enduring_consent(self, consent_id: ResourceId, *, request_id: Optional[str] = None) -> Consent:
        return self.enduring_consents.get(consent_id, request_id=request_id)

    def revoke_enduring_consent(self, consent_id: ResourceId, *, request_id: Optional[str] = None) -> None:
        self.enduring_consents.revoke(consent_id, request_id=request_id)

    # --- quick payments ---

    def create_quick_payment(
        self,
        request: QuickPaymentRequest,
        *,
        request_id: Optional[str] = None,
        customer_ip: Optional[str] = None,
        customer_user_agent: Optional[str] = None,
    ) -> CreateQuickPaymentResponse:
        return self.quick_payments.create(
            request,
            request_id=request_id,
            customer_ip=customer_ip,
            customer_user_agent=customer_user_agent,
        )

    def get_quick_payment(
        self, quick_payment_id: ResourceId, *, request_id: Optional[str] = None
    ) -> QuickPayment:
        return self.quick_payments.get(quick_payment_id, request_id=request_id)

    def revoke_quick_payment(
        self, quick_payment_id: ResourceId, *, request_id: Optional[str] = None
    ) -> None:
        self.quick_payments.revoke(quick_payment_id, request_id=request_id)

    # --- payments and refunds ---

    def create_payment(self, request: PaymentRequest, *, request_id: Optional[str] = None) -> PaymentResponse:
        return self.payments.create(request, request_id=request_id)

    def get_payment(self, payment_id: ResourceId, *, request_id: Optional[str] = None) -> Payment:
        return self.payments.get(payment_id, request_id=request_id)

    def create_refund(self, request: RefundRequest, *, request_id: Optional[str] = None) -> RefundResponse:
        return self.refunds.create(request, request_id=request_id)

    def get_refund(self, refund_id: ResourceId, *, request_id: Optional[str] = None) -> Refund:
        return self.refunds.get(refund_id, request_id=request_id)

    # --- awaiting terminal states ---

    def poll(self, kind: ResourceKind, resource_id: ResourceId, max_wait_seconds: int) -> AwaitOutcome:
        """Run one await session and return its outcome without raising."""
        poller = self._pollers[ResourceKind(kind)]
        return poll_until_terminal(
            poller,
            resource_id,
            max_wait_seconds,
            sleep=self.sleep,
            interval=self.poll_interval,
        )

    def await_terminal(self, kind: ResourceKind, resource_id: ResourceId, max_wait_seconds: int) -> Any:
        return self.poll(kind, resource_id, max_wait_seconds).unwrap_generic()

    def await_terminal_or_raise(
        self, kind: ResourceKind, resource_id: ResourceId, max_wait_seconds: int
    ) -> Any:
        return self.poll(kind, resource_id, max_wait_seconds).unwrap()

    def await_authorised_single_consent(self, consent_id: ResourceId, max_wait_seconds: int) -> Consent:
        return self.await_terminal(ResourceKind.SINGLE_CONSENT, consent_id, max_wait_seconds)

    def await_authorised_single_consent_or_raise(
        self, consent_id: ResourceId, max_wait_seconds: int
    ) -> Consent:
        return self.await_terminal_or_raise(ResourceKind.SINGLE_CONSENT, consent_id, max_wait_seconds)

    def await_authorised_enduring_consent(self, consent_id: ResourceId, max_wait_seconds: int) -> Consent:
        return self.await_terminal(ResourceKind.ENDURING_CONSENT, consent_id, max_wait_seconds)

    def await_authorised_enduring_consent_or_raise(
        self, consent_id: ResourceId, max_wait_seconds: int
    ) -> Consent:
        return self.await_terminal_or_raise(ResourceKind.ENDURING_CONSENT, consent_id, max_wait_seconds)

    def await_successful_quick_payment(
        self, quick_payment_id: ResourceId, max_wait_seconds: int
    ) -> QuickPayment:
        return self.await_terminal(ResourceKind.QUICK_PAYMENT, quick_payment_id, max_wait_seconds)

    def await_successful_quick_payment_or_raise(
        self, quick_payment_id: ResourceId, max_wait_seconds: int
    ) -> QuickPayment:
        return self.await_terminal_or_raise(ResourceKind.QUICK_PAYMENT, quick_payment_id, max_wait_seconds)

    def await_successful_payment(self, payment_id: ResourceId, max_wait_seconds: int) -> Payment:
        return self.await_terminal(ResourceKind.PAYMENT, payment_id, max_wait_seconds)

    def await_successful_payment_or_raise(self, payment_id: ResourceId, max_wait_seconds: int) -> Payment:
        return self.await_terminal_or_raise(ResourceKind.PAYMENT, payment_id, max_wait_seconds)
