"""
Interpretation of polled status values.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping

from .errors import BlinkUnknownStatusError
from .models import ConsentStatus, PaymentStatus

__all__ = [
    "ResourceKind",
    "StatusOutcome",
    "classify",
]


class ResourceKind(str, Enum):
    SINGLE_CONSENT = "single-consent"
    ENDURING_CONSENT = "enduring-consent"
    QUICK_PAYMENT = "quick-payment"
    PAYMENT = "payment"

    @property
    def label(self) -> str:
        return self.value.replace("-", " ")

    @property
    def revocable_on_timeout(self) -> bool:
        return self in (ResourceKind.ENDURING_CONSENT, ResourceKind.QUICK_PAYMENT)

    @property
    def is_consent(self) -> bool:
        return self is not ResourceKind.PAYMENT


class StatusOutcome(Enum):
    SUCCESS = "success"
    PENDING = "pending"
    REJECTED = "rejected"
    GATEWAY_TIMED_OUT = "gateway_timed_out"


_CONSENT_OUTCOMES: Dict[str, StatusOutcome] = {
    ConsentStatus.AUTHORISED.value: StatusOutcome.SUCCESS,
    ConsentStatus.CONSUMED.value: StatusOutcome.SUCCESS,
    ConsentStatus.AWAITING_AUTHORISATION.value: StatusOutcome.PENDING,
    ConsentStatus.GATEWAY_AWAITING_SUBMISSION.value: StatusOutcome.PENDING,
    ConsentStatus.REJECTED.value: StatusOutcome.REJECTED,
    ConsentStatus.REVOKED.value: StatusOutcome.REJECTED,
    ConsentStatus.GATEWAY_TIMEOUT.value: StatusOutcome.GATEWAY_TIMED_OUT,
}

_PAYMENT_OUTCOMES: Dict[str, StatusOutcome] = {
    PaymentStatus.ACCEPTED.value: StatusOutcome.SUCCESS,
    PaymentStatus.ACCEPTED_SETTLEMENT_COMPLETED.value: StatusOutcome.SUCCESS,
    PaymentStatus.PENDING.value: StatusOutcome.PENDING,
    PaymentStatus.ACCEPTED_SETTLEMENT_IN_PROCESS.value: StatusOutcome.PENDING,
    PaymentStatus.REJECTED.value: StatusOutcome.REJECTED,
}

_OUTCOMES_BY_KIND: Mapping[ResourceKind, Mapping[str, StatusOutcome]] = {
    ResourceKind.SINGLE_CONSENT: _CONSENT_OUTCOMES,
    ResourceKind.ENDURING_CONSENT: _CONSENT_OUTCOMES,
    ResourceKind.QUICK_PAYMENT: _CONSENT_OUTCOMES,
    ResourceKind.PAYMENT: _PAYMENT_OUTCOMES,
}


def classify(kind: ResourceKind, status: Any) -> StatusOutcome:
    """
    Map a status to its polling outcome.

    ``status`` may be the enum member or its wire value. Anything the table for
    ``kind`` does not list raises :class:`BlinkUnknownStatusError`, including a
    payment status handed in for a consent.
    """
    if isinstance(status, Enum):
        if kind.is_consent and not isinstance(status, ConsentStatus):
            raise BlinkUnknownStatusError(status.value, kind.label)
        if not kind.is_consent and not isinstance(status, PaymentStatus):
            raise BlinkUnknownStatusError(status.value, kind.label)
        status = status.value
    try:
        return _OUTCOMES_BY_KIND[kind][status]
    except (KeyError, TypeError) as exc:
        raise BlinkUnknownStatusError(status, kind.label) from exc
