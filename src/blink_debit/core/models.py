"""
Typed request and response models for the Blink Debit API.

Responses are decoded with ``from_response`` classmethods, and requests are
encoded with ``to_payload``. Every decoded model keeps the original mapping in
``raw`` so callers can reach fields this SDK does not model.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, TypeVar, Union
from uuid import UUID

from .errors import BlinkServiceError, BlinkUnknownStatusError

__all__ = [
    "AccountNumberRefundRequest",
    "Amount",
    "AuthFlowDetail",
    "AuthFlowType",
    "Bank",
    "BankMetadata",
    "Consent",
    "ConsentDetail",
    "ConsentStatus",
    "ConsentType",
    "CreateConsentResponse",
    "CreateQuickPaymentResponse",
    "DecoupledFlow",
    "DecoupledFlowHint",
    "EnduringConsentRequest",
    "EnduringPaymentRequest",
    "FlowHint",
    "FullRefundRequest",
    "GatewayFlow",
    "IdentifierType",
    "PartialRefundRequest",
    "Payment",
    "PaymentRequest",
    "PaymentResponse",
    "PaymentStatus",
    "Pcr",
    "Period",
    "QuickPayment",
    "QuickPaymentRequest",
    "RedirectFlow",
    "RedirectFlowHint",
    "Refund",
    "RefundRequest",
    "RefundResponse",
    "RefundStatus",
    "SingleConsentRequest",
    "parse_flow_detail",
]

E = TypeVar("E", bound=Enum)

_FRACTION = re.compile(r"\.(\d+)")


class ConsentStatus(str, Enum):
    AWAITING_AUTHORISATION = "AwaitingAuthorisation"
    AUTHORISED = "Authorised"
    CONSUMED = "Consumed"
    REJECTED = "Rejected"
    REVOKED = "Revoked"
    GATEWAY_AWAITING_SUBMISSION = "GatewayAwaitingSubmission"
    GATEWAY_TIMEOUT = "GatewayTimeout"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    ACCEPTED_SETTLEMENT_COMPLETED = "AcceptedSettlementCompleted"
    ACCEPTED_SETTLEMENT_IN_PROCESS = "AcceptedSettlementInProcess"
    REJECTED = "Rejected"


class RefundStatus(str, Enum):
    FAILED = "failed"
    PROCESSING = "processing"
    COMPLETED = "completed"


class ConsentType(str, Enum):
    SINGLE = "single"
    ENDURING = "enduring"


class AuthFlowType(str, Enum):
    REDIRECT = "redirect"
    DECOUPLED = "decoupled"
    GATEWAY = "gateway"


class Bank(str, Enum):
    ASB = "ASB"
    ANZ = "ANZ"
    BNZ = "BNZ"
    WESTPAC = "Westpac"
    KIWIBANK = "KiwiBank"
    PNZ = "PNZ"


class IdentifierType(str, Enum):
    PHONE_NUMBER = "phone_number"
    MOBILE_NUMBER = "mobile_number"
    EMAIL = "email"
    BANKING_USERNAME = "banking_username"
    CONSENT_ID = "consent_id"


class Period(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"
    ANNUAL = "annual"


def _decode_status(enum_type: Type[E], value: Any) -> E:
    try:
        return enum_type(value)
    except ValueError as exc:
        raise BlinkUnknownStatusError(value, enum_type.__name__) from exc


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise BlinkServiceError(f"Timestamp in response is not a string: {value!r}")
    text = value.strip().replace("Z", "+00:00")
    # fromisoformat only accepts up to microsecond precision
    text = _FRACTION.sub(lambda match: "." + match.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise BlinkServiceError(f"Unparseable timestamp in response: {value!r}") from exc


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_uuid(value: Any, field_name: str) -> UUID:
    try:
        return UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise BlinkServiceError(f"Response field '{field_name}' is not a UUID: {value!r}") from exc


def _as_mapping(payload: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise BlinkServiceError(f"Expected a JSON object for {what}, got {type(payload).__name__}")
    return payload


def _require(payload: Mapping[str, Any], key: str) -> Any:
    try:
        return payload[key]
    except KeyError as exc:
        raise BlinkServiceError(f"Response is missing required field '{key}'") from exc


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


# --- Value objects ---


@dataclass(frozen=True)
class Amount:
    total: str
    currency: str = "NZD"

    def to_payload(self) -> Dict[str, Any]:
        return {"total": self.total, "currency": self.currency}

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "Amount":
        return cls(total=str(_require(payload, "total")), currency=payload.get("currency", "NZD"))


@dataclass(frozen=True)
class Pcr:
    """Particulars, code and reference shown on the customer's statement."""

    particulars: str
    code: Optional[str] = None
    reference: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return _drop_none(
            {"particulars": self.particulars, "code": self.code, "reference": self.reference}
        )


# --- Authorisation flow detail (tagged union on "type") ---


@dataclass(frozen=True)
class RedirectFlowHint:
    bank: Bank
    type: str = field(default=AuthFlowType.REDIRECT.value, init=False)

    def to_payload(self) -> Dict[str, Any]:
        return {"type": self.type, "bank": self.bank.value}


@dataclass(frozen=True)
class DecoupledFlowHint:
    bank: Bank
    identifier_type: IdentifierType
    identifier_value: str
    type: str = field(default=AuthFlowType.DECOUPLED.value, init=False)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "bank": self.bank.value,
            "identifier_type": self.identifier_type.value,
            "identifier_value": self.identifier_value,
        }


FlowHint = Union[RedirectFlowHint, DecoupledFlowHint]


@dataclass(frozen=True)
class RedirectFlow:
    bank: Bank
    redirect_uri: str
    redirect_to_app: bool = False
    type: str = field(default=AuthFlowType.REDIRECT.value, init=False)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "bank": self.bank.value,
            "redirect_uri": self.redirect_uri,
            "redirect_to_app": self.redirect_to_app,
        }


@dataclass(frozen=True)
class DecoupledFlow:
    bank: Bank
    identifier_type: IdentifierType
    identifier_value: str
    callback_url: str
    type: str = field(default=AuthFlowType.DECOUPLED.value, init=False)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "bank": self.bank.value,
            "identifier_type": self.identifier_type.value,
            "identifier_value": self.identifier_value,
            "callback_url": self.callback_url,
        }


@dataclass(frozen=True)
class GatewayFlow:
    redirect_uri: str
    flow_hint: Optional[FlowHint] = None
    type: str = field(default=AuthFlowType.GATEWAY.value, init=False)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type, "redirect_uri": self.redirect_uri}
        if self.flow_hint is not None:
            payload["flow_hint"] = self.flow_hint.to_payload()
        return payload


AuthFlowDetail = Union[RedirectFlow, DecoupledFlow, GatewayFlow]


def _parse_flow_hint(payload: Optional[Mapping[str, Any]]) -> Optional[FlowHint]:
    if not isinstance(payload, Mapping):
        return None
    hint_type = payload.get("type")
    if hint_type == AuthFlowType.REDIRECT.value:
        return RedirectFlowHint(bank=Bank(payload["bank"]))
    if hint_type == AuthFlowType.DECOUPLED.value:
        return DecoupledFlowHint(
            bank=Bank(payload["bank"]),
            identifier_type=IdentifierType(payload["identifier_type"]),
            identifier_value=payload["identifier_value"],
        )
    return None


def parse_flow_detail(payload: Optional[Mapping[str, Any]]) -> Optional[AuthFlowDetail]:
    """
    Decode a flow detail by its ``type`` discriminant.

    Unrecognised flow types, banks or identifier types decode to ``None``; the
    raw mapping is still available on the enclosing model.
    """
    if not isinstance(payload, Mapping):
        return None
    flow_type = payload.get("type")
    try:
        if flow_type == AuthFlowType.REDIRECT.value:
            return RedirectFlow(
                bank=Bank(payload["bank"]),
                redirect_uri=payload.get("redirect_uri", ""),
                redirect_to_app=bool(payload.get("redirect_to_app", False)),
            )
        if flow_type == AuthFlowType.DECOUPLED.value:
            return DecoupledFlow(
                bank=Bank(payload["bank"]),
                identifier_type=IdentifierType(payload["identifier_type"]),
                identifier_value=payload["identifier_value"],
                callback_url=payload.get("callback_url", ""),
            )
        if flow_type == AuthFlowType.GATEWAY.value:
            return GatewayFlow(
                redirect_uri=payload.get("redirect_uri", ""),
                flow_hint=_parse_flow_hint(payload.get("flow_hint")),
            )
    except (KeyError, ValueError):
        return None
    return None


# --- Requests ---


@dataclass(frozen=True)
class SingleConsentRequest:
    flow: AuthFlowDetail
    pcr: Pcr
    amount: Amount
    hashed_customer_identifier: Optional[str] = None

    consent_type = ConsentType.SINGLE

    def to_payload(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "type": self.consent_type.value,
                "flow": {"detail": self.flow.to_payload()},
                "pcr": self.pcr.to_payload(),
                "amount": self.amount.to_payload(),
                "hashed_customer_identifier": self.hashed_customer_identifier,
            }
        )


@dataclass(frozen=True)
class QuickPaymentRequest(SingleConsentRequest):
    pass


@dataclass(frozen=True)
class EnduringConsentRequest:
    flow: AuthFlowDetail
    period: Period
    maximum_amount_period: Amount
    from_timestamp: Optional[datetime] = None
    expiry_timestamp: Optional[datetime] = None
    maximum_amount_payment: Optional[Amount] = None
    hashed_customer_identifier: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "type": ConsentType.ENDURING.value,
                "flow": {"detail": self.flow.to_payload()},
                "period": self.period.value,
                "maximum_amount_period": self.maximum_amount_period.to_payload(),
                "from_timestamp": _format_timestamp(self.from_timestamp),
                "expiry_timestamp": _format_timestamp(self.expiry_timestamp),
                "maximum_amount_payment": (
                    self.maximum_amount_payment.to_payload()
                    if self.maximum_amount_payment is not None
                    else None
                ),
                "hashed_customer_identifier": self.hashed_customer_identifier,
            }
        )


@dataclass(frozen=True)
class EnduringPaymentRequest:
    amount: Amount
    pcr: Pcr

    def to_payload(self) -> Dict[str, Any]:
        return {"amount": self.amount.to_payload(), "pcr": self.pcr.to_payload()}


@dataclass(frozen=True)
class PaymentRequest:
    consent_id: UUID
    enduring_payment: Optional[EnduringPaymentRequest] = None
    account_reference_id: Optional[UUID] = None

    def to_payload(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "consent_id": str(self.consent_id),
                "enduring_payment": (
                    self.enduring_payment.to_payload()
                    if self.enduring_payment is not None
                    else None
                ),
                "account_reference_id": (
                    str(self.account_reference_id)
                    if self.account_reference_id is not None
                    else None
                ),
            }
        )


@dataclass(frozen=True)
class AccountNumberRefundRequest:
    payment_id: UUID

    def to_payload(self) -> Dict[str, Any]:
        return {"type": "account_number", "payment_id": str(self.payment_id)}


@dataclass(frozen=True)
class FullRefundRequest:
    payment_id: UUID
    pcr: Pcr
    consent_redirect: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "type": "full_refund",
            "payment_id": str(self.payment_id),
            "pcr": self.pcr.to_payload(),
            "consent_redirect": self.consent_redirect,
        }


@dataclass(frozen=True)
class PartialRefundRequest:
    payment_id: UUID
    amount: Amount
    pcr: Pcr
    consent_redirect: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "type": "partial_refund",
            "payment_id": str(self.payment_id),
            "amount": self.amount.to_payload(),
            "pcr": self.pcr.to_payload(),
            "consent_redirect": self.consent_redirect,
        }


RefundRequest = Union[AccountNumberRefundRequest, FullRefundRequest, PartialRefundRequest]


# --- Responses ---


@dataclass(frozen=True)
class CreateConsentResponse:
    consent_id: UUID
    redirect_uri: Optional[str]
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "CreateConsentResponse":
        payload = _as_mapping(payload, "a created consent")
        return cls(
            consent_id=_parse_uuid(_require(payload, "consent_id"), "consent_id"),
            redirect_uri=payload.get("redirect_uri"),
            raw=dict(payload),
        )


@dataclass(frozen=True)
class CreateQuickPaymentResponse:
    quick_payment_id: UUID
    redirect_uri: Optional[str]
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "CreateQuickPaymentResponse":
        payload = _as_mapping(payload, "a created quick payment")
        return cls(
            quick_payment_id=_parse_uuid(
                _require(payload, "quick_payment_id"), "quick_payment_id"
            ),
            redirect_uri=payload.get("redirect_uri"),
            raw=dict(payload),
        )


@dataclass(frozen=True)
class PaymentResponse:
    payment_id: UUID
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "PaymentResponse":
        payload = _as_mapping(payload, "a created payment")
        return cls(
            payment_id=_parse_uuid(_require(payload, "payment_id"), "payment_id"),
            raw=dict(payload),
        )


@dataclass(frozen=True)
class RefundResponse:
    refund_id: UUID
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "RefundResponse":
        payload = _as_mapping(payload, "a created refund")
        return cls(
            refund_id=_parse_uuid(_require(payload, "refund_id"), "refund_id"),
            raw=dict(payload),
        )


@dataclass(frozen=True)
class ConsentDetail:
    """The consent request as echoed back by the API."""

    type: Optional[str]
    flow: Optional[AuthFlowDetail]
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, payload: Optional[Mapping[str, Any]]) -> "ConsentDetail":
        payload = _as_mapping(payload or {}, "consent detail")
        flow = payload.get("flow")
        return cls(
            type=payload.get("type"),
            flow=parse_flow_detail(flow.get("detail")) if isinstance(flow, Mapping) else None,
            raw=dict(payload),
        )


@dataclass(frozen=True)
class Payment:
    payment_id: UUID
    status: PaymentStatus
    creation_timestamp: Optional[datetime]
    status_updated_timestamp: Optional[datetime]
    type: Optional[str] = None
    accepted_reason: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "Payment":
        payload = _as_mapping(payload, "a payment")
        return cls(
            payment_id=_parse_uuid(_require(payload, "payment_id"), "payment_id"),
            status=_decode_status(PaymentStatus, _require(payload, "status")),
            creation_timestamp=_parse_timestamp(payload.get("creation_timestamp")),
            status_updated_timestamp=_parse_timestamp(payload.get("status_updated_timestamp")),
            type=payload.get("type"),
            accepted_reason=payload.get("accepted_reason"),
            raw=dict(payload),
        )


@dataclass(frozen=True)
class Consent:
    consent_id: UUID
    status: ConsentStatus
    creation_timestamp: Optional[datetime]
    status_updated_timestamp: Optional[datetime]
    detail: ConsentDetail
    payments: Tuple[Payment, ...] = ()
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "Consent":
        payload = _as_mapping(payload, "a consent")
        return cls(
            consent_id=_parse_uuid(_require(payload, "consent_id"), "consent_id"),
            status=_decode_status(ConsentStatus, _require(payload, "status")),
            creation_timestamp=_parse_timestamp(payload.get("creation_timestamp")),
            status_updated_timestamp=_parse_timestamp(payload.get("status_updated_timestamp")),
            detail=ConsentDetail.from_response(payload.get("detail")),
            payments=tuple(Payment.from_response(item) for item in payload.get("payments") or ()),
            raw=dict(payload),
        )


@dataclass(frozen=True)
class QuickPayment:
    quick_payment_id: UUID
    consent: Consent
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> ConsentStatus:
        return self.consent.status

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "QuickPayment":
        payload = _as_mapping(payload, "a quick payment")
        return cls(
            quick_payment_id=_parse_uuid(
                _require(payload, "quick_payment_id"), "quick_payment_id"
            ),
            consent=Consent.from_response(_require(payload, "consent")),
            raw=dict(payload),
        )


@dataclass(frozen=True)
class Refund:
    refund_id: UUID
    status: RefundStatus
    creation_timestamp: Optional[datetime]
    status_updated_timestamp: Optional[datetime]
    account_number: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "Refund":
        payload = _as_mapping(payload, "a refund")
        return cls(
            refund_id=_parse_uuid(_require(payload, "refund_id"), "refund_id"),
            status=_decode_status(RefundStatus, _require(payload, "status")),
            creation_timestamp=_parse_timestamp(payload.get("creation_timestamp")),
            status_updated_timestamp=_parse_timestamp(payload.get("status_updated_timestamp")),
            account_number=payload.get("account_number"),
            raw=dict(payload),
        )


@dataclass(frozen=True)
class BankMetadata:
    name: str
    features: Dict[str, Any]
    redirect_flow: Dict[str, Any]
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "BankMetadata":
        payload = _as_mapping(payload, "bank metadata")
        return cls(
            name=str(_require(payload, "name")),
            features=dict(payload.get("features") or {}),
            redirect_flow=dict(payload.get("redirect_flow") or {}),
            raw=dict(payload),
        )

    @classmethod
    def list_from_response(cls, payload: Any) -> List["BankMetadata"]:
        if not isinstance(payload, list):
            raise BlinkServiceError("Expected a list of bank metadata from the meta endpoint")
        return [cls.from_response(item) for item in payload]
