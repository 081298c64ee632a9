"""
Helpers for constructing validated Blink Debit request models.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union
from uuid import UUID

from .errors import BlinkInvalidValueError
from .models import (
    AccountNumberRefundRequest,
    Amount,
    AuthFlowDetail,
    Bank,
    DecoupledFlow,
    DecoupledFlowHint,
    EnduringConsentRequest,
    EnduringPaymentRequest,
    FlowHint,
    FullRefundRequest,
    GatewayFlow,
    IdentifierType,
    PartialRefundRequest,
    PaymentRequest,
    Pcr,
    Period,
    QuickPaymentRequest,
    RedirectFlow,
    RedirectFlowHint,
    RefundRequest,
    SingleConsentRequest,
)

__all__ = [
    "PCR_FIELD_MAX_LENGTH",
    "build_amount",
    "build_decoupled_flow",
    "build_enduring_consent_request",
    "build_flow_hint",
    "build_gateway_flow",
    "build_payment_request",
    "build_pcr",
    "build_quick_payment_request",
    "build_redirect_flow",
    "build_refund_request",
    "build_single_consent_request",
]

PCR_FIELD_MAX_LENGTH = 12
SUPPORTED_CURRENCY = "NZD"


def _require_text(value: Optional[str], label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise BlinkInvalidValueError(f"{label} must not be blank")
    return text


def _as_uuid(value: Union[UUID, str, None], label: str) -> UUID:
    if value is None:
        raise BlinkInvalidValueError(f"{label} must not be null")
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as exc:
        raise BlinkInvalidValueError(f"{label} is not a valid UUID: {value!r}") from exc


def _as_bank(bank: Union[Bank, str, None]) -> Bank:
    if bank is None:
        raise BlinkInvalidValueError("Bank must not be null")
    try:
        return Bank(bank)
    except ValueError as exc:
        raise BlinkInvalidValueError(f"Unknown bank: {bank}") from exc


def _as_identifier_type(identifier_type: Union[IdentifierType, str, None]) -> IdentifierType:
    if identifier_type is None:
        raise BlinkInvalidValueError("Identifier type must not be null")
    try:
        return IdentifierType(identifier_type)
    except ValueError as exc:
        raise BlinkInvalidValueError(f"Unknown identifier type: {identifier_type}") from exc


def build_amount(total: Union[str, int, float, Decimal], currency: str = SUPPORTED_CURRENCY) -> Amount:
    """
    Normalise ``total`` to a two-decimal string.

    Only NZD is accepted and the total must be strictly positive.
    """
    if currency != SUPPORTED_CURRENCY:
        raise BlinkInvalidValueError(f"Currency must be {SUPPORTED_CURRENCY}, got '{currency}'")
    try:
        value = Decimal(str(total).strip())
    except (InvalidOperation, ValueError) as exc:
        raise BlinkInvalidValueError(f"Amount total is not a number: {total!r}") from exc
    if not value.is_finite() or value <= 0:
        raise BlinkInvalidValueError(f"Amount total must be positive, got {total!r}")
    return Amount(total=str(value.quantize(Decimal("0.01"))), currency=currency)


def _truncate(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value[:PCR_FIELD_MAX_LENGTH]


def build_pcr(
    particulars: str,
    code: Optional[str] = None,
    reference: Optional[str] = None,
) -> Pcr:
    """Each field is cut to the 12 characters a bank statement line allows."""
    return Pcr(
        particulars=_truncate(_require_text(particulars, "Particulars")),
        code=_truncate(code),
        reference=_truncate(reference),
    )


def build_redirect_flow(
    bank: Union[Bank, str],
    redirect_uri: str,
    *,
    redirect_to_app: bool = False,
) -> RedirectFlow:
    return RedirectFlow(
        bank=_as_bank(bank),
        redirect_uri=_require_text(redirect_uri, "Redirect URI"),
        redirect_to_app=redirect_to_app,
    )


def build_decoupled_flow(
    bank: Union[Bank, str],
    identifier_type: Union[IdentifierType, str],
    identifier_value: str,
    callback_url: str,
) -> DecoupledFlow:
    return DecoupledFlow(
        bank=_as_bank(bank),
        identifier_type=_as_identifier_type(identifier_type),
        identifier_value=_require_text(identifier_value, "Identifier value"),
        callback_url=_require_text(callback_url, "Callback URL"),
    )


def build_flow_hint(
    bank: Union[Bank, str],
    *,
    identifier_type: Union[IdentifierType, str, None] = None,
    identifier_value: Optional[str] = None,
) -> FlowHint:
    """
    Build a gateway flow hint.

    Supplying either identifier argument selects a decoupled hint, which then
    needs both of them; otherwise a redirect hint is returned.
    """
    if identifier_type is None and identifier_value is None:
        return RedirectFlowHint(bank=_as_bank(bank))
    return DecoupledFlowHint(
        bank=_as_bank(bank),
        identifier_type=_as_identifier_type(identifier_type),
        identifier_value=_require_text(identifier_value, "Identifier value"),
    )


def build_gateway_flow(redirect_uri: str, flow_hint: Optional[FlowHint] = None) -> GatewayFlow:
    return GatewayFlow(
        redirect_uri=_require_text(redirect_uri, "Redirect URI"),
        flow_hint=flow_hint,
    )


def _require_flow(flow: Optional[AuthFlowDetail]) -> AuthFlowDetail:
    if flow is None:
        raise BlinkInvalidValueError("Authorisation flow must not be null")
    return flow


def build_single_consent_request(
    flow: AuthFlowDetail,
    pcr: Pcr,
    amount: Amount,
    *,
    hashed_customer_identifier: Optional[str] = None,
) -> SingleConsentRequest:
    if pcr is None or amount is None:
        raise BlinkInvalidValueError("PCR and amount must not be null")
    return SingleConsentRequest(
        flow=_require_flow(flow),
        pcr=pcr,
        amount=amount,
        hashed_customer_identifier=hashed_customer_identifier,
    )


def build_quick_payment_request(
    flow: AuthFlowDetail,
    pcr: Pcr,
    amount: Amount,
    *,
    hashed_customer_identifier: Optional[str] = None,
) -> QuickPaymentRequest:
    if pcr is None or amount is None:
        raise BlinkInvalidValueError("PCR and amount must not be null")
    return QuickPaymentRequest(
        flow=_require_flow(flow),
        pcr=pcr,
        amount=amount,
        hashed_customer_identifier=hashed_customer_identifier,
    )


def build_enduring_consent_request(
    flow: AuthFlowDetail,
    period: Union[Period, str],
    maximum_amount_period: Amount,
    *,
    from_timestamp: Optional[datetime] = None,
    expiry_timestamp: Optional[datetime] = None,
    maximum_amount_payment: Optional[Amount] = None,
    hashed_customer_identifier: Optional[str] = None,
) -> EnduringConsentRequest:
    if maximum_amount_period is None:
        raise BlinkInvalidValueError("Maximum amount per period must not be null")
    try:
        resolved_period = Period(period)
    except ValueError as exc:
        raise BlinkInvalidValueError(f"Unknown period: {period}") from exc
    if from_timestamp and expiry_timestamp and expiry_timestamp <= from_timestamp:
        raise BlinkInvalidValueError("Expiry timestamp must be after the from timestamp")
    return EnduringConsentRequest(
        flow=_require_flow(flow),
        period=resolved_period,
        maximum_amount_period=maximum_amount_period,
        from_timestamp=from_timestamp,
        expiry_timestamp=expiry_timestamp,
        maximum_amount_payment=maximum_amount_payment,
        hashed_customer_identifier=hashed_customer_identifier,
    )


def build_payment_request(
    consent_id: Union[UUID, str],
    *,
    amount: Optional[Amount] = None,
    pcr: Optional[Pcr] = None,
    account_reference_id: Union[UUID, str, None] = None,
) -> PaymentRequest:
    """
    Build a payment against a consent.

    Payments from an enduring consent must say how much to take, so ``amount``
    and ``pcr`` are supplied together or not at all.
    """
    if (amount is None) != (pcr is None):
        raise BlinkInvalidValueError("Enduring payments need both an amount and a PCR")
    enduring_payment = EnduringPaymentRequest(amount=amount, pcr=pcr) if amount else None
    return PaymentRequest(
        consent_id=_as_uuid(consent_id, "Consent ID"),
        enduring_payment=enduring_payment,
        account_reference_id=(
            _as_uuid(account_reference_id, "Account reference ID")
            if account_reference_id is not None
            else None
        ),
    )


def build_refund_request(
    payment_id: Union[UUID, str],
    *,
    amount: Optional[Amount] = None,
    pcr: Optional[Pcr] = None,
    consent_redirect: Optional[str] = None,
) -> RefundRequest:
    """
    Pick the refund variant from the arguments given.

    No PCR means an account-number refund; a PCR without an amount is a full
    refund; a PCR with an amount is a partial refund.
    """
    resolved_id = _as_uuid(payment_id, "Payment ID")
    if pcr is None:
        if amount is not None:
            raise BlinkInvalidValueError("A partial refund needs a PCR")
        return AccountNumberRefundRequest(payment_id=resolved_id)

    redirect = _require_text(consent_redirect, "Consent redirect")
    if amount is None:
        return FullRefundRequest(payment_id=resolved_id, pcr=pcr, consent_redirect=redirect)
    return PartialRefundRequest(
        payment_id=resolved_id,
        amount=amount,
        pcr=pcr,
        consent_redirect=redirect,
    )
