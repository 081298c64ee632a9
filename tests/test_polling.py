"""Await engine tests driven by scripted status sequences."""

from __future__ import annotations

import traceback
from unittest.mock import Mock

import pytest

from blink_debit.core.errors import (
    BlinkAwaitError,
    BlinkConsentRejectedError,
    BlinkConsentTimeoutError,
    BlinkInvalidValueError,
    BlinkPaymentRejectedError,
    BlinkPaymentTimeoutError,
    BlinkResourceNotFoundError,
    BlinkServerError,
    BlinkUnknownStatusError,
)
from blink_debit.core.polling import AwaitFailureKind, ResourcePoller, poll_until_terminal
from blink_debit.core.status import ResourceKind


def scripted_poller(kind, statuses, revoke=None):
    """Each fetch returns the next scripted status; exceptions are raised."""
    script = list(statuses)
    fetch = Mock(side_effect=lambda resource_id: script.pop(0) if len(script) > 1 else script[0])

    def fetch_next(resource_id):
        value = fetch(resource_id)
        if isinstance(value, BaseException):
            raise value
        return {"id": resource_id, "status": value}

    poller = ResourcePoller(
        kind=kind,
        fetch=fetch_next,
        status_of=lambda resource: resource["status"],
        revoke=revoke,
    )
    return poller, fetch


class TestSuccess:
    def test_success_on_first_fetch_never_sleeps(self):
        sleeps = []
        poller, fetch = scripted_poller(ResourceKind.SINGLE_CONSENT, ["Authorised"])

        outcome = poll_until_terminal(poller, "c-1", 5, sleep=sleeps.append)

        assert outcome.succeeded
        assert outcome.resource == {"id": "c-1", "status": "Authorised"}
        assert outcome.unwrap() == outcome.resource
        assert outcome.unwrap_generic() == outcome.resource
        assert fetch.call_count == 1
        assert sleeps == []

    def test_pending_then_success_sleeps_fixed_interval(self):
        sleeps = []
        poller, fetch = scripted_poller(
            ResourceKind.SINGLE_CONSENT,
            ["AwaitingAuthorisation", "AwaitingAuthorisation", "Authorised"],
        )

        outcome = poll_until_terminal(poller, "c-1", 5, sleep=sleeps.append)

        assert outcome.succeeded
        assert fetch.call_count == 3
        assert sleeps == [1.0, 1.0]

    def test_consumed_counts_as_success(self):
        poller, _ = scripted_poller(ResourceKind.QUICK_PAYMENT, ["Consumed"])
        assert poll_until_terminal(poller, "q-1", 1, sleep=lambda _: None).succeeded

    def test_settlement_in_process_keeps_polling_payment(self):
        sleeps = []
        poller, fetch = scripted_poller(
            ResourceKind.PAYMENT, ["AcceptedSettlementInProcess", "AcceptedSettlementCompleted"]
        )
        outcome = poll_until_terminal(poller, "p-1", 3, sleep=sleeps.append)
        assert outcome.succeeded
        assert fetch.call_count == 2
        assert sleeps == [1.0]


class TestTerminalFailures:
    def test_rejected_consent_stops_immediately(self):
        sleeps = []
        poller, fetch = scripted_poller(ResourceKind.SINGLE_CONSENT, ["Rejected"])

        outcome = poll_until_terminal(poller, "c-9", 10, sleep=sleeps.append)

        assert outcome.failure is AwaitFailureKind.REJECTED
        assert fetch.call_count == 1
        assert sleeps == []
        with pytest.raises(BlinkConsentRejectedError) as excinfo:
            outcome.unwrap()
        assert str(excinfo.value) == "Single consent [c-9] has been rejected or revoked"

    def test_rejected_payment_raises_payment_error(self):
        poller, _ = scripted_poller(ResourceKind.PAYMENT, ["Pending", "Rejected"])
        outcome = poll_until_terminal(poller, "p-1", 5, sleep=lambda _: None)
        with pytest.raises(BlinkPaymentRejectedError):
            outcome.unwrap()

    def test_gateway_timeout_is_reported_without_revoking(self):
        revoke = Mock()
        poller, _ = scripted_poller(ResourceKind.QUICK_PAYMENT, ["GatewayTimeout"], revoke=revoke)

        outcome = poll_until_terminal(poller, "q-1", 10, sleep=lambda _: None)

        assert outcome.failure is AwaitFailureKind.GATEWAY_TIMED_OUT
        with pytest.raises(BlinkConsentTimeoutError) as excinfo:
            outcome.unwrap()
        assert excinfo.value.gateway is True
        assert str(excinfo.value) == "Gateway timed out for quick payment [q-1]"
        revoke.assert_not_called()

    def test_not_found_stops_immediately(self):
        poller, fetch = scripted_poller(ResourceKind.PAYMENT, [BlinkResourceNotFoundError(404)])
        outcome = poll_until_terminal(poller, "p-404", 10, sleep=lambda _: None)
        assert outcome.failure is AwaitFailureKind.NOT_FOUND
        assert fetch.call_count == 1
        with pytest.raises(BlinkResourceNotFoundError):
            outcome.unwrap()

    def test_service_failure_is_not_retried_by_the_engine(self):
        poller, fetch = scripted_poller(ResourceKind.SINGLE_CONSENT, [BlinkServerError(503)])
        outcome = poll_until_terminal(poller, "c-1", 10, sleep=lambda _: None)
        assert outcome.failure is AwaitFailureKind.SERVICE_FAILURE
        assert fetch.call_count == 1

    def test_unknown_status_is_a_service_failure(self):
        poller, _ = scripted_poller(ResourceKind.SINGLE_CONSENT, ["Teleported"])
        outcome = poll_until_terminal(poller, "c-1", 10, sleep=lambda _: None)
        assert outcome.failure is AwaitFailureKind.SERVICE_FAILURE
        assert isinstance(outcome.error, BlinkUnknownStatusError)


class TestExhaustion:
    def test_wait_budget_counts_fetches_and_delays(self):
        sleeps = []
        poller, fetch = scripted_poller(ResourceKind.SINGLE_CONSENT, ["AwaitingAuthorisation"])

        outcome = poll_until_terminal(poller, "c-1", 3, sleep=sleeps.append)

        assert outcome.failure is AwaitFailureKind.TIMED_OUT
        assert fetch.call_count == 3
        assert sleeps == [1.0, 1.0, 1.0]
        with pytest.raises(BlinkConsentTimeoutError) as excinfo:
            outcome.unwrap()
        assert excinfo.value.gateway is False

    def test_single_consent_is_not_revoked(self):
        revoke = Mock()
        poller, _ = scripted_poller(ResourceKind.SINGLE_CONSENT, ["AwaitingAuthorisation"], revoke=revoke)
        poll_until_terminal(poller, "c-1", 2, sleep=lambda _: None)
        revoke.assert_not_called()

    def test_enduring_consent_is_revoked(self):
        revoke = Mock()
        poller, _ = scripted_poller(ResourceKind.ENDURING_CONSENT, ["AwaitingAuthorisation"], revoke=revoke)

        outcome = poll_until_terminal(poller, "e-1", 2, sleep=lambda _: None)

        revoke.assert_called_once_with("e-1")
        assert outcome.error.revocation_error is None

    def test_failed_revoke_is_attached_not_raised(self):
        revoke_error = BlinkServerError(500, "boom")
        revoke = Mock(side_effect=revoke_error)
        poller, _ = scripted_poller(ResourceKind.QUICK_PAYMENT, ["AwaitingAuthorisation"], revoke=revoke)

        outcome = poll_until_terminal(poller, "q-1", 1, sleep=lambda _: None)

        assert outcome.failure is AwaitFailureKind.TIMED_OUT
        with pytest.raises(BlinkConsentTimeoutError) as excinfo:
            outcome.unwrap()
        assert excinfo.value.revocation_error is revoke_error
        assert excinfo.value.__context__ is revoke_error

    def test_payment_timeout_type(self):
        poller, _ = scripted_poller(ResourceKind.PAYMENT, ["Pending"])
        outcome = poll_until_terminal(poller, "p-1", 1, sleep=lambda _: None)
        with pytest.raises(BlinkPaymentTimeoutError):
            outcome.unwrap()


class TestGenericUnwrap:
    def test_repeated_unwrap_does_not_grow_traceback(self):
        poller, _ = scripted_poller(ResourceKind.PAYMENT, ["Rejected"])
        outcome = poll_until_terminal(poller, "p-1", 5, sleep=lambda _: None)

        depths = []
        for _ in range(3):
            with pytest.raises(BlinkPaymentRejectedError) as excinfo:
                outcome.unwrap()
            depths.append(len(traceback.extract_tb(excinfo.value.__traceback__)))

        assert depths[0] == depths[1] == depths[2]

    def test_wraps_precise_error_as_cause(self):
        poller, _ = scripted_poller(ResourceKind.ENDURING_CONSENT, ["Revoked"])
        outcome = poll_until_terminal(poller, "e-1", 5, sleep=lambda _: None)

        with pytest.raises(BlinkAwaitError) as excinfo:
            outcome.unwrap_generic()

        assert excinfo.value.failure is AwaitFailureKind.REJECTED
        assert excinfo.value.resource_kind is ResourceKind.ENDURING_CONSENT
        assert excinfo.value.resource_id == "e-1"
        assert isinstance(excinfo.value.__cause__, BlinkConsentRejectedError)


@pytest.mark.parametrize("max_wait", [0, -1])
def test_budget_below_one_is_rejected_before_fetching(max_wait):
    poller, fetch = scripted_poller(ResourceKind.PAYMENT, ["Accepted"])
    with pytest.raises(BlinkInvalidValueError):
        poll_until_terminal(poller, "p-1", max_wait, sleep=lambda _: None)
    fetch.assert_not_called()


def test_missing_id_is_rejected():
    poller, fetch = scripted_poller(ResourceKind.PAYMENT, ["Accepted"])
    with pytest.raises(BlinkInvalidValueError):
        poll_until_terminal(poller, None, 5, sleep=lambda _: None)
    fetch.assert_not_called()
