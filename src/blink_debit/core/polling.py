"""
Await engine: re-fetch a resource until it reaches a terminal status.

The wait budget counts poll cycles rather than wall-clock time. With a budget
of ``W`` seconds and the default one second interval the engine performs at
most ``W`` fetches separated by ``W`` delays before giving up.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from .errors import (
    BlinkAwaitError,
    BlinkConsentRejectedError,
    BlinkConsentTimeoutError,
    BlinkDebitError,
    BlinkInvalidValueError,
    BlinkPaymentRejectedError,
    BlinkPaymentTimeoutError,
    BlinkRejectedError,
    BlinkResourceNotFoundError,
    BlinkServiceError,
    BlinkTimeoutError,
)
from .status import ResourceKind, StatusOutcome, classify

__all__ = [
    "AwaitFailureKind",
    "AwaitOutcome",
    "POLL_INTERVAL_SECONDS",
    "ResourcePoller",
    "poll_until_terminal",
]

POLL_INTERVAL_SECONDS = 1.0

logger = logging.getLogger(__name__)


class AwaitFailureKind(str, Enum):
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"
    GATEWAY_TIMED_OUT = "gateway_timed_out"
    NOT_FOUND = "not_found"
    SERVICE_FAILURE = "service_failure"


@dataclass(frozen=True)
class AwaitOutcome:
    """
    Result of one await session.

    Exactly one of ``resource`` (on success) or ``error`` (with ``failure``
    naming its kind) is set.
    """

    kind: ResourceKind
    resource_id: Any
    resource: Any = None
    failure: Optional[AwaitFailureKind] = None
    error: Optional[BlinkDebitError] = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    def unwrap(self) -> Any:
        """Return the resource or raise the precise error."""
        if self.error is not None:
            raise self.error.with_traceback(None)
        return self.resource

    def unwrap_generic(self) -> Any:
        """Return the resource or raise :class:`BlinkAwaitError` caused by the precise error."""
        if self.error is None:
            return self.resource
        raise BlinkAwaitError(
            str(self.error),
            failure=self.failure,
            resource_kind=self.kind,
            resource_id=self.resource_id,
        ) from self.error


@dataclass(frozen=True)
class ResourcePoller:
    """
    How to observe (and optionally revoke) one kind of resource.

    ``fetch`` retrieves the resource by id and ``status_of`` extracts its
    status. ``revoke`` is only used for kinds that are revoked when the wait
    budget runs out.
    """

    kind: ResourceKind
    fetch: Callable[[Any], Any]
    status_of: Callable[[Any], Any]
    revoke: Optional[Callable[[Any], None]] = None


def _rejected_error(kind: ResourceKind, resource_id: Any) -> BlinkRejectedError:
    label = kind.label.capitalize()
    if kind.is_consent:
        return BlinkConsentRejectedError(
            f"{label} [{resource_id}] has been rejected or revoked",
            resource_kind=kind,
            resource_id=resource_id,
        )
    return BlinkPaymentRejectedError(
        f"{label} [{resource_id}] has been rejected",
        resource_kind=kind,
        resource_id=resource_id,
    )


def _timeout_error(kind: ResourceKind, resource_id: Any, *, gateway: bool) -> BlinkTimeoutError:
    if gateway:
        message = f"Gateway timed out for {kind.label} [{resource_id}]"
    else:
        message = f"{kind.label.capitalize()} [{resource_id}] did not complete in time"
    error_type = BlinkConsentTimeoutError if kind.is_consent else BlinkPaymentTimeoutError
    return error_type(message, resource_kind=kind, resource_id=resource_id, gateway=gateway)


def _revoke_after_timeout(poller: ResourcePoller, resource_id: Any, error: BlinkTimeoutError) -> None:
    if poller.revoke is None or not poller.kind.revocable_on_timeout:
        return
    try:
        poller.revoke(resource_id)
    except BlinkDebitError as exc:
        logger.error(
            "Revoking %s %s after the wait ran out failed: %s", poller.kind.label, resource_id, exc
        )
        error.revocation_error = exc
        error.__context__ = exc
    else:
        logger.info("Revoked %s %s after the wait ran out", poller.kind.label, resource_id)


def poll_until_terminal(
    poller: ResourcePoller,
    resource_id: Any,
    max_wait_seconds: int,
    *,
    sleep: Callable[[float], None] = time.sleep,
    interval: float = POLL_INTERVAL_SECONDS,
) -> AwaitOutcome:
    """
    Poll ``poller`` for ``resource_id`` until success, a terminal failure, or
    the wait budget is spent.

    Never raises for remote failures; they are reported on the returned
    :class:`AwaitOutcome`. A budget below one raises
    :class:`BlinkInvalidValueError` straight away.
    """
    if resource_id is None:
        raise BlinkInvalidValueError(f"{poller.kind.label.capitalize()} ID must not be null")
    if isinstance(max_wait_seconds, bool) or not isinstance(max_wait_seconds, int):
        raise BlinkInvalidValueError(f"max_wait_seconds must be an integer, got {max_wait_seconds!r}")
    if max_wait_seconds < 1:
        raise BlinkInvalidValueError(f"max_wait_seconds must be at least 1, got {max_wait_seconds}")

    kind = poller.kind

    def failed(failure: AwaitFailureKind, error: BlinkDebitError) -> AwaitOutcome:
        return AwaitOutcome(kind=kind, resource_id=resource_id, failure=failure, error=error)

    for _cycle in range(max_wait_seconds):
        try:
            resource = poller.fetch(resource_id)
            status = poller.status_of(resource)
            logger.debug("The last status polled was: %s for %s %s", status, kind.label, resource_id)
            outcome = classify(kind, status)
        except BlinkResourceNotFoundError as exc:
            return failed(AwaitFailureKind.NOT_FOUND, exc)
        except BlinkServiceError as exc:
            return failed(AwaitFailureKind.SERVICE_FAILURE, exc)

        if outcome is StatusOutcome.SUCCESS:
            return AwaitOutcome(kind=kind, resource_id=resource_id, resource=resource)
        if outcome is StatusOutcome.REJECTED:
            return failed(AwaitFailureKind.REJECTED, _rejected_error(kind, resource_id))
        if outcome is StatusOutcome.GATEWAY_TIMED_OUT:
            return failed(
                AwaitFailureKind.GATEWAY_TIMED_OUT,
                _timeout_error(kind, resource_id, gateway=True),
            )
        sleep(interval)

    timeout = _timeout_error(kind, resource_id, gateway=False)
    _revoke_after_timeout(poller, resource_id, timeout)
    return failed(AwaitFailureKind.TIMED_OUT, timeout)
