"""
HTTP plumbing for the Blink Debit API.

:class:`BlinkHttp` turns one logical call into one or more HTTP exchanges:
every attempt carries the same ``request-id`` and ``idempotency-key`` headers,
failures are mapped onto the :mod:`blink_debit.core.errors` hierarchy, and
retries follow the configured :class:`~blink_debit.core.retry.RetryPolicy`.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Type

import requests
from requests.adapters import HTTPAdapter

from .. import __version__
from .config import BlinkDebitConfig
from .errors import (
    BlinkApiError,
    BlinkClientError,
    BlinkForbiddenError,
    BlinkNotImplementedError,
    BlinkRateLimitExceededError,
    BlinkRequestTimeoutError,
    BlinkResourceNotFoundError,
    BlinkServerError,
    BlinkServiceError,
    BlinkTransportError,
    BlinkUnauthorisedError,
)
from .retry import RetryPolicy, run_with_retry

if TYPE_CHECKING:
    from .tokens import AccessTokenManager

__all__ = [
    "BlinkHttp",
    "CORRELATION_ID_HEADER",
    "CUSTOMER_IP_HEADER",
    "CUSTOMER_USER_AGENT_HEADER",
    "IDEMPOTENCY_KEY_HEADER",
    "REQUEST_ID_HEADER",
    "USER_AGENT",
    "build_session",
    "error_for_response",
    "send_request",
]

REQUEST_ID_HEADER = "request-id"
CORRELATION_ID_HEADER = "x-correlation-id"
IDEMPOTENCY_KEY_HEADER = "idempotency-key"
CUSTOMER_IP_HEADER = "x-customer-ip"
CUSTOMER_USER_AGENT_HEADER = "x-customer-user-agent"
USER_AGENT = f"Python/Blink SDK {__version__}"

logger = logging.getLogger(__name__)

_STATUS_ERRORS: Dict[int, Type[BlinkApiError]] = {
    401: BlinkUnauthorisedError,
    403: BlinkForbiddenError,
    404: BlinkResourceNotFoundError,
    408: BlinkRequestTimeoutError,
    429: BlinkRateLimitExceededError,
    501: BlinkNotImplementedError,
}


def build_session(config: BlinkDebitConfig) -> requests.Session:
    """Create a pooled session sized from ``config.max_connections``."""
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=config.max_connections,
        pool_maxsize=config.max_connections,
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers["User-Agent"] = USER_AGENT
    return session


def _error_detail(response: requests.Response) -> tuple[Optional[str], Optional[str]]:
    try:
        body = response.json()
    except ValueError:
        return (response.text or None), None
    if isinstance(body, dict):
        detail = body.get("message") or body.get("error") or body.get("detail")
        code = body.get("code")
        return (str(detail) if detail else None), (str(code) if code else None)
    return (response.text or None), None


def error_for_response(response: requests.Response) -> BlinkApiError:
    """Map a non-2xx response onto the matching exception (not raised)."""
    status = response.status_code
    detail, code = _error_detail(response)
    correlation_id = response.headers.get(CORRELATION_ID_HEADER)

    error_type = _STATUS_ERRORS.get(status)
    if error_type is None:
        if 400 <= status < 500:
            error_type = BlinkClientError
        elif status >= 500:
            error_type = BlinkServerError
        else:
            error_type = BlinkApiError
    return error_type(status, detail, correlation_id=correlation_id, code=code)


def send_request(
    session: requests.Session,
    method: str,
    url: str,
    *,
    headers: Dict[str, str],
    body: Any = None,
    timeout: float,
    debug: bool = False,
) -> Any:
    """
    Perform exactly one HTTP exchange and decode the JSON reply.

    Returns ``None`` for an empty 2xx body.
    """
    request_id = headers.get(REQUEST_ID_HEADER)
    if debug:
        logger.debug("%s %s request-id=%s body=%s", method, url, request_id, body)
    try:
        response = session.request(method, url, headers=headers, json=body, timeout=timeout)
    except (requests.ConnectionError, requests.Timeout) as exc:
        raise BlinkTransportError(f"{method} {url} did not complete: {exc}") from exc
    except requests.RequestException as exc:
        raise BlinkServiceError(f"{method} {url} could not be sent: {exc}") from exc

    if debug:
        logger.debug(
            "%s %s request-id=%s -> %s %s", method, url, request_id, response.status_code, response.text
        )

    if not 200 <= response.status_code < 300:
        error = error_for_response(response)
        logger.error(
            "%s | %s %s failed with %s: %s",
            request_id,
            method,
            url,
            response.status_code,
            error.detail,
        )
        raise error

    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise BlinkServiceError(
            f"Failed to parse JSON from Blink Debit at {url}: {response.text}"
        ) from exc


class BlinkHttp:
    """
    Authenticated, retried access to the Blink Debit REST endpoints.
    """

    def __init__(
        self,
        config: BlinkDebitConfig,
        token_manager: "AccessTokenManager",
        *,
        session: Optional[requests.Session] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.token_manager = token_manager
        self.session = session or build_session(config)
        self.retry_policy = retry_policy or config.retry_policy()
        self.sleep = sleep

    def url_for(self, path: str) -> str:
        return f"{self.config.debit_url}{path}"

    def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        request_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
        customer_ip: Optional[str] = None,
        customer_user_agent: Optional[str] = None,
    ) -> Any:
        """
        Issue ``method path`` as one logical call.

        ``request_id`` defaults to a fresh UUID; it and ``idempotency_key`` are
        reused unchanged by every retry of this call.
        """
        request_id = request_id or str(uuid.uuid4())
        url = self.url_for(path)
        fixed_headers = {"Accept": "application/json", REQUEST_ID_HEADER: request_id}
        if idempotency_key:
            fixed_headers[IDEMPOTENCY_KEY_HEADER] = idempotency_key
        if customer_ip:
            fixed_headers[CUSTOMER_IP_HEADER] = customer_ip
        if customer_user_agent:
            fixed_headers[CUSTOMER_USER_AGENT_HEADER] = customer_user_agent

        def attempt(index: int) -> Any:
            headers = dict(fixed_headers)
            headers["Authorization"] = f"Bearer {self.token_manager.get_access_token()}"
            if index:
                logger.debug("%s %s attempt %d request-id=%s", method, path, index + 1, request_id)
            return send_request(
                self.session,
                method,
                url,
                headers=headers,
                body=body,
                timeout=self.config.timeout_seconds,
                debug=self.config.debug_mode,
            )

        return run_with_retry(
            attempt,
            policy=self.retry_policy,
            sleep=self.sleep,
            on_unauthorised=self.token_manager.refresh_token,
            description=f"{method} {path}",
        )

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, body: Any, **kwargs: Any) -> Any:
        return self.request("POST", path, body=body, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)

    def close(self) -> None:
        self.session.close()
