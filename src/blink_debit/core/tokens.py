"""
OAuth2 client-credentials token handling.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Callable, Optional

import jwt
import requests

from .config import BlinkDebitConfig
from .errors import BlinkServiceError
from .http import REQUEST_ID_HEADER, build_session, send_request
from .retry import RetryPolicy, run_with_retry

__all__ = [
    "AccessTokenManager",
    "DEFAULT_TOKEN_LIFETIME_SECONDS",
    "OAuthApi",
    "REFRESH_BUFFER_SECONDS",
    "TOKEN_PATH",
]

TOKEN_PATH = "/oauth2/token"

# refresh this long before the token's exp claim
REFRESH_BUFFER_SECONDS = 60
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600

logger = logging.getLogger(__name__)


class OAuthApi:
    """Exchanges the client credentials for a bearer token."""

    def __init__(
        self,
        config: BlinkDebitConfig,
        *,
        session: Optional[requests.Session] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.session = session or build_session(config)
        self.retry_policy = retry_policy or config.retry_policy()
        self.sleep = sleep

    def generate_access_token(self, request_id: Optional[str] = None) -> str:
        request_id = request_id or str(uuid.uuid4())
        url = f"{self.config.debit_url}{TOKEN_PATH}"
        body = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "grant_type": "client_credentials",
        }
        headers = {"Accept": "application/json", REQUEST_ID_HEADER: request_id}

        payload = run_with_retry(
            lambda _attempt: send_request(
                self.session,
                "POST",
                url,
                headers=headers,
                body=body,
                timeout=self.config.timeout_seconds,
            ),
            policy=self.retry_policy,
            sleep=self.sleep,
            description=f"POST {TOKEN_PATH}",
        )
        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise BlinkServiceError("Token response did not contain an access_token")
        return str(payload["access_token"])


def _token_expiry(token: str, now: float) -> float:
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        logger.debug("Access token is not a decodable JWT, assuming default lifetime")
        return now + DEFAULT_TOKEN_LIFETIME_SECONDS
    exp = claims.get("exp")
    if isinstance(exp, (int, float)):
        return float(exp)
    return now + DEFAULT_TOKEN_LIFETIME_SECONDS


class AccessTokenManager:
    """
    Caches the bearer token and refreshes it shortly before it expires.

    The token's ``exp`` claim is read without verifying the signature; tokens
    without one are treated as valid for an hour. All access is serialised by
    a lock so concurrent callers trigger at most one refresh.
    """

    def __init__(
        self,
        oauth_api: OAuthApi,
        *,
        initial_token: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.oauth_api = oauth_api
        self._clock = clock
        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self._expires_at = 0.0
        if initial_token:
            self._store(initial_token)

    def _store(self, token: str) -> None:
        self._token = token
        self._expires_at = _token_expiry(token, self._clock())

    def _is_fresh(self) -> bool:
        return (
            self._token is not None
            and self._clock() < self._expires_at - REFRESH_BUFFER_SECONDS
        )

    def get_access_token(self) -> str:
        token = self._token
        if token is not None and self._is_fresh():
            return token
        with self._lock:
            if not self._is_fresh():
                logger.debug("Fetching a new Blink Debit access token")
                self._store(self.oauth_api.generate_access_token())
            assert self._token is not None
            return self._token

    def refresh_token(self) -> None:
        with self._lock:
            logger.debug("Refreshing the Blink Debit access token")
            self._store(self.oauth_api.generate_access_token())

    def clear_token(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = 0.0
