from __future__ import annotations

import threading
from unittest.mock import Mock

import jwt
import pytest

from blink_debit.core.errors import BlinkForbiddenError, BlinkServiceError
from blink_debit.core.tokens import (
    DEFAULT_TOKEN_LIFETIME_SECONDS,
    REFRESH_BUFFER_SECONDS,
    TOKEN_PATH,
    AccessTokenManager,
    OAuthApi,
)
from conftest import BASE_URL, FakeSession, make_response

NOW = 1_700_000_000.0


def signed_token(exp=None, subject="client-id"):
    claims = {"sub": subject}
    if exp is not None:
        claims["exp"] = int(exp)
    return jwt.encode(claims, "test-signing-key-that-is-long-enough-for-hs256", algorithm="HS256")


class TestOAuthApi:
    def test_posts_client_credentials(self, config):
        session = FakeSession().queue(make_response(200, {"access_token": "abc", "expires_in": 3600}))
        api = OAuthApi(config, session=session, sleep=lambda _: None)

        assert api.generate_access_token() == "abc"

        sent = session.requests[0]
        assert sent.method == "POST"
        assert sent.url == f"{BASE_URL}{TOKEN_PATH}"
        assert sent.json == {
            "client_id": "client-id",
            "client_secret": "client-secret",
            "grant_type": "client_credentials",
        }
        assert "Authorization" not in sent.headers

    def test_server_errors_are_retried(self, config):
        sleeps = []
        session = FakeSession().queue(make_response(502), make_response(200, {"access_token": "abc"}))
        api = OAuthApi(config, session=session, sleep=sleeps.append)

        assert api.generate_access_token() == "abc"
        assert sleeps == [1.0]

    def test_forbidden_is_raised(self, config):
        session = FakeSession().queue(make_response(403))
        api = OAuthApi(config, session=session, sleep=lambda _: None)
        with pytest.raises(BlinkForbiddenError):
            api.generate_access_token()

    def test_missing_token_field(self, config):
        session = FakeSession().queue(make_response(200, {"token_type": "Bearer"}))
        api = OAuthApi(config, session=session, sleep=lambda _: None)
        with pytest.raises(BlinkServiceError):
            api.generate_access_token()


class TestAccessTokenManager:
    def test_fetches_once_while_fresh(self):
        oauth = Mock()
        oauth.generate_access_token.return_value = signed_token(exp=NOW + 3600)
        manager = AccessTokenManager(oauth, clock=lambda: NOW)

        first = manager.get_access_token()
        second = manager.get_access_token()

        assert first == second
        oauth.generate_access_token.assert_called_once_with()

    def test_refreshes_inside_buffer(self):
        clock = {"now": NOW}
        oauth = Mock()
        oauth.generate_access_token.side_effect = [
            signed_token(exp=NOW + 120, subject="first"),
            signed_token(exp=NOW + 3600, subject="second"),
        ]
        manager = AccessTokenManager(oauth, clock=lambda: clock["now"])

        first = manager.get_access_token()
        clock["now"] = NOW + 120 - REFRESH_BUFFER_SECONDS + 1
        second = manager.get_access_token()

        assert first != second
        assert oauth.generate_access_token.call_count == 2

    def test_opaque_token_assumes_default_lifetime(self):
        clock = {"now": NOW}
        oauth = Mock()
        oauth.generate_access_token.side_effect = ["opaque-1", "opaque-2"]
        manager = AccessTokenManager(oauth, clock=lambda: clock["now"])

        assert manager.get_access_token() == "opaque-1"
        clock["now"] = NOW + DEFAULT_TOKEN_LIFETIME_SECONDS - REFRESH_BUFFER_SECONDS - 1
        assert manager.get_access_token() == "opaque-1"
        clock["now"] = NOW + DEFAULT_TOKEN_LIFETIME_SECONDS
        assert manager.get_access_token() == "opaque-2"

    def test_seeded_token_used_without_fetch(self):
        oauth = Mock()
        manager = AccessTokenManager(oauth, initial_token="seeded", clock=lambda: NOW)
        assert manager.get_access_token() == "seeded"
        oauth.generate_access_token.assert_not_called()

    def test_expired_seed_is_replaced(self):
        oauth = Mock()
        oauth.generate_access_token.return_value = "fresh"
        manager = AccessTokenManager(
            oauth, initial_token=signed_token(exp=NOW - 10), clock=lambda: NOW
        )
        assert manager.get_access_token() == "fresh"

    def test_refresh_token_always_fetches(self):
        oauth = Mock()
        oauth.generate_access_token.side_effect = ["one", "two"]
        manager = AccessTokenManager(oauth, clock=lambda: NOW)

        assert manager.get_access_token() == "one"
        manager.refresh_token()
        assert manager.get_access_token() == "two"

    def test_clear_token_forces_fetch(self):
        oauth = Mock()
        oauth.generate_access_token.side_effect = ["one", "two"]
        manager = AccessTokenManager(oauth, clock=lambda: NOW)

        manager.get_access_token()
        manager.clear_token()
        assert manager.get_access_token() == "two"

    def test_concurrent_callers_share_one_fetch(self):
        oauth = Mock()
        oauth.generate_access_token.return_value = signed_token(exp=NOW + 3600)
        manager = AccessTokenManager(oauth, clock=lambda: NOW)
        results = []

        threads = [
            threading.Thread(target=lambda: results.append(manager.get_access_token()))
            for _ in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(set(results)) == 1
        oauth.generate_access_token.assert_called_once_with()
