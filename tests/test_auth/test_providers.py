"""Tests for the built-in auth providers."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
import pytest

from fluentapi.auth.providers import (
    ANONYMOUS,
    CachingAuthProvider,
    StaticTokenProvider,
    UsernamePasswordAuthProvider,
)
from fluentapi.auth.token_cache import CachedToken
from fluentapi.exceptions import AuthError, ConfigError

LOGIN_URL = "https://auth.example.com/login"
T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


class _Clock:
    def __init__(self) -> None:
        self.now = T0

    def __call__(self) -> datetime:
        return self.now


def _login_client(
    responses: Optional[dict] = None, status_code: int = 200
) -> tuple[httpx.Client, list[dict]]:
    """Client whose login endpoint answers with a token per username."""
    payloads: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        payloads.append(payload)
        if responses is not None:
            return httpx.Response(status_code, json=responses)
        user = payload["username"]
        return httpx.Response(
            status_code, json={"token": f"tok-{user}-{len(payloads)}", "expiresIn": 120}
        )

    return httpx.Client(transport=httpx.MockTransport(handler)), payloads


# ---------------------------------------------------------------------------
# StaticTokenProvider
# ---------------------------------------------------------------------------


class TestStaticTokenProvider:
    def test_fixed_token(self) -> None:
        provider = StaticTokenProvider("abc")
        assert provider.get_auth_token() == "abc"
        assert provider.get_auth_token("ann", "pw") == "abc"

    def test_env_source_resolved_lazily(self, monkeypatch: pytest.MonkeyPatch) -> None:
        provider = StaticTokenProvider(source="env:FLUENTAPI_TEST_TOKEN")
        monkeypatch.setenv("FLUENTAPI_TEST_TOKEN", "from-env")
        assert provider.get_auth_token() == "from-env"
        monkeypatch.setenv("FLUENTAPI_TEST_TOKEN", "changed")
        assert provider.get_auth_token() == "from-env"

    def test_missing_source_raises_on_use(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("FLUENTAPI_TEST_TOKEN", raising=False)
        provider = StaticTokenProvider(source="env:FLUENTAPI_TEST_TOKEN")
        with pytest.raises(ConfigError):
            provider.get_auth_token()

    def test_requires_token_or_source(self) -> None:
        with pytest.raises(AuthError):
            StaticTokenProvider()


# ---------------------------------------------------------------------------
# CachingAuthProvider
# ---------------------------------------------------------------------------


class _CountingProvider(CachingAuthProvider):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.fetches: list[Optional[str]] = []

    def fetch_token(self, username, password) -> Optional[CachedToken]:
        self.fetches.append(username)
        if username == "nobody":
            return None
        return CachedToken(
            token=f"t{len(self.fetches)}",
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=10),
        )


class TestCachingAuthProvider:
    def test_cached_per_identity(self) -> None:
        provider = _CountingProvider()
        assert provider.get_auth_token("ann") == "t1"
        assert provider.get_auth_token("ann") == "t1"
        assert provider.get_auth_token("bo") == "t2"
        assert provider.get_auth_token() == "t3"
        assert ANONYMOUS in provider.cache
        assert provider.fetches == ["ann", "bo", None]

    def test_none_means_no_token(self) -> None:
        provider = _CountingProvider()
        assert provider.get_auth_token("nobody") is None
        assert provider.get_auth_token("nobody") is None
        assert provider.fetches == ["nobody", "nobody"]

    def test_safety_margin_applied(self) -> None:
        provider = _CountingProvider(safety_margin=timedelta(minutes=1))
        provider.get_auth_token("ann")
        entry = provider.cache.get("ann")
        remaining = entry.expires_at - datetime.now(timezone.utc)
        assert remaining < timedelta(minutes=9, seconds=1)

    def test_invalidate_forces_refetch(self) -> None:
        provider = _CountingProvider()
        provider.get_auth_token("ann")
        provider.invalidate("ann")
        assert provider.get_auth_token("ann") == "t2"


# ---------------------------------------------------------------------------
# UsernamePasswordAuthProvider
# ---------------------------------------------------------------------------


class TestUsernamePasswordAuthProvider:
    def test_login_payload_and_token(self) -> None:
        client, payloads = _login_client()
        provider = UsernamePasswordAuthProvider(LOGIN_URL, client=client)
        assert provider.get_auth_token("ann", "pw") == "tok-ann-1"
        assert payloads == [{"username": "ann", "password": "pw"}]

    def test_cached_per_user(self) -> None:
        client, payloads = _login_client()
        provider = UsernamePasswordAuthProvider(LOGIN_URL, client=client)
        provider.get_auth_token("ann", "pw")
        provider.get_auth_token("ann", "pw")
        provider.get_auth_token("bo", "pw")
        assert [p["username"] for p in payloads] == ["ann", "bo"]

    def test_refetch_after_expiry_minus_margin(self) -> None:
        clock = _Clock()
        client, payloads = _login_client()
        provider = UsernamePasswordAuthProvider(LOGIN_URL, client=client, clock=clock)
        assert provider.get_auth_token("ann", "pw") == "tok-ann-1"
        clock.now = T0 + timedelta(seconds=89)
        assert provider.get_auth_token("ann", "pw") == "tok-ann-1"
        # expiresIn 120 minus the 30 second margin
        clock.now = T0 + timedelta(seconds=90)
        assert provider.get_auth_token("ann", "pw") == "tok-ann-2"

    def test_defaults_used_without_identity(self) -> None:
        client, payloads = _login_client()
        provider = UsernamePasswordAuthProvider(
            LOGIN_URL, default_username="admin", default_password="root", client=client
        )
        assert provider.get_auth_token() == "tok-admin-1"
        assert provider.get_auth_token("ann") == "tok-ann-2"
        assert payloads[1] == {"username": "ann", "password": "root"}

    def test_no_user_means_no_token(self) -> None:
        client, payloads = _login_client()
        provider = UsernamePasswordAuthProvider(LOGIN_URL, client=client)
        assert provider.get_auth_token() is None
        assert payloads == []

    def test_missing_password(self) -> None:
        client, _ = _login_client()
        provider = UsernamePasswordAuthProvider(LOGIN_URL, client=client)
        with pytest.raises(AuthError, match="No password"):
            provider.get_auth_token("ann")

    def test_custom_fields_and_default_ttl(self) -> None:
        client, _ = _login_client({"access_token": "xyz"})
        clock = _Clock()
        provider = UsernamePasswordAuthProvider(
            LOGIN_URL, client=client, token_field="access_token", default_ttl=300, clock=clock
        )
        assert provider.get_auth_token("ann", "pw") == "xyz"
        assert provider.cache.get("ann").expires_at == T0 + timedelta(seconds=270)

    @pytest.mark.parametrize(
        "responses,status_code,match",
        [
            ({"error": "denied"}, 401, "failed with status 401"),
            ({"expiresIn": 60}, 200, "missing 'token'"),
            ({"token": ""}, 200, "missing 'token'"),
            ({"token": "t", "expiresIn": "soon"}, 200, "not a number"),
            ([1, 2], 200, "not a JSON object"),
        ],
    )
    def test_bad_login_responses(self, responses, status_code: int, match: str) -> None:
        client, _ = _login_client(responses, status_code)
        provider = UsernamePasswordAuthProvider(LOGIN_URL, client=client)
        with pytest.raises(AuthError, match=match):
            provider.get_auth_token("ann", "pw")
        assert "ann" not in provider.cache

    def test_non_json_response(self) -> None:
        client = httpx.Client(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>"))
        )
        provider = UsernamePasswordAuthProvider(LOGIN_URL, client=client)
        with pytest.raises(AuthError, match="not valid JSON"):
            provider.get_auth_token("ann", "pw")

    def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        provider = UsernamePasswordAuthProvider(LOGIN_URL, client=client)
        with pytest.raises(AuthError, match="Login request failed"):
            provider.get_auth_token("ann", "pw")
