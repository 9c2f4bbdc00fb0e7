"""Built-in auth providers.

* :class:`StaticTokenProvider` -- a fixed token, or one read from a credential
  source (``env:VAR``, ``file:/path``, ``literal:value``) on first use.
* :class:`CachingAuthProvider` -- abstract base for providers that fetch
  expiring tokens; caches them per identity in a
  :class:`~fluentapi.auth.token_cache.TokenCache`.
* :class:`UsernamePasswordAuthProvider` -- logs in by POSTing
  ``{"username": ..., "password": ...}`` to a login endpoint and caches the
  returned token per username until it expires.

Tokens are cached with a safety margin (30 seconds by default) so a token
about to expire is never sent.

See Also:
    :class:`fluentapi.auth.base.AuthProvider` for the base interface.
"""

from __future__ import annotations

import logging
import threading
from abc import abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any, Optional

import httpx

from fluentapi.auth.base import AuthProvider
from fluentapi.auth.token_cache import CachedToken, TokenCache, utcnow
from fluentapi.config import resolve_credential
from fluentapi.exceptions import AuthError

logger = logging.getLogger(__name__)

ANONYMOUS = "<anonymous>"
"""Cache key used when a request carries no username."""


class StaticTokenProvider(AuthProvider):
    """Return the same bearer token for every request.

    Exactly one of *token* and *source* should be given. A *source* is
    resolved through :func:`~fluentapi.config.resolve_credential` on the
    first request and remembered afterwards.

    Args:
        token: The token value.
        source: Credential source descriptor, e.g. ``"env:API_TOKEN"``.
    """

    def __init__(self, token: Optional[str] = None, source: Optional[str] = None) -> None:
        if token is None and source is None:
            raise AuthError("StaticTokenProvider requires a token or a source")
        self._token = token
        self._source = source
        self._lock = threading.Lock()

    def get_auth_token(
        self, username: Optional[str] = None, password: Optional[str] = None
    ) -> Optional[str]:
        if self._token is None:
            with self._lock:
                if self._token is None:
                    assert self._source is not None
                    self._token = resolve_credential(self._source)
        return self._token


class CachingAuthProvider(AuthProvider):
    """Base class for providers that fetch expiring tokens.

    Subclasses implement :meth:`fetch_token`. Tokens are cached per identity
    (the request's username, or :data:`ANONYMOUS`), and concurrent requests
    for the same identity share one fetch.

    Args:
        safety_margin: Subtracted from every token's expiry before caching.
        cache: Token store; a private one is created when omitted.
    """

    def __init__(
        self,
        safety_margin: timedelta = timedelta(seconds=30),
        cache: Optional[TokenCache] = None,
    ) -> None:
        self._safety_margin = safety_margin
        self._cache = cache if cache is not None else TokenCache()

    @property
    def cache(self) -> TokenCache:
        return self._cache

    def get_auth_token(
        self, username: Optional[str] = None, password: Optional[str] = None
    ) -> Optional[str]:
        key = username or ANONYMOUS

        def refresh() -> Optional[CachedToken]:
            fetched = self.fetch_token(username, password)
            if fetched is None:
                return None
            return fetched.model_copy(
                update={"expires_at": fetched.expires_at - self._safety_margin}
            )

        entry = self._cache.get_or_refresh(key, refresh)
        return entry.token if entry is not None else None

    def invalidate(self, username: Optional[str] = None) -> None:
        """Forget the cached token for *username* (or the anonymous identity)."""
        self._cache.invalidate(username or ANONYMOUS)

    @abstractmethod
    def fetch_token(
        self, username: Optional[str], password: Optional[str]
    ) -> Optional[CachedToken]:
        """Obtain a fresh token for the identity.

        Args:
            username: Identity from ``as_user()``, or ``None``.
            password: Secret from ``as_user()``, or ``None``.

        Returns:
            The token and its expiry, or ``None`` when no token applies
            (the request is then sent without ``Authorization``).

        Raises:
            AuthError: If the token cannot be obtained.
        """
        ...


class UsernamePasswordAuthProvider(CachingAuthProvider):
    """Log in with a username and password and cache the token per user.

    The login request is ``POST login_url`` with the JSON body
    ``{"username": ..., "password": ...}``. The response must be a JSON
    object holding the token under *token_field*; the lifetime in seconds is
    read from *expires_in_field* and defaults to *default_ttl*.

    The request's ``as_user(username, password)`` identity wins over the
    defaults. When ``as_user`` names a user without a password, the default
    password is used.

    Args:
        login_url: Absolute URL of the login endpoint.
        default_username: Identity used when a request names none.
        default_password: Password used when a request supplies none.
        client: An :class:`httpx.Client` to send the login request with.
            A short-lived client is used when omitted.
        token_field: JSON field holding the token.
        expires_in_field: JSON field holding the lifetime in seconds.
        default_ttl: Lifetime in seconds when the response has none.
        safety_margin: See :class:`CachingAuthProvider`.
        clock: Returns the current UTC time.

    Example::

        provider = UsernamePasswordAuthProvider(
            "https://api.example.com/auth/login",
            default_username="admin",
            default_password="s3cret",
        )
        api = Api(base_url="https://api.example.com", auth_provider=provider)
        api.for_("/me").as_user("ann", "pw").get().should_return(status=200)
    """

    def __init__(
        self,
        login_url: str,
        default_username: Optional[str] = None,
        default_password: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        token_field: str = "token",
        expires_in_field: str = "expiresIn",
        default_ttl: float = 600,
        safety_margin: timedelta = timedelta(seconds=30),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(safety_margin=safety_margin, cache=TokenCache(clock=clock))
        self._login_url = login_url
        self._default_username = default_username
        self._default_password = default_password
        self._client = client
        self._token_field = token_field
        self._expires_in_field = expires_in_field
        self._default_ttl = default_ttl
        self._clock = clock

    def get_auth_token(
        self, username: Optional[str] = None, password: Optional[str] = None
    ) -> Optional[str]:
        return super().get_auth_token(username or self._default_username, password)

    def fetch_token(
        self, username: Optional[str], password: Optional[str]
    ) -> Optional[CachedToken]:
        if not username:
            return None
        if password is None:
            password = self._default_password
        if password is None:
            raise AuthError(f"No password available for user '{username}'")

        logger.debug("Logging in as %r at %s", username, self._login_url)
        data = self._post_login(username, password)

        token = data.get(self._token_field)
        if not isinstance(token, str) or not token:
            raise AuthError(f"Login response missing '{self._token_field}' field")

        ttl: Any = data.get(self._expires_in_field, self._default_ttl)
        try:
            seconds = float(ttl)
        except (TypeError, ValueError) as exc:
            raise AuthError(
                f"Login response field '{self._expires_in_field}' is not a number: {ttl!r}"
            ) from exc
        return CachedToken(token=token, expires_at=self._clock() + timedelta(seconds=seconds))

    def _post_login(self, username: str, password: str) -> dict[str, Any]:
        payload = {"username": username, "password": password}
        headers = {"Accept": "application/json"}
        try:
            if self._client is not None:
                response = self._client.post(self._login_url, json=payload, headers=headers)
            else:
                response = httpx.post(
                    self._login_url, json=payload, headers=headers, timeout=30.0
                )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise AuthError(
                f"Login for '{username}' failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise AuthError(f"Login request failed: {exc}") from exc
        except ValueError as exc:
            raise AuthError(f"Login response is not valid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise AuthError("Login response is not a JSON object")
        return data
