"""Bearer token injection for fluentapi requests.

The main entry points are:

- :class:`AuthProvider` -- abstract base class every provider implements.
- :class:`StaticTokenProvider` -- a fixed token or a credential source.
- :class:`CachingAuthProvider` -- base for providers fetching expiring tokens.
- :class:`UsernamePasswordAuthProvider` -- login endpoint with a per-user cache.
- :class:`TokenCache` / :class:`CachedToken` -- the thread-safe token store.

Typical usage::

    from fluentapi import Api
    from fluentapi.auth import StaticTokenProvider

    api = Api(base_url="https://api.example.com",
              auth_provider=StaticTokenProvider(source="env:API_TOKEN"))
"""

from fluentapi.auth.base import AuthProvider
from fluentapi.auth.providers import (
    CachingAuthProvider,
    StaticTokenProvider,
    UsernamePasswordAuthProvider,
)
from fluentapi.auth.token_cache import CachedToken, TokenCache

__all__ = [
    "AuthProvider",
    "CachedToken",
    "CachingAuthProvider",
    "StaticTokenProvider",
    "TokenCache",
    "UsernamePasswordAuthProvider",
]
