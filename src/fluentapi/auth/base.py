"""Abstract base class for auth providers.

An :class:`AuthProvider` hands the fluent API a bearer token for the request
being dispatched. :class:`~fluentapi.context.ApiContext` calls
:meth:`AuthProvider.get_auth_token` at most once per terminal verb call and
only when the chain did not opt out with ``without_auth()``. The returned
token is sent as ``Authorization: Bearer <token>`` unless the chain set an
``Authorization`` header itself.

To implement a new strategy, subclass :class:`AuthProvider` and implement
:meth:`~AuthProvider.get_auth_token`. Strategies that fetch expiring tokens
from a login endpoint should extend
:class:`~fluentapi.auth.providers.CachingAuthProvider` instead, which adds a
thread-safe per-identity cache.

See Also:
    :mod:`fluentapi.auth.providers` for the built-in providers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class AuthProvider(ABC):
    """Abstract base class for bearer token providers.

    Providers may be shared by many contexts and called from several threads
    at once; implementations that keep state must guard it.
    """

    @abstractmethod
    def get_auth_token(
        self, username: Optional[str] = None, password: Optional[str] = None
    ) -> Optional[str]:
        """Return a bearer token for the current request.

        Args:
            username: Identity set with ``as_user()``, if any.
            password: Secret passed alongside *username*, if any.

        Returns:
            The token without the ``Bearer`` prefix. ``None`` or an empty
            string means the request is sent without an ``Authorization``
            header.

        Raises:
            AuthError: If a token cannot be obtained. The error propagates to
                the caller of the verb method unchanged.
        """
        ...
