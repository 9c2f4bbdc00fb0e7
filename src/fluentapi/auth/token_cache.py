"""In-memory, thread-safe cache of expiring bearer tokens.

:class:`TokenCache` maps an identity key (usually a username) to a
:class:`CachedToken`. A hit is returned only while the token is unexpired;
an expired entry is evicted and refreshed, never handed out.

Locking is per key. A short-lived registry lock guards the lookup of the
key's own :class:`threading.Lock`; the check, eviction and refresh for that
key then run under the key lock alone. Concurrent callers for one identity
therefore trigger exactly one refresh and all receive its result, while
callers for different identities never wait on each other's login calls.

See Also:
    :class:`~fluentapi.auth.providers.CachingAuthProvider`, the main user
    of this cache.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CachedToken(BaseModel):
    """A bearer token and the moment it stops being usable.

    Attributes:
        token: The token value, without the ``Bearer`` prefix.
        expires_at: UTC expiry time. Naive datetimes are treated as UTC.
    """

    token: str = Field(description="Bearer token value")
    expires_at: datetime = Field(description="When the token expires (UTC)")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Return ``True`` once *now* (default: the current time) reaches expiry."""
        if now is None:
            now = utcnow()
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return now >= expires


class TokenCache:
    """Keyed store of :class:`CachedToken` entries with atomic refresh.

    Args:
        clock: Returns the current UTC time. Tests pass a fake clock to
            control expiry.

    Example::

        cache = TokenCache()
        token = cache.get_or_refresh("alice", lambda: login("alice"))
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._entries: dict[str, CachedToken] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def get(self, key: str) -> Optional[CachedToken]:
        """Return the unexpired entry for *key*, evicting it if it has expired."""
        with self._lock_for(key):
            return self._get_unlocked(key)

    def _get_unlocked(self, key: str) -> Optional[CachedToken]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            logger.debug("Token for %r expired; evicting", key)
            del self._entries[key]
            return None
        return entry

    def get_or_refresh(
        self, key: str, refresh: Callable[[], Optional[CachedToken]]
    ) -> Optional[CachedToken]:
        """Return a valid token for *key*, calling *refresh* on miss or expiry.

        Args:
            key: Identity the token belongs to.
            refresh: Fetches a fresh token. Called at most once per miss,
                while the key's lock is held. A ``None`` result is returned
                as is and nothing is cached.

        Returns:
            The cached or freshly fetched token, or ``None``.

        Raises:
            Exception: Whatever *refresh* raises propagates; the cache is
                left without an entry for *key*.
        """
        with self._lock_for(key):
            entry = self._get_unlocked(key)
            if entry is not None:
                logger.debug("Token cache hit for %r", key)
                return entry
            logger.debug("Token cache miss for %r; refreshing", key)
            fresh = refresh()
            if fresh is not None:
                self._entries[key] = fresh
            return fresh

    def invalidate(self, key: str) -> None:
        """Drop the entry for *key*. A no-op when nothing is cached."""
        with self._registry_lock:
            lock = self._locks.get(key)
        if lock is None:
            return
        with lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry and forget the per-key locks.

        Without a :meth:`clear`, the lock registry holds one lock per identity
        ever looked up.
        """
        with self._registry_lock:
            locks, self._locks = self._locks, {}
        for key, lock in locks.items():
            with lock:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
