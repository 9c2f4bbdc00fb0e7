"""Immutable, case-insensitive header mapping.

HTTP header names are case-insensitive, so ``Authorization`` and
``authorization`` must address the same entry. :class:`HeaderMap` keeps the
casing of the most recent write for display, answers lookups in any casing,
and never changes after construction: :meth:`HeaderMap.set` and
:meth:`HeaderMap.merge` return new maps.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Optional, Union

HeadersLike = Union[Mapping[str, str], Iterable[tuple[str, str]], None]


class HeaderMap(Mapping[str, str]):
    """Read-only header mapping with case-insensitive keys.

    Example::

        headers = HeaderMap({"Content-Type": "application/json"})
        assert headers["content-type"] == "application/json"
        updated = headers.set("CONTENT-TYPE", "text/plain")
        assert list(updated) == ["CONTENT-TYPE"]
        assert headers["Content-Type"] == "application/json"
    """

    __slots__ = ("_store",)

    def __init__(self, headers: HeadersLike = None) -> None:
        store: dict[str, tuple[str, str]] = {}
        if headers is not None:
            items = headers.items() if isinstance(headers, Mapping) else headers
            for key, value in items:
                store[key.lower()] = (key, value)
        self._store = store

    @classmethod
    def _from_store(cls, store: dict[str, tuple[str, str]]) -> HeaderMap:
        instance = cls.__new__(cls)
        instance._store = store
        return instance

    def __getitem__(self, key: str) -> str:
        return self._store[key.lower()][1]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._store

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, HeaderMap):
            return self.lower_items() == other.lower_items()
        if isinstance(other, Mapping):
            return self.lower_items() == HeaderMap(other).lower_items()
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"HeaderMap({self.to_dict()!r})"

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:  # type: ignore[override]
        entry = self._store.get(key.lower())
        return entry[1] if entry is not None else default

    def lower_items(self) -> dict[str, str]:
        """Return a plain dict keyed by lower-cased header names."""
        return {lower: value for lower, (_, value) in self._store.items()}

    def to_dict(self) -> dict[str, str]:
        """Return a plain, mutable copy keyed by the original header names."""
        return dict(self._store.values())

    def set(self, key: str, value: str) -> HeaderMap:
        """Return a new map with *key* set to *value* (last write wins)."""
        store = dict(self._store)
        store[key.lower()] = (key, value)
        return self._from_store(store)

    def merge(self, headers: HeadersLike) -> HeaderMap:
        """Return a new map with every entry of *headers* applied on top."""
        if not headers:
            return self
        store = dict(self._store)
        items = headers.items() if isinstance(headers, Mapping) else headers
        for key, value in items:
            store[key.lower()] = (key, value)
        return self._from_store(store)
