"""Defaults applied to every request built from one :class:`~fluentapi.api.Api`.

:class:`DefaultsProvider` is the structural interface :class:`Api` reads once
at construction: any object with ``base_uri``, ``default_headers``,
``timeout`` and ``auth_provider`` attributes will do. :class:`ApiDefaults` is
the stock implementation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from fluentapi.auth.base import AuthProvider

DEFAULT_TIMEOUT = 30.0


@runtime_checkable
class DefaultsProvider(Protocol):
    """Source of per-root defaults: base URI, headers, timeout and auth."""

    @property
    def base_uri(self) -> Optional[str]: ...

    @property
    def default_headers(self) -> Mapping[str, str]: ...

    @property
    def timeout(self) -> Optional[float]: ...

    @property
    def auth_provider(self) -> Optional[AuthProvider]: ...


@dataclass(frozen=True)
class ApiDefaults:
    """Immutable defaults for an :class:`~fluentapi.api.Api` root.

    Attributes:
        base_uri: Prefixed to relative endpoints; ``None`` leaves them as is.
        default_headers: Headers seeded into every request. Per-call headers
            override them key by key.
        timeout: Seconds before a request is abandoned.
        auth_provider: Consulted once per request for a bearer token.
    """

    base_uri: Optional[str] = None
    default_headers: Mapping[str, str] = field(default_factory=dict)
    timeout: Optional[float] = DEFAULT_TIMEOUT
    auth_provider: Optional[AuthProvider] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "default_headers", MappingProxyType(dict(self.default_headers or {}))
        )
