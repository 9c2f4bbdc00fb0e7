"""Immutable description of a single HTTP call.

:class:`RequestSpec` is the value that the fluent API accumulates and the
executors consume. It is a frozen dataclass: every ``with_*`` method returns
a new instance built with :func:`dataclasses.replace`, so mappings that a
call does not touch are shared between the old and the new instance while
changed mappings are rebuilt. Mappings are exposed as read-only views
(:class:`~types.MappingProxyType` and :class:`~fluentapi.headers.HeaderMap`)
so a spec handed to a reporter or kept in an exception cannot be altered.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from types import MappingProxyType
from typing import Any, Optional, Union

from pydantic import BaseModel

from fluentapi.headers import HeaderMap
from fluentapi.urls import substitute_path_params

Timeout = Union[float, int, timedelta]

_EMPTY: Mapping[str, Any] = MappingProxyType({})


class HttpMethod(str, enum.Enum):
    """HTTP methods understood by the fluent API."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @property
    def carries_body(self) -> bool:
        """Whether a body is attached for this verb."""
        return self in (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)


def coerce_method(method: Union[HttpMethod, str]) -> HttpMethod:
    """Accept an :class:`HttpMethod` or a verb name in any casing."""
    if isinstance(method, HttpMethod):
        return method
    return HttpMethod(method.upper())


def to_seconds(timeout: Timeout) -> float:
    """Normalise a timeout given as seconds or :class:`timedelta` to float seconds."""
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return float(timeout)


def extract_params(parameters: Any) -> dict[str, Any]:
    """Turn a mapping, pydantic model, dataclass or plain object into a dict.

    Objects contribute their public attributes; ``None`` attribute values
    become empty strings.
    """
    if isinstance(parameters, Mapping):
        return dict(parameters)
    if isinstance(parameters, BaseModel):
        raw = parameters.model_dump()
    elif dataclasses.is_dataclass(parameters) and not isinstance(parameters, type):
        raw = {f.name: getattr(parameters, f.name) for f in dataclasses.fields(parameters)}
    else:
        raw = {k: v for k, v in vars(parameters).items() if not k.startswith("_")}
    return {k: ("" if v is None else v) for k, v in raw.items()}


def _frozen(base: Mapping[str, Any], updates: Mapping[str, Any]) -> Mapping[str, Any]:
    merged = dict(base)
    merged.update(updates)
    return MappingProxyType(merged)


@dataclass(frozen=True)
class RequestSpec:
    """Immutable specification of one HTTP request.

    Attributes:
        endpoint: Absolute URL, or a path resolved against a base URL.
        method: The HTTP verb; fixed by the terminal call of the fluent chain.
        headers: Request headers with case-insensitive names.
        query_params: Query parameters; values are stringified at dispatch.
        path_params: Values substituted into ``{name}`` placeholders.
        body: Opaque payload, serialised by the executor for POST/PUT/PATCH.
        cookies: Cookies sent as a single ``Cookie`` header.
        timeout: Seconds before the transport gives up; ``None`` means the
            executor default applies.
        suppress_auth: Skip the auth provider for this request.
        username: Identity passed to the auth provider.
        password: Secret passed to the auth provider alongside *username*.
    """

    endpoint: str
    method: HttpMethod = HttpMethod.GET
    headers: HeaderMap = field(default_factory=HeaderMap)
    query_params: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    path_params: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    body: Any = None
    cookies: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    timeout: Optional[float] = None
    suppress_auth: bool = False
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        # Normalise caller-supplied plain dicts into read-only views.
        if not isinstance(self.headers, HeaderMap):
            object.__setattr__(self, "headers", HeaderMap(self.headers))
        for name in ("query_params", "path_params", "cookies"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value or {})))
        if not isinstance(self.method, HttpMethod):
            object.__setattr__(self, "method", coerce_method(self.method))
        if self.timeout is not None:
            object.__setattr__(self, "timeout", to_seconds(self.timeout))

    # ------------------------------------------------------------------ #
    # Headers
    # ------------------------------------------------------------------ #

    def with_header(self, key: str, value: str) -> RequestSpec:
        return dataclasses.replace(self, headers=self.headers.set(key, value))

    def with_headers(self, headers: Mapping[str, str]) -> RequestSpec:
        return dataclasses.replace(self, headers=self.headers.merge(headers))

    def header(self, name: str) -> Optional[str]:
        """Look up a header value regardless of the name's casing."""
        return self.headers.get(name)

    # ------------------------------------------------------------------ #
    # Parameters
    # ------------------------------------------------------------------ #

    def with_query_param(self, key: str, value: Any) -> RequestSpec:
        return dataclasses.replace(self, query_params=_frozen(self.query_params, {key: value}))

    def with_query_params(self, parameters: Any) -> RequestSpec:
        return dataclasses.replace(
            self, query_params=_frozen(self.query_params, extract_params(parameters))
        )

    def with_path_param(self, key: str, value: Any) -> RequestSpec:
        return dataclasses.replace(self, path_params=_frozen(self.path_params, {key: value}))

    def with_path_params(self, parameters: Any) -> RequestSpec:
        return dataclasses.replace(
            self, path_params=_frozen(self.path_params, extract_params(parameters))
        )

    def resolved_endpoint(self) -> str:
        """Return the endpoint with every known ``{name}`` placeholder substituted."""
        return substitute_path_params(self.endpoint, self.path_params)

    # ------------------------------------------------------------------ #
    # Cookies
    # ------------------------------------------------------------------ #

    def with_cookie(self, name: str, value: str) -> RequestSpec:
        return dataclasses.replace(self, cookies=_frozen(self.cookies, {name: value}))

    def with_cookies(self, cookies: Mapping[str, str]) -> RequestSpec:
        return dataclasses.replace(self, cookies=_frozen(self.cookies, cookies))

    def clear_cookies(self) -> RequestSpec:
        return dataclasses.replace(self, cookies=_EMPTY)

    # ------------------------------------------------------------------ #
    # Method, body, timeout, auth context
    # ------------------------------------------------------------------ #

    def with_method(self, method: Union[HttpMethod, str]) -> RequestSpec:
        return dataclasses.replace(self, method=coerce_method(method))

    def with_body(self, body: Any) -> RequestSpec:
        return dataclasses.replace(self, body=body)

    def with_timeout(self, timeout: Timeout) -> RequestSpec:
        return dataclasses.replace(self, timeout=to_seconds(timeout))

    def without_auth(self) -> RequestSpec:
        return dataclasses.replace(self, suppress_auth=True)

    def as_user(self, username: str, password: Optional[str] = None) -> RequestSpec:
        return dataclasses.replace(self, username=username, password=password)
