"""Root entry point of the fluent API.

An :class:`Api` binds the shared pieces of a test suite (base URI, default
headers, timeout, auth provider, reporter and executor) and hands out
:class:`~fluentapi.context.ApiContext` builders with :meth:`Api.for_`::

    api = Api(base_url="https://api.example.com")
    api.for_("/users/1").get().should_return(status=200)

Defaults are read once, when the :class:`Api` is built, from an optional
:class:`~fluentapi.defaults.DefaultsProvider`. Keyword arguments passed to
:class:`Api` override the provider's values, and ``with_*`` calls on a
context override both, header by header.

See Also:
    :func:`fluentapi.config.resolve_defaults` to build defaults from the
    environment and a project config file.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Optional, Union

from fluentapi.auth.base import AuthProvider
from fluentapi.context import ApiContext
from fluentapi.defaults import ApiDefaults, DefaultsProvider
from fluentapi.exceptions import InvalidArgumentError
from fluentapi.executors.base import HttpExecutor
from fluentapi.executors.httpx_executor import HttpxExecutor
from fluentapi.headers import HeaderMap
from fluentapi.reporting import get_reporter
from fluentapi.reporting.base import Reporter, ReporterRunner
from fluentapi.request import RequestSpec, Timeout, to_seconds
from fluentapi.urls import join_url

logger = logging.getLogger(__name__)


def validate_endpoint(endpoint: Optional[str]) -> str:
    """Reject endpoints that cannot name a resource.

    ``None``, blank strings and strings made only of two or more slashes are
    rejected; everything else is left for the transport to judge.

    Raises:
        InvalidArgumentError: With ``param="endpoint"``.
    """
    if endpoint is None or not isinstance(endpoint, str):
        raise InvalidArgumentError("Endpoint cannot be null or empty", "endpoint")
    trimmed = endpoint.strip()
    if not trimmed or (len(trimmed) > 1 and set(trimmed) == {"/"}):
        raise InvalidArgumentError("Endpoint cannot be null or empty", "endpoint")
    return endpoint


class Api:
    """Factory for request contexts sharing one set of defaults.

    Args:
        base_url: Prefixed to relative endpoints. Overrides
            ``defaults.base_uri``.
        executor: Sends requests. An :class:`HttpxExecutor` owned by this
            :class:`Api` is created when omitted.
        defaults: Source of base URI, default headers, timeout and auth
            provider. Defaults to :class:`~fluentapi.defaults.ApiDefaults`.
        auth_provider: Overrides ``defaults.auth_provider``.
        reporter: A :class:`~fluentapi.reporting.base.Reporter`, or the name
            of a built-in one (``"default"``, ``"compact"``, ``"null"``).
            No reporting when omitted.
        headers: Extra default headers, applied on top of
            ``defaults.default_headers``.
        timeout: Overrides ``defaults.timeout``.

    Raises:
        InvalidArgumentError: If *base_url* is blank.

    Example::

        with Api("https://api.example.com", reporter="compact") as api:
            api.for_("/health").get().should_return(status=200)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        executor: Optional[HttpExecutor] = None,
        defaults: Optional[DefaultsProvider] = None,
        auth_provider: Optional[AuthProvider] = None,
        reporter: Union[Reporter, str, None] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[Timeout] = None,
    ) -> None:
        if defaults is None:
            defaults = ApiDefaults()
        if base_url is not None and not base_url.strip():
            raise InvalidArgumentError("Base URL cannot be empty", "base_url")

        self._base_url = base_url if base_url is not None else defaults.base_uri
        self._auth_provider = auth_provider if auth_provider is not None else defaults.auth_provider
        default_headers = dict(defaults.default_headers or {})
        default_headers.update(headers or {})
        self._headers = HeaderMap(default_headers)
        resolved_timeout = timeout if timeout is not None else defaults.timeout
        self._timeout = to_seconds(resolved_timeout) if resolved_timeout is not None else None

        if isinstance(reporter, str):
            reporter = get_reporter(reporter)
        self._reporter = ReporterRunner(reporter)

        if executor is None:
            self._executor: HttpExecutor = HttpxExecutor()
            self._owns_executor = True
        else:
            self._executor = executor
            self._owns_executor = False

    @property
    def base_url(self) -> Optional[str]:
        return self._base_url

    @property
    def executor(self) -> HttpExecutor:
        return self._executor

    def for_(self, endpoint: str) -> ApiContext:
        """Start a request to *endpoint*.

        Relative endpoints are joined to the base URL; endpoints with their
        own ``scheme://`` are used as is.

        Raises:
            InvalidArgumentError: If *endpoint* is ``None``, blank, or only
                slashes.
        """
        validate_endpoint(endpoint)
        spec = RequestSpec(
            endpoint=join_url(self._base_url, endpoint),
            headers=self._headers,
            timeout=self._timeout,
        )
        return ApiContext(spec, self._executor, self._auth_provider, self._reporter, api=self)

    def close(self) -> None:
        """Close the executor if this :class:`Api` created it."""
        if self._owns_executor:
            self._executor.close()

    def __enter__(self) -> Api:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
