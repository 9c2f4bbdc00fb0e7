"""The fluent request builder.

An :class:`ApiContext` pairs a :class:`~fluentapi.request.RequestSpec` with
everything needed to send it: the executor, the auth provider and the
reporter. Contexts are immutable. Every ``with_*`` call returns a new context
around a new spec, so a partially built context can be stored and branched
freely, even across threads::

    users = api.for_("/users").with_header("Accept", "application/json")
    users.with_query_param("page", 1).get().should_return(status=200)
    users.with_query_param("page", 2).get().should_return(status=200)

The verb methods (:meth:`~ApiContext.get`, :meth:`~ApiContext.post`, ...)
are terminal. They fix the HTTP method, resolve a bearer token, notify the
reporter and execute the request, returning a
:class:`~fluentapi.result.ResultContext`.

Invalid builder input raises
:class:`~fluentapi.exceptions.InvalidArgumentError` immediately, before
anything is sent.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

from fluentapi.auth.base import AuthProvider
from fluentapi.exceptions import InvalidArgumentError
from fluentapi.executors.base import HttpExecutor
from fluentapi.reporting.base import ReporterRunner
from fluentapi.request import HttpMethod, RequestSpec, Timeout, to_seconds
from fluentapi.result import ResultContext

if TYPE_CHECKING:
    from fluentapi.api import Api

logger = logging.getLogger(__name__)

_AUTHORIZATION = "Authorization"


def _require_key(key: Any, param: str, what: str) -> None:
    if not isinstance(key, str) or not key.strip():
        raise InvalidArgumentError(f"{what} cannot be null or empty", param)


def _require_mapping(value: Any, param: str, what: str) -> None:
    if value is None:
        raise InvalidArgumentError(f"{what} cannot be None", param)


class ApiContext:
    """Immutable builder for one request, bound to an executor.

    Contexts are normally obtained from :meth:`fluentapi.api.Api.for_`.

    Args:
        spec: The request accumulated so far.
        executor: Sends the finished request.
        auth_provider: Supplies bearer tokens; ``None`` disables token
            injection.
        reporter: Receives request, response and assertion events.
        api: The :class:`~fluentapi.api.Api` this context came from. Results
            carry it so a follow-up request can be started from a response.
    """

    __slots__ = ("_spec", "_executor", "_auth_provider", "_reporter", "_api")

    def __init__(
        self,
        spec: RequestSpec,
        executor: HttpExecutor,
        auth_provider: Optional[AuthProvider] = None,
        reporter: Optional[ReporterRunner] = None,
        api: Optional[Api] = None,
    ) -> None:
        self._spec = spec
        self._executor = executor
        self._auth_provider = auth_provider
        self._reporter = reporter if reporter is not None else ReporterRunner()
        self._api = api

    def __repr__(self) -> str:
        return f"ApiContext({self._spec.endpoint!r})"

    @property
    def spec(self) -> RequestSpec:
        """The request specification built so far."""
        return self._spec

    def _derive(self, spec: RequestSpec) -> ApiContext:
        return ApiContext(spec, self._executor, self._auth_provider, self._reporter, self._api)

    # ------------------------------------------------------------------ #
    # Headers
    # ------------------------------------------------------------------ #

    def with_header(self, key: str, value: str) -> ApiContext:
        """Set one header. A later write with any casing of *key* replaces it."""
        _require_key(key, "key", "Header key")
        return self._derive(self._spec.with_header(key, value))

    def with_headers(self, headers: Mapping[str, str]) -> ApiContext:
        """Set several headers; entries in *headers* win on collision."""
        _require_mapping(headers, "headers", "Headers")
        for key in headers:
            _require_key(key, "headers", "Header key")
        return self._derive(self._spec.with_headers(headers))

    # ------------------------------------------------------------------ #
    # Query and path parameters
    # ------------------------------------------------------------------ #

    def with_query_param(self, key: str, value: Any) -> ApiContext:
        _require_key(key, "key", "Query parameter key")
        return self._derive(self._spec.with_query_param(key, value))

    def with_query_params(self, parameters: Any) -> ApiContext:
        """Add query parameters from a mapping or an object's public attributes."""
        _require_mapping(parameters, "parameters", "Query parameters")
        return self._derive(self._spec.with_query_params(parameters))

    def with_path_param(self, key: str, value: Any) -> ApiContext:
        """Substitute *value* for ``{key}`` in the endpoint."""
        _require_key(key, "key", "Path parameter key")
        return self._derive(self._spec.with_path_param(key, value))

    def with_path_params(self, parameters: Any) -> ApiContext:
        """Add path parameters from a mapping or an object's public attributes."""
        _require_mapping(parameters, "parameters", "Path parameters")
        return self._derive(self._spec.with_path_params(parameters))

    # ------------------------------------------------------------------ #
    # Body, cookies, timeout
    # ------------------------------------------------------------------ #

    def with_body(self, body: Any) -> ApiContext:
        """Attach a body; it is only sent by POST, PUT and PATCH."""
        return self._derive(self._spec.with_body(body))

    def with_cookie(self, name: str, value: str) -> ApiContext:
        _require_key(name, "name", "Cookie name")
        return self._derive(self._spec.with_cookie(name, value))

    def with_cookies(self, cookies: Mapping[str, str]) -> ApiContext:
        _require_mapping(cookies, "cookies", "Cookies")
        for name in cookies:
            _require_key(name, "cookies", "Cookie name")
        return self._derive(self._spec.with_cookies(cookies))

    def clear_cookies(self) -> ApiContext:
        return self._derive(self._spec.clear_cookies())

    def with_timeout(self, timeout: Timeout) -> ApiContext:
        """Override the timeout, in seconds or as a :class:`~datetime.timedelta`."""
        if timeout is None or to_seconds(timeout) <= 0:
            raise InvalidArgumentError("Timeout must be positive", "timeout")
        return self._derive(self._spec.with_timeout(timeout))

    # ------------------------------------------------------------------ #
    # Authentication
    # ------------------------------------------------------------------ #

    def using_auth(self, scheme_or_token: str) -> ApiContext:
        """Set the ``Authorization`` header explicitly.

        A value without a space is taken to be a bare token and sent as
        ``Bearer <value>``; anything else (``"Basic abc"``) is sent as is.
        An explicit header always wins over the auth provider.
        """
        _require_key(scheme_or_token, "scheme_or_token", "Authentication scheme or token")
        value = scheme_or_token if " " in scheme_or_token else f"Bearer {scheme_or_token}"
        return self._derive(self._spec.with_header(_AUTHORIZATION, value))

    def using_token(self, token: str) -> ApiContext:
        """Send ``Authorization: Bearer <token>``."""
        _require_key(token, "token", "Token")
        return self._derive(self._spec.with_header(_AUTHORIZATION, f"Bearer {token}"))

    def without_auth(self) -> ApiContext:
        """Skip the auth provider for this request."""
        return self._derive(self._spec.without_auth())

    def as_user(self, username: str, password: Optional[str] = None) -> ApiContext:
        """Ask the auth provider for a token belonging to *username*."""
        _require_key(username, "username", "Username")
        return self._derive(self._spec.as_user(username, password))

    # ------------------------------------------------------------------ #
    # Terminal verbs
    # ------------------------------------------------------------------ #

    def get(self) -> ResultContext:
        return self._send(self._spec.with_method(HttpMethod.GET))

    def delete(self) -> ResultContext:
        return self._send(self._spec.with_method(HttpMethod.DELETE))

    def post(self, body: Any = None) -> ResultContext:
        """Send a POST; *body*, when given, replaces one set by :meth:`with_body`."""
        return self._send(self._with_body(HttpMethod.POST, body))

    def put(self, body: Any = None) -> ResultContext:
        return self._send(self._with_body(HttpMethod.PUT, body))

    def patch(self, body: Any = None) -> ResultContext:
        return self._send(self._with_body(HttpMethod.PATCH, body))

    def _with_body(self, method: HttpMethod, body: Any) -> RequestSpec:
        spec = self._spec.with_method(method)
        if body is not None:
            spec = spec.with_body(body)
        return spec

    def _send(self, spec: RequestSpec) -> ResultContext:
        spec = self._authorize(spec)
        self._reporter.request_sent(spec)
        result = self._executor.execute(spec).with_reporter(self._reporter).with_api(self._api)
        self._reporter.response_received(result)
        return result

    def _authorize(self, spec: RequestSpec) -> RequestSpec:
        if self._auth_provider is None or spec.suppress_auth:
            return spec
        if _AUTHORIZATION in spec.headers:
            logger.debug("Explicit Authorization header set; skipping auth provider")
            return spec
        token = self._auth_provider.get_auth_token(spec.username, spec.password)
        if not token:
            return spec
        return spec.with_header(_AUTHORIZATION, f"Bearer {token}")
