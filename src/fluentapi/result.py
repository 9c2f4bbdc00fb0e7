"""Read-only view of an executed request, with chained assertions.

A :class:`ResultContext` is created once per executed request by an
:class:`~fluentapi.executors.base.HttpExecutor`. It exposes the status code,
headers, raw body, duration and the dispatched
:class:`~fluentapi.request.RequestSpec`, decodes the body on demand and
offers the assertion methods that end a fluent chain::

    user = (
        api.for_("/users/{id}").with_path_param("id", 1).get()
        .should_return(status=200, body=lambda b: b["name"] == "Ann")
        .body_as(User)
    )

Assertions raise :class:`~fluentapi.exceptions.ApiAssertionError`. When the
result carries a :class:`~fluentapi.reporting.base.ReporterRunner`, every
passed and failed check is reported to it as well.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Optional, TypeVar, overload

from fluentapi.exceptions import ApiAssertionError, FluentApiError, InvalidArgumentError
from fluentapi.headers import HeaderMap
from fluentapi.request import RequestSpec
from fluentapi.validation import (
    BodyValidator,
    HeaderPredicate,
    deserialize_body,
    validate_body,
    validate_headers,
    validate_status,
)

if TYPE_CHECKING:
    from fluentapi.api import Api
    from fluentapi.context import ApiContext
    from fluentapi.reporting.base import ReporterRunner

T = TypeVar("T")

_MISSING = object()


def parse_set_cookies(values: Iterable[str]) -> dict[str, str]:
    """Extract ``name -> value`` pairs from ``Set-Cookie`` header values.

    Attributes after the first ``;`` (``Path``, ``Expires`` ...) are ignored.
    A later cookie with the same name wins.
    """
    cookies: dict[str, str] = {}
    for header in values:
        pair = header.split(";", 1)[0]
        name, sep, value = pair.partition("=")
        if sep and name.strip():
            cookies[name.strip()] = value.strip()
    return cookies


class ResultContext:
    """The response to one executed :class:`~fluentapi.request.RequestSpec`.

    Args:
        status_code: HTTP status code.
        headers: Response headers.
        raw_body: Response body text (may be empty).
        duration: Wall-clock time from dispatch to the complete response.
        request: The spec that was dispatched.
        set_cookies: Every ``Set-Cookie`` header value, in order. Needed
            because ``Set-Cookie`` must not be comma-joined like other
            repeated headers.
        reporter: Receives assertion outcomes.
        api: The :class:`~fluentapi.api.Api` that sent the request. Lets
            :meth:`for_` start a follow-up request from a response.
    """

    def __init__(
        self,
        status_code: int,
        headers: Optional[Mapping[str, str]] = None,
        raw_body: str = "",
        duration: timedelta = timedelta(0),
        request: Optional[RequestSpec] = None,
        set_cookies: Iterable[str] = (),
        reporter: Optional[ReporterRunner] = None,
        api: Optional[Api] = None,
    ) -> None:
        self._status_code = status_code
        self._headers = headers if isinstance(headers, HeaderMap) else HeaderMap(headers)
        self._raw_body = raw_body or ""
        self._duration = duration
        self._request = request if request is not None else RequestSpec("")
        self._set_cookies = tuple(set_cookies)
        self._reporter = reporter
        self._api = api
        self._bodies: dict[Any, Any] = {}

    def __repr__(self) -> str:
        return (
            f"ResultContext({self._request.method.value} {self._request.endpoint} "
            f"-> {self._status_code}, {self.duration_ms:.1f} ms)"
        )

    # ------------------------------------------------------------------ #
    # Read-only view
    # ------------------------------------------------------------------ #

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def headers(self) -> HeaderMap:
        return self._headers

    @property
    def raw_body(self) -> str:
        return self._raw_body

    @property
    def duration(self) -> timedelta:
        return self._duration

    @property
    def duration_ms(self) -> float:
        return self._duration.total_seconds() * 1000

    @property
    def request(self) -> RequestSpec:
        return self._request

    @property
    def is_success(self) -> bool:
        """``True`` for a 2xx status."""
        return 200 <= self._status_code < 300

    def _replace(self, **changes: Any) -> ResultContext:
        fields: dict[str, Any] = {
            "status_code": self._status_code,
            "headers": self._headers,
            "raw_body": self._raw_body,
            "duration": self._duration,
            "request": self._request,
            "set_cookies": self._set_cookies,
            "reporter": self._reporter,
            "api": self._api,
        }
        fields.update(changes)
        return ResultContext(**fields)

    def with_reporter(self, reporter: Optional[ReporterRunner]) -> ResultContext:
        """Return a copy of this result that reports assertions to *reporter*."""
        return self._replace(reporter=reporter)

    def with_api(self, api: Optional[Api]) -> ResultContext:
        """Return a copy of this result whose :meth:`for_` starts requests on *api*."""
        return self._replace(api=api)

    # ------------------------------------------------------------------ #
    # Body and cookies
    # ------------------------------------------------------------------ #

    @overload
    def body_as(self) -> Any: ...

    @overload
    def body_as(self, shape: type[T]) -> T: ...

    def body_as(self, shape: Any = Any) -> Any:
        """Decode the body into *shape*, once per shape.

        Args:
            shape: Any type pydantic can validate. ``Any`` (the default)
                returns plain JSON values; ``str`` returns the raw text.

        Raises:
            ApiAssertionError: If the body is empty or does not fit *shape*.
        """
        cached = self._bodies.get(shape, _MISSING)
        if cached is not _MISSING:
            return cached
        value = deserialize_body(self._raw_body, shape, self)
        self._bodies[shape] = value
        return value

    def get_cookie(self, name: str) -> Optional[str]:
        """Return the value of cookie *name* set by the response, if any."""
        if not name or not name.strip():
            return None
        values: Iterable[str] = self._set_cookies
        if not values:
            header = self._headers.get("Set-Cookie")
            values = [header] if header else []
        return parse_set_cookies(values).get(name)

    # ------------------------------------------------------------------ #
    # Assertions
    # ------------------------------------------------------------------ #

    def should_return(
        self,
        status: Optional[int] = None,
        headers: Optional[HeaderPredicate] = None,
        body: Optional[BodyValidator] = None,
        body_type: Any = Any,
    ) -> ResultContext:
        """Check status, then headers, then body; stop at the first failure.

        Args:
            status: Expected status code.
            headers: Predicate over the response headers; a falsy return or
                an exception fails the check.
            body: Validator over the decoded body; raising or returning
                ``False`` fails the check.
            body_type: Shape the body is decoded into before *body* runs.

        Returns:
            This result, for further chaining.

        Raises:
            ApiAssertionError: Naming the failed facet with its expected and
                actual values.
        """
        if status is not None:
            self._check(
                lambda: validate_status(self._status_code, status, self),
                f"Status code is {status}",
            )
        if headers is not None:
            self._check(
                lambda: validate_headers(self._headers, headers, self),
                "Header validation passed",
            )
        if body is not None:
            self._check(
                lambda: validate_body(self._raw_body, body, body_type, self),
                "Body validation passed",
            )
        return self

    def should_succeed(self, body_type: Any = Any) -> Any:
        """Assert a 2xx status and return the body decoded into *body_type*.

        Raises:
            ApiAssertionError: For a non-2xx status or an undecodable body.
        """
        if not self.is_success:
            error = ApiAssertionError(
                "status",
                "a successful status code (2xx)",
                self._status_code,
                result=self,
                message=f"Expected successful status code (2xx), but got {self._status_code}",
            )
            self._report_failure(error)
            raise error
        self._report_pass(f"Status code {self._status_code} is successful")
        return self.body_as(body_type)

    def then(self, callback: Callable[[ResultContext], Any]) -> ResultContext:
        """Run *callback* with this result and return the result unchanged."""
        if callback is None:
            raise InvalidArgumentError("Callback must not be None", param="callback")
        callback(self)
        return self

    def for_(self, endpoint: str) -> ApiContext:
        """Start a follow-up request on the :class:`~fluentapi.api.Api` that sent this one.

        Meant for :meth:`then` callbacks that act on a response::

            api.for_("/users").post({"name": "Ann"}).then(
                lambda r: r.for_(f"/users/{r.body_as(User).id}").get().should_return(status=200)
            )

        Raises:
            FluentApiError: If the result was not produced through an
                :class:`~fluentapi.api.Api`.
            InvalidArgumentError: If *endpoint* is invalid.
        """
        if self._api is None:
            raise FluentApiError("This result has no Api attached; cannot start a follow-up request")
        return self._api.for_(endpoint)

    def _check(self, check: Callable[[], Any], passed_message: str) -> None:
        try:
            check()
        except ApiAssertionError as exc:
            self._report_failure(exc)
            raise
        self._report_pass(passed_message)

    def _report_pass(self, message: str) -> None:
        if self._reporter is not None:
            self._reporter.assertion_passed(message, self)

    def _report_failure(self, error: ApiAssertionError) -> None:
        if self._reporter is not None:
            self._reporter.assertion_failed(str(error), self)
