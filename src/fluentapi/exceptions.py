"""Exception hierarchy for fluentapi.

All exceptions inherit from :class:`FluentApiError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`fluentapi.exit_codes`.
The command line catches ``FluentApiError`` and exits with that code; library
callers (test suites) simply let the exceptions propagate.

Subclass hierarchy::

    FluentApiError (exit 1)
    +-- InvalidArgumentError (exit 2)   also a ValueError
    +-- AuthError            (exit 3)
    +-- ApiExecutionError    (exit 6)
    +-- ApiAssertionError    (exit 8)   also an AssertionError
    +-- ConfigError          (exit 1)

Two of the classes double as builtin exceptions so that test frameworks treat
them naturally: pytest reports an :class:`ApiAssertionError` as a failed
assertion, and code that validates arguments with ``except ValueError`` still
catches :class:`InvalidArgumentError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from fluentapi.exit_codes import (
    EXIT_ASSERTION_FAILURE,
    EXIT_AUTH_FAILURE,
    EXIT_EXECUTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)

if TYPE_CHECKING:
    from fluentapi.request import RequestSpec
    from fluentapi.result import ResultContext

_SNIPPET_LENGTH = 500


class FluentApiError(Exception):
    """Base exception for all fluentapi errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidArgumentError(FluentApiError, ValueError):
    """Raised synchronously for invalid builder input, before any network I/O.

    Args:
        message: Description of the problem.
        param: Name of the offending parameter (e.g. ``"endpoint"``).
    """

    exit_code = EXIT_INVALID_USAGE

    def __init__(self, message: str, param: str):
        super().__init__(f"{message} (parameter: {param})")
        self.param = param


class AuthError(FluentApiError):
    """Raised when an auth provider cannot obtain a token."""

    exit_code = EXIT_AUTH_FAILURE


class ConfigError(FluentApiError):
    """Raised for configuration problems (unreadable files, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class ApiExecutionError(FluentApiError):
    """Raised when the transport fails to produce a response.

    Wraps connection failures, timeouts, malformed URLs and unserialisable
    bodies. The originating :class:`~fluentapi.request.RequestSpec` is kept
    so the failing call can be diagnosed; the transport exception is chained
    as ``__cause__`` and also exposed as :attr:`cause`.

    Args:
        message: Description of the failure.
        spec: The request specification that was being executed.
        cause: The underlying transport exception.
    """

    exit_code = EXIT_EXECUTION_ERROR

    def __init__(self, message: str, spec: RequestSpec, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.spec = spec
        self.cause = cause

    @property
    def endpoint(self) -> str:
        return self.spec.endpoint

    @property
    def method(self) -> str:
        return self.spec.method.value

    def describe(self) -> str:
        """Return a multi-line description of the failed request.

        Sensitive header values are masked.
        """
        from fluentapi.reporting.masking import mask_headers

        lines = [f"[{self.method}] {self.endpoint} failed: {self}"]
        if self.cause is not None:
            lines.append(f"Cause: {type(self.cause).__name__} - {self.cause}")
        if self.spec.headers:
            masked = mask_headers(self.spec.headers)
            lines.append("Headers: " + ", ".join(f"{k}={v}" for k, v in masked.items()))
        if self.spec.query_params:
            lines.append(
                "Query Params: " + ", ".join(f"{k}={v}" for k, v in self.spec.query_params.items())
            )
        if self.spec.path_params:
            lines.append(
                "Path Params: " + ", ".join(f"{k}={v}" for k, v in self.spec.path_params.items())
            )
        if self.spec.body is not None:
            lines.append(f"Body: {type(self.spec.body).__name__}")
        if self.spec.timeout is not None:
            lines.append(f"Timeout: {self.spec.timeout}s")
        return "\n".join(lines)

    def friendly_message(self) -> str:
        """Return a short message naming the likely cause of the failure."""
        import httpx

        base = f"[{self.method}] {self.endpoint} failed: {self}"
        if self.cause is None:
            return base
        if isinstance(self.cause, httpx.TimeoutException):
            reason = "Request timed out"
        elif isinstance(self.cause, httpx.ConnectError):
            reason = "Connection to server failed"
        elif isinstance(self.cause, httpx.NetworkError):
            reason = "Network connection failed"
        elif isinstance(self.cause, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
            reason = "Invalid request URL"
        else:
            reason = str(self.cause)
        return f"{base}\nCause: {reason}"


class ApiAssertionError(FluentApiError, AssertionError):
    """Raised when a response does not meet an expectation.

    The exception is a first-class record of the failure rather than a bare
    message: callers and reporters can read which facet failed, what was
    expected, what was received and the full :class:`ResultContext`.

    Args:
        facet: The checked facet -- ``"status"``, ``"headers"`` or ``"body"``.
        expected: Description of the expected value.
        actual: Description of the actual value.
        result: The result context that failed the check, when available.
        message: Optional message; built from the other fields when omitted.
    """

    exit_code = EXIT_ASSERTION_FAILURE

    def __init__(
        self,
        facet: str,
        expected: Any,
        actual: Any,
        result: Optional[ResultContext] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            message = f"{facet} check failed: expected {expected}, actual {actual}"
        super().__init__(message)
        self.facet = facet
        self.expected = expected
        self.actual = actual
        self.result = result

    @property
    def endpoint(self) -> Optional[str]:
        if self.result is None:
            return None
        return self.result.request.endpoint

    @property
    def method(self) -> Optional[str]:
        if self.result is None:
            return None
        return self.result.request.method.value

    @property
    def body_snippet(self) -> Optional[str]:
        """The first characters of the response body, for diagnostics."""
        if self.result is None or not self.result.raw_body:
            return None
        return self.result.raw_body[:_SNIPPET_LENGTH]
