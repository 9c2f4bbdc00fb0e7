"""Default :class:`~fluentapi.executors.base.HttpExecutor` backed by httpx.

:class:`HttpxExecutor` wraps a synchronous :class:`httpx.Client` and maps a
:class:`~fluentapi.request.RequestSpec` onto it:

- **URL** -- path parameters substituted, relative endpoints joined to the
  executor's ``base_url``, query parameters appended
  (see :func:`fluentapi.urls.build_url`).
- **Cookies** -- sent as one ``Cookie: a=1; b=2`` header, after any
  ``Cookie`` header the spec already carries.
- **Body** -- only for POST, PUT and PATCH. ``str`` and ``bytes`` are sent
  as is; pydantic models and any other object are serialised to JSON, with
  ``Content-Type: application/json`` unless the spec sets its own.
- **Timeout** -- ``spec.timeout`` when set, otherwise the client default.

No status code is treated as an error and nothing is retried: one spec, one
exchange. Transport failures are wrapped in
:class:`~fluentapi.exceptions.ApiExecutionError`.

See Also:
    :class:`fluentapi.executors.base.HttpExecutor` for the contract.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import timedelta
from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel

from fluentapi.defaults import DEFAULT_TIMEOUT
from fluentapi.exceptions import ApiExecutionError
from fluentapi.executors.base import HttpExecutor
from fluentapi.headers import HeaderMap
from fluentapi.request import RequestSpec
from fluentapi.result import ResultContext
from fluentapi.urls import build_url, is_absolute_url

logger = logging.getLogger(__name__)

_JSON_CONTENT_TYPE = "application/json"


def serialize_body(body: Any) -> tuple[bytes, bool]:
    """Encode a request body.

    Returns:
        A ``(content, is_json)`` tuple. ``is_json`` is ``False`` for ``str``
        and ``bytes`` bodies, which are sent without re-encoding.

    Raises:
        TypeError: If the body cannot be serialised to JSON.
        ValueError: If the body contains values JSON cannot represent.
    """
    if isinstance(body, bytes):
        return body, False
    if isinstance(body, str):
        return body.encode("utf-8"), False
    if isinstance(body, BaseModel):
        body = body.model_dump(mode="json")
    return json.dumps(body).encode("utf-8"), True


def cookie_header(cookies: dict[str, str], existing: Optional[str] = None) -> str:
    """Render *cookies* as a ``Cookie`` header value, after *existing* if given."""
    value = "; ".join(f"{name}={val}" for name, val in cookies.items())
    if existing:
        return f"{existing}; {value}"
    return value


class HttpxExecutor(HttpExecutor):
    """Execute request specs with :class:`httpx.Client`.

    Args:
        base_url: Prefixed to relative endpoints. Absolute endpoints are
            sent unchanged.
        client: An existing client to send requests with. It is not closed
            by :meth:`close`.
        timeout: Default timeout in seconds for requests without one
            (30 seconds when omitted).
        verify: Verify TLS certificates (ignored when *client* is given).
        follow_redirects: Follow redirects (ignored when *client* is given).
        transport: Custom httpx transport, e.g. :class:`httpx.MockTransport`
            in tests (ignored when *client* is given).

    Example::

        with HttpxExecutor(base_url="https://api.example.com") as executor:
            result = executor.execute(RequestSpec("/users/1"))
            assert result.status_code == 200
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout: Optional[Union[float, timedelta]] = None,
        verify: bool = True,
        follow_redirects: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        if isinstance(timeout, timedelta):
            timeout = timeout.total_seconds()
        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            self._client = httpx.Client(
                timeout=DEFAULT_TIMEOUT if timeout is None else timeout,
                verify=verify,
                follow_redirects=follow_redirects,
                transport=transport,
            )
            self._owns_client = True

    @property
    def base_url(self) -> Optional[str]:
        return self._base_url

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpxExecutor:
        return self

    def close(self) -> None:
        """Close the underlying client if this executor created it."""
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    def execute(self, spec: RequestSpec) -> ResultContext:
        """Send *spec* and wrap the response in a :class:`ResultContext`.

        Raises:
            ApiExecutionError: On connection failures, timeouts, malformed
                URLs or a body that cannot be serialised.
        """
        url = build_url(spec, self._base_url)
        if not is_absolute_url(url):
            raise ApiExecutionError(
                f"Cannot resolve relative endpoint {url!r} without a base URL", spec
            )
        headers = self._build_headers(spec)
        content: Optional[bytes] = None

        if spec.method.carries_body and spec.body is not None:
            try:
                content, is_json = serialize_body(spec.body)
            except (TypeError, ValueError) as exc:
                raise ApiExecutionError(
                    f"Request body of type {type(spec.body).__name__} could not be serialised: {exc}",
                    spec,
                    cause=exc,
                ) from exc
            if is_json and "content-type" not in headers:
                headers = headers.set("Content-Type", _JSON_CONTENT_TYPE)

        timeout: Any = spec.timeout if spec.timeout is not None else httpx.USE_CLIENT_DEFAULT

        logger.debug("Dispatching %s %s", spec.method.value, url)
        started = time.perf_counter()
        try:
            response = self._client.request(
                spec.method.value,
                url,
                headers=headers.to_dict(),
                content=content,
                timeout=timeout,
            )
        except httpx.InvalidURL as exc:
            raise ApiExecutionError(f"Invalid request URL: {url}", spec, cause=exc) from exc
        except httpx.HTTPError as exc:
            raise ApiExecutionError(f"Request failed: {exc}", spec, cause=exc) from exc
        elapsed = timedelta(seconds=time.perf_counter() - started)

        logger.debug(
            "%s %s -> %d in %.1f ms",
            spec.method.value,
            url,
            response.status_code,
            elapsed.total_seconds() * 1000,
        )
        return ResultContext(
            status_code=response.status_code,
            headers=HeaderMap(response.headers.items()),
            raw_body=response.text,
            duration=elapsed,
            request=spec,
            set_cookies=response.headers.get_list("set-cookie"),
        )

    def _build_headers(self, spec: RequestSpec) -> HeaderMap:
        headers = spec.headers
        if spec.cookies:
            headers = headers.set(
                "Cookie", cookie_header(dict(spec.cookies), headers.get("Cookie"))
            )
        return headers
