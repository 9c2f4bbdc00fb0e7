"""URL assembly helpers shared by the fluent API and the executors.

The rules are deliberately small:

* An endpoint with a ``scheme://`` prefix is *absolute* and is never combined
  with a base URL.
* A relative endpoint is joined to the base as
  ``base.rstrip("/") + "/" + endpoint.lstrip("/")``.
* ``{name}`` placeholders are replaced by ``str(value)`` for every supplied
  path parameter; placeholders without a value stay in the URL verbatim.
* Query values are stringified at execution time (``True`` -> ``"true"``,
  ``None`` -> ``""``); sequences produce repeated keys.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

if TYPE_CHECKING:
    from fluentapi.request import RequestSpec

_ABSOLUTE_URL = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")


def is_absolute_url(endpoint: str) -> bool:
    """Return ``True`` when *endpoint* carries its own ``scheme://`` prefix."""
    return bool(_ABSOLUTE_URL.match(endpoint))


def join_url(base_url: Optional[str], endpoint: str) -> str:
    """Combine *base_url* and *endpoint* unless the endpoint is absolute.

    Args:
        base_url: The configured base, or ``None``.
        endpoint: Absolute URL or path relative to *base_url*.

    Returns:
        The combined URL. *endpoint* is returned unchanged when it is
        absolute or when no base is configured.
    """
    if not base_url or is_absolute_url(endpoint):
        return endpoint
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


def substitute_path_params(endpoint: str, path_params: Mapping[str, Any]) -> str:
    """Replace each ``{key}`` in *endpoint* with the stringified value."""
    for key, value in path_params.items():
        endpoint = endpoint.replace("{" + key + "}", str(value))
    return endpoint


def stringify_query_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_query(query_params: Mapping[str, Any]) -> str:
    """Encode *query_params* as a query string (without the leading ``?``)."""
    pairs: list[tuple[str, str]] = []
    for key, value in query_params.items():
        if isinstance(value, (list, tuple, set, frozenset)):
            pairs.extend((key, stringify_query_value(item)) for item in value)
        else:
            pairs.append((key, stringify_query_value(value)))
    return urlencode(pairs, quote_via=quote)


def append_query(url: str, query_params: Mapping[str, Any]) -> str:
    """Append *query_params* to *url*, respecting an existing query string.

    The query is inserted before any ``#fragment`` so the server receives it.
    """
    if not query_params:
        return url
    parts = urlsplit(url)
    encoded = encode_query(query_params)
    query = f"{parts.query}&{encoded}" if parts.query else encoded
    return urlunsplit(parts._replace(query=query))


def build_url(spec: RequestSpec, base_url: Optional[str] = None) -> str:
    """Resolve the final request URL for *spec*.

    Path parameters are substituted first, then the endpoint is joined to
    *base_url* (if relative) and the query string is appended.
    """
    endpoint = substitute_path_params(spec.endpoint, spec.path_params)
    return append_query(join_url(base_url, endpoint), spec.query_params)
