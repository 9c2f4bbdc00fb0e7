"""Redaction of credentials before requests and responses are displayed.

Reporters and :meth:`~fluentapi.exceptions.ApiExecutionError.describe` show
headers and bodies to humans and CI logs. Header values whose lower-cased
name contains any of :data:`SENSITIVE_HEADER_PARTS`, and top-level JSON body
fields whose name contains any of :data:`SENSITIVE_BODY_PARTS`, are replaced
by :data:`MASK`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

MASK = "***MASKED***"

SENSITIVE_HEADER_PARTS = (
    "authorization",
    "auth",
    "token",
    "password",
    "secret",
    "key",
    "bearer",
    "cookie",
)

SENSITIVE_BODY_PARTS = ("password", "token", "secret")


def is_sensitive_header(name: str) -> bool:
    lower = name.lower()
    return any(part in lower for part in SENSITIVE_HEADER_PARTS)


def mask_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of *headers* with sensitive values replaced by :data:`MASK`."""
    return {
        name: (MASK if is_sensitive_header(name) else value) for name, value in headers.items()
    }


def mask_json_fields(data: Any) -> Any:
    """Mask sensitive top-level fields of a decoded JSON object.

    Non-object values are returned unchanged.
    """
    if not isinstance(data, dict):
        return data
    return {
        key: (MASK if any(part in str(key).lower() for part in SENSITIVE_BODY_PARTS) else value)
        for key, value in data.items()
    }


def mask_body_text(raw: str) -> str:
    """Mask sensitive fields in a JSON text, pretty-printed.

    Text that is not JSON is returned unchanged.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return raw
    return json.dumps(mask_json_fields(data), indent=2, ensure_ascii=False)
