"""Response checks shared by :class:`~fluentapi.result.ResultContext`.

Each function compares one facet of a response with an expectation and
raises :class:`~fluentapi.exceptions.ApiAssertionError` on mismatch. They have
no other side effects; reporting is left to the caller.

Body decoding goes through :class:`pydantic.TypeAdapter`, so any type
pydantic understands can be requested: ``Any`` for plain JSON trees, models,
``list[Model]``, ``dict[str, int]`` and so on. ``str`` returns the raw text
unparsed. A body that is empty, malformed or does not match the requested
shape fails the check instead of decoding to ``None``.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Optional, get_origin

from pydantic import TypeAdapter, ValidationError

from fluentapi.exceptions import ApiAssertionError
from fluentapi.headers import HeaderMap

if TYPE_CHECKING:
    from fluentapi.result import ResultContext

HeaderPredicate = Callable[[HeaderMap], Any]
BodyValidator = Callable[[Any], Any]


def shape_name(shape: Any) -> str:
    """Readable name of a requested body shape, for messages."""
    if shape is Any:
        return "JSON"
    if get_origin(shape) is not None:
        return repr(shape)
    return getattr(shape, "__name__", None) or repr(shape)


@lru_cache(maxsize=256)
def _adapter(shape: Any) -> TypeAdapter[Any]:
    return TypeAdapter(shape)


def deserialize_body(
    raw_body: str, shape: Any = Any, result: Optional[ResultContext] = None
) -> Any:
    """Decode *raw_body* into *shape*.

    Args:
        raw_body: The response body text.
        shape: Target type; ``Any`` yields dicts, lists and scalars, ``str``
            returns *raw_body* unchanged.
        result: Attached to the raised error for diagnostics.

    Returns:
        The decoded value.

    Raises:
        ApiAssertionError: With ``facet="body"`` when the body is empty or
            cannot be decoded into *shape*.
    """
    if shape is str:
        return raw_body
    if not raw_body or not raw_body.strip():
        raise ApiAssertionError(
            "body",
            f"a {shape_name(shape)} body",
            "an empty body",
            result=result,
            message=f"Cannot deserialize an empty response body to {shape_name(shape)}",
        )
    try:
        return _adapter(shape).validate_json(raw_body)
    except ValidationError as exc:
        raise ApiAssertionError(
            "body",
            f"a {shape_name(shape)} body",
            raw_body[:200],
            result=result,
            message=f"Failed to deserialize response body to {shape_name(shape)}: {exc}",
        ) from exc


def validate_status(
    actual: int, expected: int, result: Optional[ResultContext] = None
) -> None:
    """Fail unless *actual* equals *expected*."""
    if actual != expected:
        raise ApiAssertionError(
            "status",
            expected,
            actual,
            result=result,
            message=f"Expected status {expected}, actual {actual}",
        )


def validate_headers(
    headers: HeaderMap, predicate: HeaderPredicate, result: Optional[ResultContext] = None
) -> None:
    """Fail when *predicate* returns a falsy value or raises.

    Args:
        headers: Response headers (case-insensitive).
        predicate: Receives *headers*.
        result: Attached to the raised error for diagnostics.

    Raises:
        ApiAssertionError: With ``facet="headers"``.
    """
    try:
        passed = predicate(headers)
    except Exception as exc:
        raise ApiAssertionError(
            "headers",
            "header predicate to pass",
            f"predicate raised {type(exc).__name__}: {exc}",
            result=result,
        ) from exc
    if not passed:
        # Imported here: the reporting package imports this module.
        from fluentapi.reporting.masking import mask_headers

        masked = mask_headers(headers.to_dict())
        raise ApiAssertionError(
            "headers",
            "header predicate to pass",
            masked,
            result=result,
            message=f"Header validation failed; actual headers: {masked}",
        )


def validate_body(
    raw_body: str,
    validator: BodyValidator,
    shape: Any = Any,
    result: Optional[ResultContext] = None,
) -> Any:
    """Decode *raw_body* and run *validator* on the value.

    The validator fails the check by raising (``assert`` statements included)
    or by returning ``False``. Any other return value, ``None`` included,
    passes.

    Returns:
        The decoded body.

    Raises:
        ApiAssertionError: With ``facet="body"`` when decoding fails or the
            validator rejects the body.
    """
    value = deserialize_body(raw_body, shape, result)
    try:
        outcome = validator(value)
    except ApiAssertionError:
        raise
    except Exception as exc:
        detail = str(exc) or type(exc).__name__
        raise ApiAssertionError(
            "body",
            "body validator to pass",
            raw_body[:200],
            result=result,
            message=f"Body validation failed: {detail}",
        ) from exc
    if outcome is False:
        raise ApiAssertionError(
            "body",
            "body validator to pass",
            raw_body[:200],
            result=result,
            message="Body validation failed: validator returned False",
        )
    return value
