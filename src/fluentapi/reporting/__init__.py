"""Reporters observe requests, responses and assertion outcomes.

- :class:`Reporter` -- base class with no-op hooks.
- :class:`ReporterRunner` -- calls a reporter and swallows its errors.
- :class:`ConsoleReporter`, :class:`CompactReporter`, :class:`NullReporter`
  -- the built-in reporters.
- :func:`get_reporter` -- looks a built-in reporter up by name.
"""

from __future__ import annotations

from typing import Optional

from rich.console import Console

from fluentapi.exceptions import ConfigError
from fluentapi.reporting.base import NullReporter, Reporter, ReporterRunner
from fluentapi.reporting.console import CompactReporter, ConsoleReporter

_REPORTERS: dict[str, type[Reporter]] = {
    "default": ConsoleReporter,
    "compact": CompactReporter,
    "null": NullReporter,
}


def reporter_names() -> list[str]:
    """Names accepted by :func:`get_reporter`."""
    return sorted(_REPORTERS)


def get_reporter(name: Optional[str] = None, console: Optional[Console] = None) -> Reporter:
    """Create a built-in reporter by name.

    Args:
        name: ``"default"``, ``"compact"`` or ``"null"`` (case-insensitive).
            ``None`` or an empty name selects ``"default"``.
        console: Console for the console-based reporters.

    Raises:
        ConfigError: For an unknown name.
    """
    key = (name or "default").strip().lower()
    reporter_cls = _REPORTERS.get(key)
    if reporter_cls is None:
        raise ConfigError(
            f"Unknown reporter '{name}'. Available: {', '.join(reporter_names())}"
        )
    if reporter_cls is NullReporter:
        return NullReporter()
    return reporter_cls(console=console)  # type: ignore[call-arg]


__all__ = [
    "CompactReporter",
    "ConsoleReporter",
    "NullReporter",
    "Reporter",
    "ReporterRunner",
    "get_reporter",
    "reporter_names",
]
