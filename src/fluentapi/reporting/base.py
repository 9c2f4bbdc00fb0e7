"""Reporter interface and the runner that shields requests from reporter errors.

This module provides two core components:

* :class:`Reporter` -- Base class with four no-op hooks. Subclasses override
  the ones they need: ``on_request_sent``, ``on_response_received``,
  ``on_assertion_passed`` and ``on_assertion_failed``.
* :class:`ReporterRunner` -- Calls a reporter's hooks on behalf of
  :class:`~fluentapi.context.ApiContext` and
  :class:`~fluentapi.result.ResultContext`. Exceptions raised by a reporter
  are logged at WARNING and swallowed, so a broken reporter can never change
  a request's outcome.

Reporters receive read-only objects: a frozen
:class:`~fluentapi.request.RequestSpec` and a
:class:`~fluentapi.result.ResultContext`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fluentapi.request import RequestSpec
    from fluentapi.result import ResultContext

logger = logging.getLogger(__name__)


class Reporter:
    """Base class for request/response reporters.

    All hooks default to no-ops.

    Example::

        class CountingReporter(Reporter):
            def __init__(self):
                self.failures = 0

            def on_assertion_failed(self, message, result):
                self.failures += 1
    """

    def on_request_sent(self, spec: RequestSpec) -> None:
        """Called just before *spec* is handed to the executor."""

    def on_response_received(self, result: ResultContext) -> None:
        """Called once the executor has returned *result*."""

    def on_assertion_passed(self, message: str, result: ResultContext) -> None:
        """Called for each check of ``should_return`` that passes."""

    def on_assertion_failed(self, message: str, result: ResultContext) -> None:
        """Called for a failed check, just before the error is raised."""


class NullReporter(Reporter):
    """Reporter that ignores every event."""


class ReporterRunner:
    """Invokes one :class:`Reporter`, logging and swallowing its exceptions.

    Args:
        reporter: The reporter to call. Defaults to :class:`NullReporter`.
    """

    def __init__(self, reporter: Reporter | None = None) -> None:
        self._reporter = reporter if reporter is not None else NullReporter()

    @property
    def reporter(self) -> Reporter:
        return self._reporter

    def request_sent(self, spec: RequestSpec) -> None:
        self._call("on_request_sent", spec)

    def response_received(self, result: ResultContext) -> None:
        self._call("on_response_received", result)

    def assertion_passed(self, message: str, result: ResultContext) -> None:
        self._call("on_assertion_passed", message, result)

    def assertion_failed(self, message: str, result: ResultContext) -> None:
        self._call("on_assertion_failed", message, result)

    def _call(self, hook: str, *args: object) -> None:
        try:
            getattr(self._reporter, hook)(*args)
        except Exception:
            # Reporter errors must not alter the request's control flow.
            logger.warning(
                "Reporter %s raised in %s; ignoring",
                type(self._reporter).__name__,
                hook,
                exc_info=True,
            )
