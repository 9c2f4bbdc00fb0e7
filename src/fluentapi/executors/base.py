"""The execution boundary between the fluent API and a transport.

:class:`HttpExecutor` turns a finished :class:`~fluentapi.request.RequestSpec`
into a :class:`~fluentapi.result.ResultContext`. The fluent layer never talks
to the network itself, so tests can swap in an executor that returns canned
results, and alternative transports only need to implement
:meth:`HttpExecutor.execute`.

Contract for implementations:

* ``execute`` blocks until a complete response has been read.
* Any HTTP status, including 4xx and 5xx, is a result rather than an error.
* Transport failures (connection refused, DNS, timeout, malformed URL,
  unserialisable body) raise :class:`~fluentapi.exceptions.ApiExecutionError`
  carrying the spec.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fluentapi.request import RequestSpec
    from fluentapi.result import ResultContext


class HttpExecutor(ABC):
    """Abstract base class for request executors.

    Executors own their transport resources. They can be used as context
    managers; :meth:`close` is a no-op unless overridden.
    """

    @abstractmethod
    def execute(self, spec: RequestSpec) -> ResultContext:
        """Send *spec* and return the response.

        Args:
            spec: The finished request specification.

        Returns:
            A :class:`~fluentapi.result.ResultContext` for any HTTP status.

        Raises:
            ApiExecutionError: If no response could be obtained.
        """
        ...

    def close(self) -> None:
        """Release transport resources."""

    def __enter__(self) -> HttpExecutor:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
