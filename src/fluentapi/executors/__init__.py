"""Request executors: the boundary between the fluent API and the network.

- :class:`HttpExecutor` -- abstract base class every transport implements.
- :class:`HttpxExecutor` -- the default transport, built on :mod:`httpx`.
"""

from fluentapi.executors.base import HttpExecutor
from fluentapi.executors.httpx_executor import HttpxExecutor

__all__ = ["HttpExecutor", "HttpxExecutor"]
