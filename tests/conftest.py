"""Shared test fixtures for fluentapi.

Provides an isolated environment for configuration tests, a recording
``httpx.MockTransport`` for exercising the real executor without a network,
and automatic reset of the global output state. These fixtures are
discovered by pytest and available to all test modules.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from fluentapi.api import Api
from fluentapi.executors.httpx_executor import HttpxExecutor
from fluentapi.output import reset_output

BASE_URL = "https://api.example.com"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager keeps references to sys.stdout/sys.stderr. When
    Typer's CliRunner swaps those streams the references go stale, so a
    fresh manager is forced on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty working directory with no FLUENTAPI_* variables set."""
    for var in ["FLUENTAPI_BASE_URL", "FLUENTAPI_TIMEOUT", "FLUENTAPI_TOKEN"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Mock transport
# ---------------------------------------------------------------------------


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            request.read()
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def json_handler(
    data: object = None, status_code: int = 200, headers: dict[str, str] | None = None
) -> Callable[[httpx.Request], httpx.Response]:
    """Handler answering every request with the same JSON response."""

    def handler(request: httpx.Request) -> httpx.Response:
        if data is None:
            return httpx.Response(status_code, headers=headers)
        return httpx.Response(status_code, json=data, headers=headers)

    return handler


@pytest.fixture
def transport() -> RecordingTransport:
    """A recording transport answering ``200 {"ok": true}``."""
    return RecordingTransport(json_handler({"ok": True}))


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """Build a recording transport from a handler or a canned JSON response."""

    def _make(
        data: object = None,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> RecordingTransport:
        return RecordingTransport(handler or json_handler(data, status_code, headers))

    return _make


@pytest.fixture
def make_api() -> Callable[..., Api]:
    """Build an :class:`Api` whose executor sends through *transport*."""
    created: list[Api] = []

    def _make(transport: httpx.BaseTransport, base_url: str | None = BASE_URL, **kwargs) -> Api:
        api = Api(base_url, executor=HttpxExecutor(transport=transport), **kwargs)
        created.append(api)
        return api

    yield _make
    for api in created:
        api.executor.close()
