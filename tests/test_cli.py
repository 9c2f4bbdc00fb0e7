"""Tests for the ``fluentapi`` command line."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from fluentapi import __version__
from fluentapi.cli import app, parse_body, parse_header, parse_pair
from fluentapi.exceptions import InvalidArgumentError
from fluentapi.executors.httpx_executor import HttpxExecutor

runner = CliRunner()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def served(isolated_env: Path, monkeypatch: pytest.MonkeyPatch, make_transport) -> Callable:
    """Route the CLI's executor through a recording mock transport."""

    def _serve(data: object = None, status_code: int = 200, handler=None):
        transport = make_transport(data, status_code, handler=handler)
        monkeypatch.setattr(
            "fluentapi.api.HttpxExecutor", lambda: HttpxExecutor(transport=transport)
        )
        return transport

    return _serve


def _invoke(*args: str):
    return runner.invoke(app, ["request", *args, "--no-color"])


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------


class TestParsing:
    def test_parse_header(self) -> None:
        assert parse_header("Accept:  application/json ") == ("Accept", "application/json")

    def test_parse_header_keeps_later_colons(self) -> None:
        assert parse_header("X-Url: http://x") == ("X-Url", "http://x")

    @pytest.mark.parametrize("raw", ["NoColon", ": value"])
    def test_parse_header_invalid(self, raw: str) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            parse_header(raw)
        assert exc_info.value.param == "header"

    def test_parse_pair(self) -> None:
        assert parse_pair("q=a=b", "query") == ("q", "a=b")

    def test_parse_pair_invalid(self) -> None:
        with pytest.raises(InvalidArgumentError, match="parameter: path"):
            parse_pair("novalue", "path")

    def test_parse_body(self) -> None:
        assert parse_body('{"a": 1}') == {"a": 1}
        assert parse_body("plain") == "plain"
        assert parse_body(None) is None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"fluentapi {__version__}" in result.output


class TestRequestCommand:
    def test_get_prints_status_and_body(self, served) -> None:
        transport = served({"id": 1, "name": "Ann"})
        result = _invoke(
            "GET", "/users/{id}", "--base-url", "https://api.example.com", "-p", "id=1", "-q", "expand=roles"
        )
        assert result.exit_code == 0, result.output
        assert "HTTP 200 OK" in result.output
        assert '"name": "Ann"' in result.output or '"name":"Ann"' in result.output
        assert str(transport.last.url) == "https://api.example.com/users/1?expand=roles"

    def test_post_json_body_headers_and_token(self, served) -> None:
        transport = served({"id": 2}, status_code=201)
        result = _invoke(
            "post",
            "https://api.example.com/users",
            "--body",
            '{"name": "Bo"}',
            "-H",
            "X-Trace: t1",
            "--token",
            "abc",
            "--cookie",
            "sid=9",
            "--expect-status",
            "201",
        )
        assert result.exit_code == 0, result.output
        request = transport.last
        assert request.method == "POST"
        assert json.loads(request.content) == {"name": "Bo"}
        assert request.headers["x-trace"] == "t1"
        assert request.headers["authorization"] == "Bearer abc"
        assert request.headers["cookie"] == "sid=9"

    def test_expect_status_mismatch_exits_8(self, served) -> None:
        served({"id": 2}, status_code=201)
        result = _invoke("POST", "https://api.example.com/users", "--expect-status", "200")
        assert result.exit_code == 8
        assert "Expected status 200, actual 201" in result.output

    def test_unsupported_method_exits_2(self, served) -> None:
        transport = served()
        result = _invoke("TRACE", "https://api.example.com/x")
        assert result.exit_code == 2
        assert "Unsupported method" in result.output
        assert transport.requests == []

    def test_bad_header_exits_2(self, served) -> None:
        result = _invoke("GET", "https://api.example.com/x", "-H", "broken")
        assert result.exit_code == 2

    def test_empty_endpoint_exits_2(self, served) -> None:
        result = _invoke("GET", "  ")
        assert result.exit_code == 2
        assert "Endpoint cannot be null or empty" in result.output

    def test_connection_failure_exits_6(self, served) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        served(handler=handler)
        result = _invoke("GET", "https://api.example.com/x")
        assert result.exit_code == 6
        assert "Connection to server failed" in result.output

    def test_verbose_connection_failure_describes_request(self, served) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        served(handler=handler)
        result = _invoke(
            "GET", "https://api.example.com/x", "-v",
            "-H", "Authorization: Bearer secret-token", "-q", "page=2",
        )
        assert result.exit_code == 6
        assert "Cause: ConnectError - refused" in result.output
        assert "Authorization=***MASKED***" in result.output
        assert "Query Params: page=2" in result.output
        assert "secret-token" not in result.output

    def test_base_url_from_environment(self, served, monkeypatch: pytest.MonkeyPatch) -> None:
        transport = served({"ok": True})
        monkeypatch.setenv("FLUENTAPI_BASE_URL", "https://env.example.com")
        result = _invoke("DELETE", "/items/3")
        assert result.exit_code == 0, result.output
        assert str(transport.last.url) == "https://env.example.com/items/3"

    def test_compact_reporter(self, served) -> None:
        served({"ok": True})
        result = _invoke(
            "GET", "https://api.example.com/health", "--reporter", "compact", "--expect-status", "200"
        )
        assert result.exit_code == 0, result.output
        assert "REQ GET https://api.example.com/health" in result.output
        assert "PASS: Status code is 200" in result.output

    def test_unknown_reporter_exits_1(self, served) -> None:
        result = _invoke("GET", "https://api.example.com/x", "--reporter", "fancy")
        assert result.exit_code == 1
        assert "Unknown reporter" in result.output

    def test_quiet_json_format(self, served) -> None:
        served({"id": 1})
        result = _invoke("GET", "https://api.example.com/x", "--quiet", "--format", "json")
        assert result.exit_code == 0
        assert "HTTP 200" not in result.output
        assert json.loads(result.output) == {"id": 1}
