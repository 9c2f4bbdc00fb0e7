"""Typer application and console-script entry point for fluentapi.

``fluentapi request`` sends one request through the same fluent API a test
suite uses, which makes it handy for trying out an endpoint before writing a
test for it::

    fluentapi request GET /users/{id} --base-url https://api.example.com \\
        -p id=1 -H "Accept: application/json" --expect-status 200

Defaults come from :func:`fluentapi.config.resolve_defaults`, so a project's
``fluentapi.json`` and the ``FLUENTAPI_*`` environment variables apply.
Errors exit with the ``exit_code`` of the raised
:class:`~fluentapi.exceptions.FluentApiError` (2 for bad usage, 3 for auth
failures, 6 for transport failures, 8 for a failed ``--expect-status``).

See Also:
    :mod:`fluentapi.output`: stdout/stderr handling used here.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional

import typer

from fluentapi import __version__
from fluentapi.api import Api
from fluentapi.config import resolve_defaults
from fluentapi.exceptions import ApiExecutionError, FluentApiError, InvalidArgumentError
from fluentapi.exit_codes import EXIT_GENERIC_FAILURE
from fluentapi.output import OutputFormat, OutputManager, get_output, set_output
from fluentapi.reporting import get_reporter
from fluentapi.request import HttpMethod, coerce_method

app = typer.Typer(
    name="fluentapi",
    help="Compose, send and check HTTP requests from the command line.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

_SUPPORTED_METHODS = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.PATCH,
    HttpMethod.DELETE,
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"fluentapi {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """fluentapi -- fluent HTTP requests and assertions."""


# ------------------------------------------------------------------ #
# Argument parsing helpers
# ------------------------------------------------------------------ #


def parse_header(raw: str) -> tuple[str, str]:
    """Split ``"Name: value"`` into its parts."""
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise InvalidArgumentError(f"Expected 'Name: value', got {raw!r}", "header")
    return name.strip(), value.strip()


def parse_pair(raw: str, param: str) -> tuple[str, str]:
    """Split ``"key=value"`` into its parts."""
    key, sep, value = raw.partition("=")
    if not sep or not key.strip():
        raise InvalidArgumentError(f"Expected 'key=value', got {raw!r}", param)
    return key.strip(), value


def parse_body(body: Optional[str]) -> Any:
    """Parse *body* as JSON if possible, returning the raw string on failure."""
    if body is None:
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        return body


def _parse_method(method: str) -> HttpMethod:
    try:
        verb = coerce_method(method)
    except ValueError:
        verb = None
    if verb not in _SUPPORTED_METHODS:
        names = ", ".join(m.value for m in _SUPPORTED_METHODS)
        raise InvalidArgumentError(f"Unsupported method {method!r}; use one of {names}", "method")
    return verb


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@app.command("request")
def request_command(
    method: str = typer.Argument(..., help="HTTP method: GET, POST, PUT, PATCH or DELETE."),
    endpoint: str = typer.Argument(..., help="Absolute URL or path relative to the base URL."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Base URL for relative endpoints."),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help="Header as 'Name: value'."),
    query: Optional[list[str]] = typer.Option(None, "--query", "-q", help="Query parameter as key=value."),
    path: Optional[list[str]] = typer.Option(None, "--path", "-p", help="Path parameter as key=value."),
    cookie: Optional[list[str]] = typer.Option(None, "--cookie", help="Cookie as name=value."),
    body: Optional[str] = typer.Option(None, "--body", help="Request body (JSON or raw text)."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Timeout in seconds."),
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token."),
    expect_status: Optional[int] = typer.Option(
        None, "--expect-status", help="Fail (exit 8) unless the response has this status."
    ),
    reporter: str = typer.Option(
        "null", "--reporter", help="Reporter: default, compact or null."
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.AUTO, "--format", help="Body format on stdout."
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Project config file (default: ./fluentapi.json|yaml|yml)."
    ),
    quiet: bool = typer.Option(False, "--quiet", help="Suppress the status line."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
) -> None:
    """Send one request and print the response.

    The status line goes to stderr and the body to stdout.
    """
    output = OutputManager(format=output_format, no_color=no_color, quiet=quiet)
    set_output(output)
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    try:
        verb = _parse_method(method)
        defaults = resolve_defaults(
            base_url=base_url,
            timeout=timeout,
            headers=dict(parse_header(h) for h in header or []),
            token=token,
            config_path=config_path,
        )
        with Api(
            defaults=defaults,
            reporter=get_reporter(reporter, console=output.stderr_console),
        ) as api:
            ctx = api.for_(endpoint)
            for raw in query or []:
                ctx = ctx.with_query_param(*parse_pair(raw, "query"))
            for raw in path or []:
                ctx = ctx.with_path_param(*parse_pair(raw, "path"))
            for raw in cookie or []:
                ctx = ctx.with_cookie(*parse_pair(raw, "cookie"))

            if verb.carries_body:
                result = getattr(ctx, verb.value.lower())(parse_body(body))
            else:
                result = getattr(ctx, verb.value.lower())()

            output.print_result(result)
            if expect_status is not None:
                result.should_return(status=expect_status)
    except FluentApiError as exc:
        output.error(_error_message(exc, verbose))
        raise typer.Exit(code=exc.exit_code) from None


def _error_message(exc: FluentApiError, verbose: bool) -> str:
    """Transport failures get a cause hint, or the full masked request with ``--verbose``."""
    if isinstance(exc, ApiExecutionError):
        return exc.describe() if verbose else exc.friendly_message()
    return str(exc)


def main() -> None:
    """CLI entry point invoked by the ``fluentapi`` console script.

    :class:`~fluentapi.exceptions.FluentApiError` instances that escape a
    command cause a clean exit with the error's ``exit_code``.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except FluentApiError as exc:
        get_output().error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        get_output().error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)


if __name__ == "__main__":
    main()
