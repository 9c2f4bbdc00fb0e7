"""Console reporters built on :mod:`rich`.

* :class:`ConsoleReporter` -- a rounded table per request and per response,
  coloured pass/fail lines per assertion, and the response body in a red
  panel when an assertion fails.
* :class:`CompactReporter` -- one plain line per event (``REQ GET /users``,
  ``RES 200 (12 ms)``, ``PASS: ...``, ``FAIL: ...``).

Both write to stderr by default so they never mix with data a test or the
CLI prints to stdout. Sensitive headers and JSON body fields are masked
(see :mod:`fluentapi.reporting.masking`).
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from fluentapi.reporting.base import Reporter
from fluentapi.reporting.masking import mask_body_text, mask_headers, mask_json_fields
from fluentapi.request import RequestSpec
from fluentapi.result import ResultContext


def _body_text(body: Any) -> str:
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        return mask_body_text(body)
    if isinstance(body, BaseModel):
        body = body.model_dump(mode="json")
    try:
        return json.dumps(mask_json_fields(body), indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(body)


class ConsoleReporter(Reporter):
    """Render requests, responses and assertion outcomes as rich tables.

    Args:
        console: Console to write to. Defaults to a stderr console.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console if console is not None else Console(stderr=True)

    @property
    def console(self) -> Console:
        return self._console

    def _table(self, title: str) -> Table:
        table = Table(title=f"[yellow]{title}[/yellow]", box=box.ROUNDED)
        table.add_column("Field")
        table.add_column("Value")
        return table

    def _add_headers(self, table: Table, headers: dict[str, str]) -> None:
        if not headers:
            return
        table.add_row("", "")
        table.add_row("[bold]Headers[/bold]", "")
        for name, value in mask_headers(headers).items():
            table.add_row(f"• {escape(name)}", escape(value))

    def _add_body(self, table: Table, text: str) -> None:
        if not text.strip():
            return
        table.add_row("", "")
        table.add_row("[bold]Body[/bold]", "")
        table.add_row("", f"[grey50]{escape(text)}[/grey50]")

    def on_request_sent(self, spec: RequestSpec) -> None:
        table = self._table("API Request")
        table.add_row("Method", f"[green]{spec.method.value}[/green]")
        table.add_row("Url", f"[blue]{escape(spec.resolved_endpoint())}[/blue]")
        if spec.query_params:
            table.add_row(
                "Query",
                escape(", ".join(f"{k}={v}" for k, v in spec.query_params.items())),
            )
        self._add_headers(table, spec.headers.to_dict())
        if spec.body is not None:
            self._add_body(table, _body_text(spec.body))
        self._console.print(table)

    def on_response_received(self, result: ResultContext) -> None:
        table = self._table("API Response")
        colour = "green" if result.is_success else "red"
        table.add_row("Status", f"[{colour}]{result.status_code}[/{colour}]")
        table.add_row("Duration", f"{result.duration_ms:.0f} ms")
        self._add_headers(table, result.headers.to_dict())
        self._add_body(table, mask_body_text(result.raw_body))
        self._console.print(table)

    def on_assertion_passed(self, message: str, result: ResultContext) -> None:
        self._console.print(f"[bold green]✔ Assertion passed[/bold green]: {escape(message)}")

    def on_assertion_failed(self, message: str, result: ResultContext) -> None:
        self._console.print(f"[bold red]✘ Assertion failed[/bold red]: {escape(message)}")
        if result.raw_body.strip():
            self._console.print(
                Panel(
                    escape(mask_body_text(result.raw_body)),
                    title="Response Body",
                    border_style="red",
                )
            )


class CompactReporter(Reporter):
    """Print one short line per event.

    Args:
        console: Console to write to. Defaults to a stderr console.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console if console is not None else Console(stderr=True)

    def _line(self, text: str) -> None:
        self._console.print(text, markup=False, highlight=False)

    def on_request_sent(self, spec: RequestSpec) -> None:
        self._line(f"REQ {spec.method.value} {spec.resolved_endpoint()}")

    def on_response_received(self, result: ResultContext) -> None:
        self._line(f"RES {result.status_code} ({result.duration_ms:.0f}ms)")

    def on_assertion_passed(self, message: str, result: ResultContext) -> None:
        self._line(f"PASS: {message}")

    def on_assertion_failed(self, message: str, result: ResultContext) -> None:
        self._line(f"FAIL: {message}")
