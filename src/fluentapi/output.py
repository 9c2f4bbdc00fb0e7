"""Terminal output for the ``fluentapi`` command line.

The command line keeps stdout for data and stderr for everything else:

* **stdout** -- the response body only, so ``fluentapi request ... | jq``
  works.
* **stderr** -- the status line, reporter output and errors.
* **TTY detection** -- bodies are syntax-highlighted when stdout is an
  interactive terminal and printed verbatim when piped.
* **Colour control** -- ``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` all
  disable colour.

:class:`OutputManager` holds these preferences. The CLI installs one with
:func:`set_output`; library code never prints.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from http import HTTPStatus
from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.syntax import Syntax

if TYPE_CHECKING:
    from fluentapi.result import ResultContext


class OutputFormat(str, Enum):
    """How response bodies are written to stdout.

    ``AUTO`` becomes ``RICH`` on an interactive terminal with colour enabled
    and ``RAW`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    RAW = "raw"
    RICH = "rich"


class OutputManager:
    """Routes response bodies to stdout and diagnostics to stderr.

    Args:
        format: Body format; ``AUTO`` resolves by TTY detection.
        no_color: Disable colour and Rich markup.
        quiet: Suppress the status line and other informational messages.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.RAW
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def stderr_console(self) -> Console:
        """Console reporters created by the CLI write here."""
        return self._stderr

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def print_result(self, result: ResultContext) -> None:
        """Write the status line to stderr and the body to stdout."""
        status = " ".join(filter(None, [str(result.status_code), _reason_phrase(result.status_code)]))
        line = f"HTTP {status} ({result.duration_ms:.0f} ms)"
        if result.is_success:
            self.success(line)
        else:
            self.info(line)
        if result.raw_body:
            self.print_body(result.raw_body)

    def print_body(self, raw: str) -> None:
        """Print a response body in the active format."""
        if self._format == OutputFormat.RAW:
            self.print_data(raw)
            return
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            self.print_data(raw)
            return
        pretty = json.dumps(parsed, indent=2, ensure_ascii=False)
        if self._format == OutputFormat.JSON:
            self.print_data(pretty)
        else:
            self._stdout.print(Syntax(pretty, "json", theme="monokai", word_wrap=True))

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Informational message; suppressed by ``quiet``."""
        if not self._quiet:
            self._emit(message, message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._emit(message, f"[green]{message}[/green]")

    def error(self, message: str) -> None:
        """Error message; never suppressed."""
        self._emit(f"Error: {message}", f"[bold red]Error:[/bold red] {message}")

    def _emit(self, plain: str, markup: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup)


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    return os.environ.get("TERM") == "dumb"


def _reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


# ------------------------------------------------------------------ #
# Global output instance (set during CLI startup)
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager. Used between tests."""
    global _output
    _output = None

