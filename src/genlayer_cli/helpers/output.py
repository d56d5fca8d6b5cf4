"""Uniform progress and result presentation.

Commands report through a Reporter: a spinner while work is in flight, then a
green ``✔`` success line with an optional result object, or a red ``✖``
failure line with the error message.
"""

from __future__ import annotations

import json
from typing import Any, Sequence

from rich.console import Console
from rich.markup import escape
from rich.status import Status
from rich.table import Table


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, bytes):
        return "0x" + value.hex()
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


class Reporter:
    def __init__(self, console: Console | None = None, err_console: Console | None = None, verbose: bool = False):
        self.console = console or Console()
        self.err_console = err_console or self.console
        self.verbose = verbose
        self._status: Status | None = None

    # spinner ------------------------------------------------------------ #

    def start(self, message: str) -> None:
        self.stop()
        self._status = self.console.status(escape(message))
        self._status.start()

    def update(self, message: str) -> None:
        if self._status is None:
            self.start(message)
        else:
            self._status.update(escape(message))

    def stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

    def succeed(self, message: str, data: Any = None) -> None:
        self.stop()
        self.console.print(f"[green]✔[/green] {escape(message)}")
        if data is not None:
            self.data(data)

    def fail(self, message: str, error: Any = None) -> None:
        self.stop()
        self.err_console.print(f"[red]✖ {escape(message)}[/red]", highlight=False)
        if error is not None and str(error) and str(error) != message:
            self.err_console.print(str(error), style="red", highlight=False, markup=False)

    # plain lines -------------------------------------------------------- #

    def info(self, message: str, data: Any = None) -> None:
        self.console.print(f"[blue]ℹ[/blue] {escape(message)}")
        if data is not None:
            self.data(data)

    def success(self, message: str, data: Any = None) -> None:
        self.console.print(f"[green]✔[/green] {escape(message)}")
        if data is not None:
            self.data(data)

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠ {escape(message)}[/yellow]")

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]✖ {escape(message)}[/red]")

    def log(self, message: str = "") -> None:
        self.console.print(message, highlight=False, markup=False)

    def data(self, data: Any) -> None:
        if isinstance(data, (dict, list, tuple)):
            self.console.print_json(json.dumps(_to_jsonable(data)))
        else:
            self.console.print(str(data), highlight=False, markup=False)

    def table(self, columns: Sequence[str], rows: Sequence[Sequence[Any]], title: str | None = None) -> None:
        table = Table(title=title)
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*[escape(str(v)) for v in row])
        self.console.print(table)
