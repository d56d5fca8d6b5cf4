"""Interactive prompts on top of rich."""

from __future__ import annotations

from typing import Any, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, IntPrompt, Prompt


class Prompter:
    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def password(self, message: str) -> str:
        while True:
            answer = Prompt.ask(f"[yellow]{escape(message)}[/yellow]", password=True, console=self.console)
            if answer:
                return answer
            self.console.print("[red]Password cannot be empty[/red]")

    def confirm(self, message: str, default: bool = True) -> bool:
        return Confirm.ask(f"[yellow]{escape(message)}[/yellow]", default=default, console=self.console)

    def text(self, message: str, default: str | None = None) -> str:
        if default is None:
            return Prompt.ask(escape(message), console=self.console)
        return Prompt.ask(escape(message), default=default, console=self.console)

    def select(self, message: str, choices: Sequence[tuple[str, Any]]) -> Any:
        """Numbered menu; ``choices`` are ``(label, value)`` pairs."""
        self.console.print(escape(message))
        for idx, (label, _) in enumerate(choices, start=1):
            self.console.print(f"  {idx}. {escape(str(label))}")
        choice = IntPrompt.ask(
            "Enter the [bold]number[/bold] of your choice",
            choices=[str(i) for i in range(1, len(choices) + 1)],
            show_choices=False,
            console=self.console,
        )
        return choices[choice - 1][1]
