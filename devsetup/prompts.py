from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from .stages import Stage

logger = logging.getLogger(__name__)

CANCEL_WORDS = {"q", "quit", "cancel"}


class Prompter(Protocol):
    """Interactive collaborators used by the profile runner."""

    def choose(self, prompt: str, options: Sequence[str], default: int = 0) -> int:
        ...

    def confirm(self, prompt: str) -> bool:
        ...

    def select(self, stage: Stage) -> Optional[List[int]]:
        ...

    def ask_text(self, prompt: str) -> str:
        ...


def parse_selection(answer: str, n: int) -> Optional[List[int]]:
    """Turn "1,3-4" (1-based) into sorted 0-based indices.

    Blank means all; a cancel word means None. Raises ValueError on bad input.
    """

    answer = answer.strip().lower()
    if not answer:
        return list(range(n))
    if answer in CANCEL_WORDS:
        return None
    if answer in {"none", "-"}:
        return []

    picked: set[int] = set()
    for part in answer.replace(" ", ",").split(","):
        if not part:
            continue
        if "-" in part:
            lo_s, _, hi_s = part.partition("-")
            lo, hi = int(lo_s), int(hi_s)
            if lo > hi:
                lo, hi = hi, lo
            numbers = range(lo, hi + 1)
        else:
            numbers = range(int(part), int(part) + 1)
        for num in numbers:
            if not 1 <= num <= n:
                raise ValueError(f"{num} is not between 1 and {n}")
            picked.add(num - 1)
    return sorted(picked)


class RichPrompter:
    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def choose(self, prompt: str, options: Sequence[str], default: int = 0) -> int:
        for i, option in enumerate(options, start=1):
            self.console.print(f"  [cyan]{i}[/cyan]. {escape(option)}")
        choices = [str(i) for i in range(1, len(options) + 1)]
        answer = Prompt.ask(prompt, choices=choices, default=str(default + 1), console=self.console)
        return int(answer) - 1

    def confirm(self, prompt: str) -> bool:
        return Confirm.ask(prompt, default=False, console=self.console)

    def select(self, stage: Stage) -> Optional[List[int]]:
        """Multi-select with every tool selected by default."""
        self.console.print(f"Select the tools to install for [green]{escape(stage.label)}[/green]:")
        for i, tool in enumerate(stage.tools, start=1):
            self.console.print(f"  [cyan]{i}[/cyan]. {escape(tool)}")
        while True:
            answer = Prompt.ask(
                "Numbers or ranges (e.g. 1,3-4), blank for all, q to cancel",
                default="",
                show_default=False,
                console=self.console,
            )
            try:
                return parse_selection(answer, len(stage.tools))
            except ValueError as e:
                self.console.print(f"[red]Invalid selection:[/red] {escape(str(e))}")

    def ask_text(self, prompt: str) -> str:
        return Prompt.ask(prompt, default="", show_default=False, console=self.console).strip()
