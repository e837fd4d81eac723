from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markup import escape

from .outcomes import BatchReport, EventKind, InstallEvent, OutcomeStatus


class ConsoleReporter:
    """Renders the install event stream as status lines.

    Called from worker threads; rich's Console serializes writes and prints
    above a running progress bar.
    """

    def __init__(self, console: Optional[Console] = None, *, verbose: bool = False) -> None:
        self.console = console or Console()
        self.verbose = verbose

    def __call__(self, event: InstallEvent) -> None:
        tool = escape(event.tool or "")
        if event.kind is EventKind.PROBED and self.verbose:
            self.console.print(f"[dim]Checking if {tool} is already installed... {event.detail}[/dim]")
        elif event.kind is EventKind.STARTED and self.verbose:
            self.console.print(f"[dim]Installing {tool}...[/dim]")
        elif event.kind is EventKind.ALREADY_PRESENT:
            self.console.print(f"{tool} is already installed.")
        elif event.kind is EventKind.SUCCEEDED:
            self.console.print(f"{tool} [green]✓[/green]")
        elif event.kind is EventKind.FAILED:
            self.console.print(f"{tool} [red]✗[/red]")
            if event.detail:
                self.console.print(f"[red]Error:[/red] {escape(event.detail)}")

    def stage_header(self, label: str) -> None:
        self.console.print(f"\n[green]{escape(label)}[/green]:")

    def summary(self, report: BatchReport) -> None:
        if report.cancelled:
            self.console.print("Cancelled installation.")
            return
        installed = report.count(OutcomeStatus.INSTALLED_OK)
        present = report.count(OutcomeStatus.ALREADY_PRESENT)
        line = f"{installed} installed, {present} already present, {report.failed} failed"
        if report.failed:
            failed = ", ".join(escape(o.tool) for o in report.failures)
            self.console.print(f"[yellow]{line}[/yellow] ({failed})")
        else:
            self.console.print(line)
