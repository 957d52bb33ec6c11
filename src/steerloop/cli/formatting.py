"""Rich formatting helpers for the steerloop CLI.

Provides functions that format reports, outcomes and run history for
terminal display. Rich auto-detects TTY and degrades gracefully when
piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from steerloop.formatting import code_statistics
from steerloop.protocols import LoopObserver

if TYPE_CHECKING:
    from steerloop.models.outcome import LoopOutcome
    from steerloop.models.report import ValidationReport
    from steerloop.models.request import Candidate
    from steerloop.storage.schema import RunRow

_STATUS_STYLE = {"success": "green", "exhausted": "red", "aborted": "yellow"}


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_error(message: str, console: Console) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}")


def format_report(report: ValidationReport, console: Console, *, indent: str = "") -> None:
    """Display one validation report."""
    if report.valid:
        console.print(f"{indent}[green]valid[/green]")
    else:
        console.print(f"{indent}[red]invalid[/red]")
    for error in report.errors:
        console.print(f"{indent}  [red]x[/red] {escape(error)}")
    for warning in report.warnings:
        console.print(f"{indent}  [yellow]![/yellow] {escape(warning)}")


def format_outcome(outcome: LoopOutcome, console: Console, *, language: str = "python") -> None:
    """Display a terminal outcome: the code on success, every attempt otherwise."""
    style = _STATUS_STYLE.get(outcome.status, "white")
    console.print(
        f"[{style}]{outcome.status}[/{style}] after {outcome.attempts} attempt(s)"
    )
    if outcome.succeeded:
        for warning in outcome.report.warnings:
            console.print(f"  [yellow]![/yellow] {escape(warning)}")
        content = str(outcome.candidate.content)
        stats = code_statistics(content)
        console.print(
            f"[dim]{stats['total_lines']} lines ({stats['code_lines']} code, "
            f"{stats['comment_lines']} comment, {stats['blank_lines']} blank)[/dim]"
        )
        console.print(Syntax(content, language, line_numbers=True))
        return

    if outcome.status == "aborted":
        console.print(f"  Reason: {escape(outcome.reason)}")
    for i, report in enumerate(outcome.history, start=1):
        console.print(f"Attempt {i}:")
        format_report(report, console, indent="  ")


def format_runs(rows: Sequence[RunRow], console: Console) -> None:
    """Display recorded runs in a compact table."""
    if not rows:
        console.print("[dim]No runs recorded.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Run", style="yellow", width=8)
    table.add_column("Time", style="dim")
    table.add_column("Status")
    table.add_column("Attempts", justify="right")
    table.add_column("Task")

    for row in rows:
        style = _STATUS_STYLE.get(row.status, "white")
        task = row.task if len(row.task) <= 60 else row.task[:57] + "..."
        table.add_row(
            row.run_id[:8],
            row.created_at.strftime("%Y-%m-%d %H:%M"),
            f"[{style}]{row.status}[/{style}]",
            str(row.attempts),
            escape(task),
        )
    console.print(table)


def format_run_detail(row: RunRow, reports: Sequence[ValidationReport], console: Console) -> None:
    """Display one run with every attempt's report."""
    style = _STATUS_STYLE.get(row.status, "white")
    console.print(f"[yellow]run {row.run_id}[/yellow]")
    console.print(f"  Status:   [{style}]{row.status}[/{style}]")
    console.print(f"  Attempts: {row.attempts}")
    console.print(f"  Date:     {row.created_at.strftime('%Y-%m-%d %H:%M:%S')}")
    console.print(f"  Task:     {escape(row.task)}")
    console.print(f"  Language: {row.language}")
    if row.reason:
        console.print(f"  Reason:   {escape(row.reason)}")
    for i, report in enumerate(reports, start=1):
        console.print(f"Attempt {i}:")
        format_report(report, console, indent="  ")
    if row.final_content:
        console.print(Syntax(row.final_content, row.language or "python", line_numbers=True))


class ConsoleObserver(LoopObserver):
    """Print a progress line per attempt."""

    def __init__(self, console: Console, max_attempts: int) -> None:
        self._console = console
        self._max_attempts = max_attempts

    def on_attempt(self, attempt: int, candidate: Candidate, report: ValidationReport) -> None:
        verdict = "[green]valid[/green]" if report.valid else f"[red]{report.error_count} error(s)[/red]"
        self._console.print(f"[dim]attempt {attempt}/{self._max_attempts}:[/dim] {verdict}")

    def on_retry(self, attempt: int, feedback: str) -> None:
        self._console.print("[dim]retrying with validation feedback...[/dim]")
