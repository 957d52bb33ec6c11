"""steerloop history -- list recorded runs."""

from __future__ import annotations

import click

from steerloop.cli.formatting import format_runs, get_console


@click.command()
@click.option("--limit", "-n", type=int, default=20, show_default=True, help="Runs to show.")
@click.option(
    "--status",
    type=click.Choice(["success", "exhausted", "aborted"]),
    default=None,
    help="Only show runs with this status.",
)
@click.pass_context
def history(ctx: click.Context, limit: int, status: str | None) -> None:
    """List recorded runs, newest first."""
    from steerloop.cli import _run_store

    console = get_console()
    with _run_store(ctx, must_exist=True) as repo:
        format_runs(repo.list_recent(limit, status=status), console)
