"""steerloop show -- show one recorded run."""

from __future__ import annotations

import click

from steerloop.cli.formatting import format_error, format_run_detail, get_console
from steerloop.storage.sqlite import row_reports


@click.command()
@click.argument("run_id")
@click.pass_context
def show(ctx: click.Context, run_id: str) -> None:
    """Show every attempt of RUN_ID (a unique prefix is enough)."""
    from steerloop.cli import _run_store

    console = get_console()
    with _run_store(ctx, must_exist=True) as repo:
        row = repo.get(run_id)
        if row is None:
            format_error(f"Run not found: {run_id}", console)
            raise SystemExit(1)
        format_run_detail(row, row_reports(row), console)
