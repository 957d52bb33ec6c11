"""steerloop check -- validate an existing file."""

from __future__ import annotations

from pathlib import Path

import click

from steerloop.cli.commands.options import build_coordinator, validator_options
from steerloop.cli.formatting import format_error, format_report, get_console
from steerloop.exceptions import SteerLoopError
from steerloop.models.request import Candidate


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--provider", default="openai", show_default=True, help="LLM provider for --llm-review.")
@click.option("--model", default=None, help="Model for --llm-review.")
@validator_options
def check(
    path: Path,
    provider: str,
    model: str | None,
    syntax: bool,
    commands: tuple[str, ...],
    llm_review: bool,
    instantiate: str | None,
) -> None:
    """Run the validation pipeline on PATH and print the report."""
    console = get_console()
    client = None
    try:
        if llm_review:
            from steerloop.llm import create_client

            client = create_client(provider)
        coordinator = build_coordinator(
            syntax=syntax,
            commands=commands,
            llm_review=llm_review,
            instantiate=instantiate,
            client=client,
            model=model,
        )
        candidate = Candidate(
            content=path.read_text(encoding="utf-8"),
            metadata={"path": str(path)},
        )
        report = coordinator.validate(candidate)
    except SteerLoopError as e:
        format_error(str(e), console)
        raise SystemExit(1) from None
    finally:
        if client is not None:
            client.close()

    console.print(f"[bold]{path}[/bold]")
    format_report(report, console, indent="  ")
    if not report.valid:
        raise SystemExit(1)
