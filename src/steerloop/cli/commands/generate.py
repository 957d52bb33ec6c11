"""steerloop generate -- generate code with validation feedback retries."""

from __future__ import annotations

import signal
import threading
from contextlib import contextmanager
from pathlib import Path

import click
from pydantic import ValidationError

from steerloop.cancellation import CancellationToken
from steerloop.cli.commands.options import build_coordinator, validator_options
from steerloop.cli.formatting import ConsoleObserver, format_error, format_outcome, get_console
from steerloop.config import BackoffStrategy, LoopSettings
from steerloop.exceptions import SteerLoopError
from steerloop.generation import LLMGenerator
from steerloop.llm import PROVIDERS, create_client
from steerloop.models.request import GenerationRequest
from steerloop.retry import ValidatedGenerationLoop


@contextmanager
def _cancel_on_sigint(token: CancellationToken):
    """Turn Ctrl-C into a cooperative cancel for the duration of the run."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum, frame):  # type: ignore[no-untyped-def]
        token.cancel("interrupted")

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


@click.command()
@click.argument("task")
@click.option("--provider", type=click.Choice(PROVIDERS), default=None, help="LLM provider.")
@click.option("--model", default=None, help="Model name (provider default if omitted).")
@click.option("--language", default="python", show_default=True, help="Target language.")
@click.option("--max-attempts", type=int, default=None, help="Total attempts allowed.")
@click.option("--backoff", type=float, default=None, help="Initial seconds between attempts (exponential).")
@click.option("--timeout", type=float, default=None, help="Seconds allowed per attempt.")
@click.option(
    "--abort-on-generator-error",
    is_flag=True,
    help="Stop on the first LLM error instead of spending an attempt.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the accepted code to this file.",
)
@click.option("--no-record", is_flag=True, help="Do not record the run in the database.")
@validator_options
@click.pass_context
def generate(
    ctx: click.Context,
    task: str,
    provider: str | None,
    model: str | None,
    language: str,
    max_attempts: int | None,
    backoff: float | None,
    timeout: float | None,
    abort_on_generator_error: bool,
    output: Path | None,
    no_record: bool,
    syntax: bool,
    commands: tuple[str, ...],
    llm_review: bool,
    instantiate: str | None,
) -> None:
    """Generate code for TASK, retrying with validator feedback until it passes."""
    from steerloop.cli import _run_store

    console = get_console()
    try:
        settings = _settings(
            provider=provider,
            model=model,
            max_attempts=max_attempts,
            backoff=backoff,
            timeout=timeout,
            abort_on_generator_error=abort_on_generator_error,
        )
        policy = settings.to_policy()
        request = GenerationRequest(task, language=language)
        client_kwargs = {"default_model": settings.model} if settings.model else {}
        client = create_client(settings.provider, **client_kwargs)
    except (SteerLoopError, ValidationError) as e:
        format_error(str(e), console)
        raise SystemExit(1) from None

    token = CancellationToken()
    try:
        coordinator = build_coordinator(
            syntax=syntax,
            commands=commands,
            llm_review=llm_review,
            instantiate=instantiate,
            client=client,
            model=settings.model,
            language=language,
        )
        loop = ValidatedGenerationLoop(observer=ConsoleObserver(console, policy.max_attempts))
        with _cancel_on_sigint(token):
            outcome = loop.run(
                request,
                LLMGenerator(client, model=settings.model),
                coordinator,
                policy,
                cancel_token=token,
            )
    except SteerLoopError as e:
        format_error(str(e), console)
        raise SystemExit(1) from None
    finally:
        client.close()

    format_outcome(outcome, console, language=language)

    if outcome.succeeded and output is not None:
        output.write_text(str(outcome.candidate.content), encoding="utf-8")
        console.print(f"Wrote [green]{output}[/green]")

    if not no_record:
        with _run_store(ctx) as repo:
            row = repo.save_outcome(outcome, task, language=language)
            console.print(f"[dim]Recorded run {row.run_id[:8]}[/dim]")

    if not outcome.succeeded:
        raise SystemExit(1)


def _settings(
    *,
    provider: str | None,
    model: str | None,
    max_attempts: int | None,
    backoff: float | None,
    timeout: float | None,
    abort_on_generator_error: bool,
) -> LoopSettings:
    """Environment settings overridden by explicit CLI flags."""
    overrides: dict = {}
    if provider is not None:
        overrides["provider"] = provider
    if model is not None:
        overrides["model"] = model
    if max_attempts is not None:
        overrides["max_attempts"] = max_attempts
    if backoff is not None:
        overrides["backoff_seconds"] = backoff
        overrides["backoff_strategy"] = (
            BackoffStrategy.EXPONENTIAL if backoff > 0 else BackoffStrategy.NONE
        )
    if timeout is not None:
        overrides["attempt_timeout"] = timeout
    if abort_on_generator_error:
        overrides["abort_on_generator_error"] = True

    base = LoopSettings.from_env()
    return LoopSettings.model_validate({**base.model_dump(), **overrides})
