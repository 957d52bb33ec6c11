"""Validator options shared by ``generate`` and ``check``."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

import click

from steerloop.validation import (
    CommandValidator,
    InstantiationValidator,
    LLMReviewValidator,
    PythonSyntaxValidator,
    ValidationCoordinator,
)

if TYPE_CHECKING:
    from steerloop.llm.protocols import LLMClient


def validator_options(fn: Callable) -> Callable:
    """Attach the --syntax, --command, --instantiate and --llm-review options."""
    fn = click.option(
        "--instantiate",
        default=None,
        metavar="CLASS",
        help="Import the code and instantiate CLASS (no-argument constructor).",
    )(fn)
    fn = click.option(
        "--llm-review",
        is_flag=True,
        help="Also ask the LLM to review the code.",
    )(fn)
    fn = click.option(
        "--command",
        "commands",
        multiple=True,
        metavar="CMD",
        help="Validation command; '{file}' is replaced by the code's path. Repeatable.",
    )(fn)
    fn = click.option(
        "--syntax/--no-syntax",
        default=True,
        show_default=True,
        help="Check that the code parses as Python.",
    )(fn)
    return fn


def build_coordinator(
    *,
    syntax: bool,
    commands: tuple[str, ...],
    llm_review: bool,
    instantiate: str | None = None,
    client: LLMClient | None = None,
    model: str | None = None,
    language: str = "python",
) -> ValidationCoordinator:
    """Assemble a coordinator from CLI flags."""
    coordinator = ValidationCoordinator()
    if syntax and language == "python":
        coordinator.add_validator(PythonSyntaxValidator())
    for i, command in enumerate(commands, start=1):
        name = "command" if len(commands) == 1 else f"command_{i}"
        coordinator.add_validator(CommandValidator(command, name=name))
    if instantiate:
        coordinator.add_validator(InstantiationValidator(instantiate))
    if llm_review:
        if client is None:
            raise click.UsageError("--llm-review needs an LLM client")
        coordinator.add_validator(LLMReviewValidator(client, model=model, language=language))
    return coordinator
