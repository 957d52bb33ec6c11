"""steerloop CLI -- generate and validate code from the terminal.

This module is NEVER imported from steerloop/__init__.py.
It is only loaded via the ``steerloop`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import TYPE_CHECKING

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install steerloop[cli]"
    ) from None

from dotenv import load_dotenv

from steerloop.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from steerloop.storage.sqlite import SqliteRunRepository


@click.group()
@click.option(
    "--db",
    default=None,
    envvar="STEERLOOP_DB_PATH",
    help="Path to run-history database. [default: .steerloop.db]",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, db: str | None, verbose: bool) -> None:
    """steerloop: generate code an LLM gets right, with validator feedback."""
    load_dotenv()
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db or _default_db_path()


def _default_db_path() -> str:
    """db_path from LoopSettings, which also sees variables loaded from .env."""
    from pydantic import ValidationError

    from steerloop.config import LoopSettings

    try:
        return LoopSettings.from_env().db_path
    except ValidationError as e:
        format_error(str(e), get_console())
        raise SystemExit(1) from None


def _configure_logging(verbose: bool) -> None:
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=False)],
        force=True,
    )


@contextmanager
def _run_store(ctx: click.Context, *, must_exist: bool = False) -> Iterator[SqliteRunRepository]:
    """Open the run-history database, yield a repository, commit on success.

    Formats exceptions as CLI errors and exits with status 1.
    """
    from steerloop.storage.engine import create_session_factory, create_store_engine, init_db
    from steerloop.storage.sqlite import SqliteRunRepository

    db_path = ctx.obj["db_path"]
    console = get_console()
    if must_exist and not os.path.exists(db_path):
        format_error(f"Database not found: {db_path}", console)
        raise SystemExit(1)

    engine = create_store_engine(db_path)
    try:
        init_db(engine)
        session = create_session_factory(engine)()
        try:
            yield SqliteRunRepository(session)
            session.commit()
        except SystemExit:
            session.rollback()
            raise
        except Exception as e:
            session.rollback()
            format_error(str(e), console)
            raise SystemExit(1) from None
        finally:
            session.close()
    finally:
        engine.dispose()


# Register subcommands after cli group is defined
from steerloop.cli.commands.check import check  # noqa: E402
from steerloop.cli.commands.generate import generate  # noqa: E402
from steerloop.cli.commands.history import history  # noqa: E402
from steerloop.cli.commands.show import show  # noqa: E402

cli.add_command(generate)
cli.add_command(check)
cli.add_command(history)
cli.add_command(show)
