"""mirrorsync CLI -- find and record equivalences between repositories.

This module is NEVER imported from mirrorsync/__init__.py.
It is only loaded via the ``mirrorsync`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install mirrorsync[cli]"
    ) from None

from mirrorsync.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from mirrorsync.storage.repositories import Database

# Database files with these suffixes use the SQL store; anything else is JSON.
SQL_SUFFIXES = frozenset({".db", ".sqlite", ".sqlite3"})


@click.group()
@click.option(
    "--db",
    default="mirrorsync_db.json",
    envvar="MIRRORSYNC_DB",
    help="Path to the equivalence database (.json, or .db/.sqlite for SQL).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, db: str, verbose: bool) -> None:
    """mirrorsync: keep independently-versioned repositories in sync."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db
    ctx.obj["verbose"] = verbose


@contextmanager
def open_database(db_path: str) -> Iterator[Database]:
    """Open a database file, yield it, and close any SQL resources on exit.

    The caller decides when to write(); nothing is persisted implicitly.
    """
    if Path(db_path).suffix.lower() in SQL_SUFFIXES:
        from mirrorsync.storage.engine import create_session_factory, create_sync_engine, init_db
        from mirrorsync.storage.sqlite import SqlDatabase

        engine = create_sync_engine(db_path)
        try:
            init_db(engine)
            session = create_session_factory(engine)()
            try:
                yield SqlDatabase(session)
            finally:
                session.close()
        finally:
            engine.dispose()
    else:
        from mirrorsync.storage.file_db import FileDatabase

        yield FileDatabase.load(db_path)


@contextmanager
def _db_session(ctx: click.Context) -> Iterator[tuple[Database, Console]]:
    """Open the --db database, yield (db, console), and format exceptions as CLI errors."""
    console = get_console()
    try:
        with open_database(ctx.obj["db_path"]) as db:
            yield db, console
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from mirrorsync.cli.commands.find import find_equivalences  # noqa: E402
from mirrorsync.cli.commands.note import note_equivalence, note_migration  # noqa: E402
from mirrorsync.cli.commands.show import copy_db, show_db  # noqa: E402

cli.add_command(find_equivalences)
cli.add_command(note_equivalence)
cli.add_command(note_migration)
cli.add_command(show_db)
cli.add_command(copy_db)
