"""mirrorsync show-db / copy-db -- inspect and convert equivalence databases."""

from __future__ import annotations

import click

from mirrorsync.cli.formatting import format_database


@click.command("show-db")
@click.pass_context
def show_db(ctx: click.Context) -> None:
    """List stored equivalences and migrations."""
    from mirrorsync.cli import _db_session

    with _db_session(ctx) as (db, console):
        format_database(db, console)


@click.command("copy-db")
@click.argument("destination", type=click.Path(dir_okay=False))
@click.pass_context
def copy_db(ctx: click.Context, destination: str) -> None:
    """Copy every record of the --db database into DESTINATION.

    Either side may be JSON or SQL. Records already in DESTINATION are skipped.
    """
    from mirrorsync.cli import _db_session, open_database

    with _db_session(ctx) as (source, console):
        with open_database(destination) as dest:
            added_eq, added_mig = dest.import_storage(source.to_storage())
            dest.write()
        console.print(
            f"Copied {added_eq} equivalence(s) and {added_mig} migration(s) to {destination}",
            highlight=False,
        )
