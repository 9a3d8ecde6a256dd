"""mirrorsync note-equivalence / note-migration -- record facts in the database."""

from __future__ import annotations

import click
from rich.markup import escape


@click.command("note-equivalence")
@click.argument("repo1")
@click.argument("rev1")
@click.argument("repo2")
@click.argument("rev2")
@click.pass_context
def note_equivalence(ctx: click.Context, repo1: str, rev1: str, repo2: str, rev2: str) -> None:
    """Record that REPO1 at REV1 holds the same content as REPO2 at REV2."""
    from mirrorsync.cli import _db_session
    from mirrorsync.models.equivalence import Equivalence
    from mirrorsync.models.revision import Revision

    with _db_session(ctx) as (db, console):
        equivalence = Equivalence(
            Revision(rev_id=rev1, repository_name=repo1),
            Revision(rev_id=rev2, repository_name=repo2),
        )
        if db.add_equivalence(equivalence):
            db.write()
            console.print(f"Noted equivalence [green]{escape(str(equivalence))}[/green]", highlight=False)
        else:
            console.print(f"[dim]Already known: {escape(str(equivalence))}[/dim]", highlight=False)


@click.command("note-migration")
@click.argument("from_repo")
@click.argument("from_rev")
@click.argument("to_repo")
@click.argument("to_rev")
@click.pass_context
def note_migration(
    ctx: click.Context, from_repo: str, from_rev: str, to_repo: str, to_rev: str
) -> None:
    """Record a migration from FROM_REPO at FROM_REV to TO_REPO at TO_REV."""
    from mirrorsync.cli import _db_session
    from mirrorsync.models.equivalence import SubmittedMigration
    from mirrorsync.models.revision import Revision

    with _db_session(ctx) as (db, console):
        migration = SubmittedMigration(
            Revision(rev_id=from_rev, repository_name=from_repo),
            Revision(rev_id=to_rev, repository_name=to_repo),
        )
        if db.add_migration(migration):
            db.write()
            console.print(f"Noted migration [green]{escape(str(migration))}[/green]", highlight=False)
        else:
            console.print(f"[dim]Already known: {escape(str(migration))}[/dim]", highlight=False)
