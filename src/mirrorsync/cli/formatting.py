"""Rich formatting helpers for the mirrorsync CLI.

Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from mirrorsync.operations.matcher import EquivalenceResult
    from mirrorsync.storage.repositories import Database


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_equivalence_result(
    result: EquivalenceResult, console: Console, *, verbose: bool = False
) -> None:
    """Display the equivalences found and the revisions since them."""
    if result.equivalences:
        console.print("[bold]Last equivalence(s):[/bold]")
        for eq in result.equivalences:
            console.print(f"  [green]{escape(str(eq))}[/green]")
    else:
        console.print("[yellow]No equivalence found.[/yellow]")

    revisions = result.revisions_since_equivalence
    if not revisions:
        console.print("[dim]No revisions since equivalence.[/dim]")
        return

    console.print()
    console.print(f"[bold]Revisions since equivalence ({len(revisions)}):[/bold]")
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Revision", style="yellow", width=12)
    table.add_column("Date", style="dim")
    table.add_column("Author", style="cyan")
    table.add_column("Description")

    graph = result.graph
    for revision in revisions:
        metadata = graph.get_metadata(revision) if graph is not None else None
        if metadata is None:
            table.add_row(revision.rev_id[:12], "", "", "")
            continue
        if verbose:
            metadata = metadata.with_parsed_fields()
        lines = metadata.description.strip().splitlines()
        summary = escape(lines[0]) if lines else ""
        if verbose and metadata.parsed_fields:
            fields = ", ".join(
                f"{k}={v}" for k, values in metadata.parsed_fields.items() for v in values
            )
            summary += f" [dim]({escape(fields)})[/dim]"
        table.add_row(
            revision.rev_id[:12],
            metadata.date.strftime("%Y-%m-%d %H:%M"),
            escape(metadata.author),
            summary,
        )
    console.print(table)


def format_database(db: Database, console: Console) -> None:
    """Display stored equivalences and migrations."""
    equivalences = db.equivalences()
    migrations = db.migrations()
    if not equivalences and not migrations:
        console.print("[dim]Database is empty.[/dim]")
        return

    console.print(f"[bold]Equivalences ({len(equivalences)}):[/bold]")
    for eq in equivalences:
        console.print(f"  {escape(str(eq))}")
    console.print(f"[bold]Migrations ({len(migrations)}):[/bold]")
    for m in migrations:
        console.print(f"  {escape(str(m))}")


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {message}", highlight=False)
