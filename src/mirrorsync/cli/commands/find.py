"""mirrorsync find-equivalences -- search a git history for its last equivalence."""

from __future__ import annotations

import click

from mirrorsync.cli.formatting import format_equivalence_result


@click.command("find-equivalences")
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False))
@click.option("--name", "repo_name", required=True, help="Repository name of REPO_PATH.")
@click.option("--target", required=True, help="Repository name to find equivalences with.")
@click.option("--rev", default=None, help="Revision or branch to start from (default: HEAD).")
@click.option("--linear", is_flag=True, help="Follow first parents only.")
@click.option("--path", "paths", multiple=True, help="Restrict history to this path (repeatable).")
@click.option("--max-revisions", default=None, type=click.IntRange(min=1), help="Search bound.")
@click.pass_context
def find_equivalences(
    ctx: click.Context,
    repo_path: str,
    repo_name: str,
    target: str,
    rev: str | None,
    linear: bool,
    paths: tuple[str, ...],
    max_revisions: int | None,
) -> None:
    """Find where REPO_PATH's history was last equivalent to TARGET."""
    from mirrorsync.adapters.git import GitClonedRepository, GitRevisionHistory
    from mirrorsync.cli import _db_session
    from mirrorsync.models.config import RepositoryConfig, SearchConfig, SearchType
    from mirrorsync.operations.matcher import find_last_equivalence

    with _db_session(ctx) as (db, console):
        config = RepositoryConfig(name=repo_name, url=repo_path, paths=list(paths))
        history = GitRevisionHistory(GitClonedRepository(config))
        search = SearchConfig(search_type=SearchType.LINEAR if linear else SearchType.BRANCHED)
        if max_revisions is not None:
            search = search.model_copy(update={"max_revisions": max_revisions})
        start = history.resolve(rev) if rev else None
        result = find_last_equivalence(history, db, target, start=start, config=search)
        format_equivalence_result(result, console, verbose=ctx.obj.get("verbose", False))
