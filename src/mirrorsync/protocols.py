"""Protocol definitions for mirrorsync.

Defines the pluggable interfaces the search engine is built on:
HistoryAdapter (a repository's commit history) and Matcher (the per-revision
predicate plus result builder).

No SQLAlchemy imports allowed in this module -- pure domain protocols.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, Sequence, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from mirrorsync.models.graph import RevisionGraph
    from mirrorsync.models.revision import Revision, RevisionMetadata

T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class HistoryAdapter(Protocol):
    """Read access to one repository's commit history.

    Backends differ only in how they satisfy this contract; the search
    engine never talks to a VCS directly.
    """

    @property
    def repository_name(self) -> str: ...

    @property
    def paths(self) -> Sequence[str]:
        """Path filter applied to history queries; empty means unfiltered."""
        ...

    def resolve(self, identifier: Optional[str] = None) -> Revision:
        """Resolve a branch, tag or revision id to a Revision.

        None or empty means the current head.

        Raises:
            VcsCommandError: If the identifier cannot be resolved.
        """
        ...

    def metadata_batch(
        self, start: Revision, limit: int, paths: Sequence[str] = ()
    ) -> list[RevisionMetadata]:
        """Metadata reachable from ``start``, newest first, including ``start``.

        At most ``limit`` entries. When ``paths`` is non-empty, only history
        touching those paths is returned and parent links may skip revisions.
        """
        ...


@runtime_checkable
class Matcher(Protocol[T_co]):
    """Decides where a history search stops, and builds its typed result."""

    def matches(self, revision: Revision) -> bool:
        """Whether the search should stop expanding at this revision."""
        ...

    def make_result(
        self, graph: RevisionGraph, matching: Sequence[Revision]
    ) -> T_co:
        """Build the search result from the explored graph and matched revisions."""
        ...

    def describe(self) -> str:
        """Short description used in diagnostics, e.g. 'equivalence with repo1'."""
        ...
