"""Equivalence matching: find where a history was last in sync with another repository."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Sequence

from mirrorsync.models.config import SearchConfig
from mirrorsync.models.equivalence import Equivalence
from mirrorsync.operations.search import find_revisions

if TYPE_CHECKING:
    from mirrorsync.models.graph import RevisionGraph
    from mirrorsync.models.revision import Revision
    from mirrorsync.protocols import HistoryAdapter
    from mirrorsync.storage.repositories import Database

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EquivalenceResult:
    """Outcome of an equivalence search.

    Attributes:
        equivalences: Equivalences found at the search boundary, one per
            (matched revision, equivalent target revision) pair, in match order.
        revisions_since_equivalence: The explored, unmatched revisions in the
            order the search reached them -- the change set not yet migrated.
        graph: The explored graph the above was built from.
    """

    equivalences: list[Equivalence] = field(default_factory=list)
    revisions_since_equivalence: list[Revision] = field(default_factory=list)
    graph: Optional[RevisionGraph] = field(default=None, compare=False, repr=False)

    @property
    def found(self) -> bool:
        return bool(self.equivalences)

    def __str__(self) -> str:
        if not self.equivalences:
            return f"no equivalence ({len(self.revisions_since_equivalence)} revision(s) searched)"
        eqs = ", ".join(str(e) for e in self.equivalences)
        return f"{eqs} ({len(self.revisions_since_equivalence)} revision(s) since)"


class EquivalenceMatcher:
    """Matches revisions that have a known equivalent in a target repository."""

    def __init__(self, target_repository_name: str, database: Database) -> None:
        self._target = target_repository_name
        self._database = database

    @property
    def target_repository_name(self) -> str:
        return self._target

    def matches(self, revision: Revision) -> bool:
        return bool(self._database.find_equivalences(revision, self._target))

    def make_result(
        self, graph: RevisionGraph, matching: Sequence[Revision]
    ) -> EquivalenceResult:
        equivalences: list[Equivalence] = []
        for revision in matching:
            # Sort for a stable order when one revision has several equivalents.
            others = sorted(
                self._database.find_equivalences(revision, self._target),
                key=lambda r: r.rev_id,
            )
            for other in others:
                equivalence = Equivalence(revision, other)
                if equivalence not in equivalences:
                    equivalences.append(equivalence)
        return EquivalenceResult(
            equivalences=equivalences,
            # Graph insertion order is the search's breadth-first discovery order.
            revisions_since_equivalence=graph.revisions(),
            graph=graph,
        )

    def describe(self) -> str:
        return f"equivalence with repository '{self._target}'"


def find_last_equivalence(
    history: HistoryAdapter,
    database: Database,
    target_repository_name: str,
    start: Optional[Revision] = None,
    config: Optional[SearchConfig] = None,
) -> EquivalenceResult:
    """Search ``history`` back from ``start`` for its latest equivalences with the target.

    Args:
        history: Adapter for the repository being searched.
        database: Equivalence store to consult.
        target_repository_name: Repository the equivalences must pair with.
        start: Starting revision; defaults to the adapter's head.
        config: Search bounds and traversal mode; defaults to SearchConfig().
    """
    config = config or SearchConfig()
    matcher = EquivalenceMatcher(target_repository_name, database)
    result = find_revisions(
        history,
        matcher,
        start,
        config.search_type,
        max_revisions=config.max_revisions,
        batch_size=config.batch_size,
    )
    if not result.found:
        logger.info(
            "No equivalence between %s and %s found",
            history.repository_name,
            target_repository_name,
        )
    return result
