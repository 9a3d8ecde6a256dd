"""RevisionGraph -- the portion of a history DAG explored by a search.

Nodes are keyed by Revision value. A parent that is not itself a node is a
frontier boundary (outside the searched window), not a dangling reference.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator

from mirrorsync.exceptions import DuplicateRevisionError
from mirrorsync.models.revision import Revision, RevisionMetadata


class RevisionGraph:
    """A write-once mapping of Revision -> RevisionMetadata with ordered start revisions."""

    def __init__(self, start_revisions: Iterable[Revision]) -> None:
        self._start_revisions: tuple[Revision, ...] = tuple(dict.fromkeys(start_revisions))
        self._nodes: dict[Revision, RevisionMetadata] = {}

    @property
    def start_revisions(self) -> tuple[Revision, ...]:
        return self._start_revisions

    def add_revision(self, revision: Revision, metadata: RevisionMetadata) -> None:
        """Add a node. Each revision may be added only once.

        Raises:
            DuplicateRevisionError: If the revision is already in the graph.
        """
        if revision in self._nodes:
            raise DuplicateRevisionError(revision)
        self._nodes[revision] = metadata

    def get_metadata(self, revision: Revision) -> RevisionMetadata | None:
        return self._nodes.get(revision)

    def parents_of(self, revision: Revision) -> tuple[Revision, ...]:
        """Parents of a node, or () if the revision is not in the graph."""
        metadata = self._nodes.get(revision)
        return metadata.parents if metadata is not None else ()

    def revisions(self) -> list[Revision]:
        """All nodes, in insertion order."""
        return list(self._nodes)

    def breadth_first_history(self) -> list[Revision]:
        """Nodes in breadth-first order from the start revisions.

        Parents are visited in their listed order. Parents outside the
        graph are skipped.
        """
        return list(self._iter_breadth_first())

    def _iter_breadth_first(self) -> Iterator[Revision]:
        visited: set[Revision] = set()
        queue: deque[Revision] = deque(self._start_revisions)
        while queue:
            current = queue.popleft()
            if current in visited or current not in self._nodes:
                continue
            visited.add(current)
            yield current
            for parent in self._nodes[current].parents:
                if parent not in visited:
                    queue.append(parent)

    def __contains__(self, revision: object) -> bool:
        return revision in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Revision]:
        return iter(self.breadth_first_history())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RevisionGraph):
            return NotImplemented
        return (
            self._start_revisions == other._start_revisions
            and self._nodes == other._nodes
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        starts = ", ".join(str(r) for r in self._start_revisions)
        return f"RevisionGraph(start=[{starts}], nodes={len(self._nodes)})"
