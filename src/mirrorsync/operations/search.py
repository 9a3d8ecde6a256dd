"""History search for mirrorsync -- breadth-first revision discovery.

find_revisions() walks a repository's history outward from a starting revision,
asking a Matcher at every node whether to stop expanding that branch. Matching
prunes a single branch; the walk continues until every branch is matched or
runs out of parents.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Optional, Sequence, TypeVar

from mirrorsync.exceptions import SearchBoundExceeded
from mirrorsync.models.config import DEFAULT_BATCH_SIZE, MAX_REVISIONS_TO_SEARCH, SearchType
from mirrorsync.models.graph import RevisionGraph
from mirrorsync.models.revision import Revision, RevisionMetadata

if TYPE_CHECKING:
    from mirrorsync.protocols import HistoryAdapter, Matcher

logger = logging.getLogger(__name__)

T = TypeVar("T")


def stitch_linear(
    entries: Sequence[RevisionMetadata], repository_name: str
) -> list[RevisionMetadata]:
    """Rewrite a path-filtered, newest-first log into a strictly linear chain.

    Filtered logs can name parents that are not in the filtered result, so
    each entry's only parent becomes the next older entry. The oldest entry
    becomes parentless. Ids and ordering are preserved.
    """
    stitched: list[RevisionMetadata] = []
    for i, entry in enumerate(entries):
        if i + 1 < len(entries):
            parents = (Revision(rev_id=entries[i + 1].id, repository_name=repository_name),)
        else:
            parents = ()
        stitched.append(entry.with_parents(parents))
    return stitched


class _MetadataCache:
    """Per-search cache of metadata, filled one adapter batch at a time."""

    def __init__(self, history: HistoryAdapter, batch_size: int, max_revisions: int) -> None:
        self._history = history
        self._batch_size = batch_size
        self._max_revisions = max_revisions
        self._paths = tuple(history.paths)
        self._entries: dict[Revision, RevisionMetadata] = {}
        self._fetched_from: set[Revision] = set()

    def get(self, revision: Revision) -> RevisionMetadata | None:
        if revision not in self._entries and revision not in self._fetched_from:
            self._fetch(revision)
        return self._entries.get(revision)

    def _fetch(self, start: Revision) -> None:
        self._fetched_from.add(start)
        batch = self._history.metadata_batch(start, self._batch_size, self._paths)
        if self._paths:
            batch = stitch_linear(self._extend_filtered(batch), self._history.repository_name)
        logger.debug(
            "Fetched %d revision(s) of %s starting at %s",
            len(batch),
            self._history.repository_name,
            start.rev_id,
        )
        for metadata in batch:
            revision = Revision(rev_id=metadata.id, repository_name=self._history.repository_name)
            # Keep the first sighting so an earlier batch's view stays stable.
            self._entries.setdefault(revision, metadata)

    def _extend_filtered(self, batch: list[RevisionMetadata]) -> list[RevisionMetadata]:
        """Keep reading a path-filtered log past full batches.

        Stitching makes the oldest entry parentless, so a batch cut short by the
        limit would otherwise look like the start of history. Reading stops once
        the log runs out or there are more entries than the search may visit.
        """
        entries = list(batch)
        seen = {m.id for m in entries}
        limit = self._batch_size
        last = batch
        while entries and len(last) >= limit and len(entries) <= self._max_revisions:
            oldest = Revision(rev_id=entries[-1].id, repository_name=self._history.repository_name)
            # The oldest entry comes back first; ask for one more to make progress.
            limit = self._batch_size + 1
            last = self._history.metadata_batch(oldest, limit, self._paths)
            new = [m for m in last if m.id not in seen]
            if not new:
                break
            entries.extend(new)
            seen.update(m.id for m in new)
        return entries


def find_revisions(
    history: HistoryAdapter,
    matcher: Matcher[T],
    start: Optional[Revision] = None,
    search_type: SearchType = SearchType.BRANCHED,
    *,
    max_revisions: int = MAX_REVISIONS_TO_SEARCH,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> T:
    """Search history breadth-first from ``start`` (or head) until every branch matches.

    For each revision taken off the FIFO work list:

    - If ``matcher.matches()`` is true, it is recorded as a match and its
      parents are not explored. Other branches carry on.
    - Otherwise its metadata is added to the RevisionGraph and its unvisited
      parents are queued (all of them for BRANCHED, the first for LINEAR).

    Args:
        history: Adapter for the repository being searched.
        matcher: Decides where to stop and builds the result.
        start: Starting revision. Defaults to ``history.resolve(None)``.
        search_type: BRANCHED or LINEAR parent traversal.
        max_revisions: Maximum number of distinct revisions to visit.
        batch_size: Number of log entries to request per adapter call.

    Returns:
        Whatever ``matcher.make_result()`` builds from the explored graph and
        the matched revisions (in discovery order).

    Raises:
        SearchBoundExceeded: If more than ``max_revisions`` revisions are
            visited before the work list empties.
        VcsCommandError: Propagated from the adapter.
    """
    if start is None:
        start = history.resolve(None)

    cache = _MetadataCache(history, batch_size, max_revisions)
    graph = RevisionGraph([start])
    matching: list[Revision] = []

    work: deque[Revision] = deque([start])
    visited: set[Revision] = {start}

    while work:
        current = work.popleft()
        if matcher.matches(current):
            logger.debug("%s matches %s", current, matcher.describe())
            matching.append(current)
            continue

        metadata = cache.get(current)
        if metadata is None:
            logger.warning("No metadata for %s; treating it as a leaf", current)
            continue
        graph.add_revision(current, metadata)

        parents: Sequence[Revision] = metadata.parents
        if search_type is SearchType.LINEAR:
            parents = parents[:1]
        for parent in parents:
            if parent not in visited:
                visited.add(parent)
                work.append(parent)

        if len(visited) > max_revisions:
            raise SearchBoundExceeded(start, matcher.describe(), max_revisions)

    logger.info(
        "Searched %d revision(s) of %s from %s: %d match(es)",
        len(graph),
        history.repository_name,
        start.rev_id,
        len(matching),
    )
    return matcher.make_result(graph, matching)
