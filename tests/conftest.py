"""Shared test fixtures for mirrorsync.

Provides in-memory SQLite engine and session fixtures, plus FakeHistory, a
dict-backed HistoryAdapter for exercising the search engine without git.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime, timezone

import pytest

from mirrorsync.models.revision import Revision, RevisionMetadata
from mirrorsync.storage.engine import create_session_factory, create_sync_engine, init_db
from mirrorsync.storage.file_db import FileDatabase
from mirrorsync.storage.sqlite import SqlDatabase

DATE = datetime(2012, 7, 9, 6, 0, tzinfo=timezone.utc)


def rev(rev_id: str, repository_name: str = "repo1") -> Revision:
    """Shorthand Revision constructor."""
    return Revision(rev_id=rev_id, repository_name=repository_name)


class FakeHistory:
    """HistoryAdapter over a {rev_id: [parent ids]} mapping.

    metadata_batch() answers like ``git log``: everything reachable from
    the start, newest first (breadth-first here), capped at ``limit``.
    A ``log`` override replaces that answer for specific starting ids.
    """

    def __init__(
        self,
        repository_name: str,
        commits: dict[str, list[str]],
        head: str | None = None,
        *,
        paths: tuple[str, ...] = (),
        log: dict[str, list[str]] | None = None,
    ) -> None:
        self._repository_name = repository_name
        self._commits = commits
        self._head = head if head is not None else next(iter(commits))
        self._paths = paths
        self._log = log or {}
        self.batch_calls: list[Revision] = []

    @property
    def repository_name(self) -> str:
        return self._repository_name

    @property
    def paths(self) -> tuple[str, ...]:
        return self._paths

    def resolve(self, identifier: str | None = None) -> Revision:
        return Revision(rev_id=identifier or self._head, repository_name=self._repository_name)

    def make_metadata(self, rev_id: str) -> RevisionMetadata:
        return RevisionMetadata(
            id=rev_id,
            author="author <author@example.com>",
            date=DATE,
            description=f"description {rev_id}",
            parents=tuple(
                Revision(rev_id=p, repository_name=self._repository_name)
                for p in self._commits[rev_id]
            ),
        )

    def metadata_batch(self, start, limit, paths=()):
        self.batch_calls.append(start)
        if start.rev_id in self._log:
            return [self.make_metadata(r) for r in self._log[start.rev_id][:limit]]
        order: list[str] = []
        seen: set[str] = set()
        queue = deque([start.rev_id])
        while queue and len(order) < limit:
            current = queue.popleft()
            if current in seen or current not in self._commits:
                continue
            seen.add(current)
            order.append(current)
            queue.extend(self._commits[current])
        return [self.make_metadata(r) for r in order]


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_sync_engine(":memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    """Session with automatic rollback after each test."""
    sess = create_session_factory(engine)()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def sql_db(session) -> SqlDatabase:
    return SqlDatabase(session)


@pytest.fixture(params=["file", "sql"])
def any_db(request, session):
    """Each Database implementation, empty."""
    if request.param == "file":
        return FileDatabase()
    return SqlDatabase(session)


@pytest.fixture
def diamond_history() -> FakeHistory:
    """4 -> {3a, 3b} -> 2 in repo2."""
    return FakeHistory(
        "repo2",
        {"4": ["3a", "3b"], "3a": ["2"], "3b": ["2"], "2": []},
        head="4",
    )


EQUIVALENCE_DB_JSON = """{
  "equivalences": [
    {
      "rev1": {"rev_id": "1002", "repository_name": "repo1"},
      "rev2": {"rev_id": "2", "repository_name": "repo2"}
    }
  ]
}"""

NO_MATCH_DB_JSON = """{
  "equivalences": [
    {
      "rev1": {"rev_id": "1005", "repository_name": "repo1"},
      "rev2": {"rev_id": "5", "repository_name": "repo2"}
    }
  ]
}"""
