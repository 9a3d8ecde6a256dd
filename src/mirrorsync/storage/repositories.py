"""Abstract equivalence store interface for mirrorsync.

Defines the Database ABC. No SQLAlchemy imports here -- pure abstract
contract. Concrete implementations are in file_db.py and sqlite.py.

Unknown fields of imported document records travel as ``extra`` dicts so a
store can reproduce them in to_storage().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mirrorsync.models.equivalence import Equivalence, SubmittedMigration
    from mirrorsync.models.revision import Revision
    from mirrorsync.storage.file_db import DbStorage


class Database(ABC):
    """Store of known equivalences and submitted migrations.

    Both collections keep insertion order and are deduplicated by value:
    adding something already present is a no-op that returns False.
    """

    @abstractmethod
    def equivalences(self) -> list[Equivalence]:
        """All stored equivalences, in insertion order."""
        ...

    @abstractmethod
    def migrations(self) -> list[SubmittedMigration]:
        """All stored migrations, in insertion order."""
        ...

    @abstractmethod
    def add_equivalence(
        self, equivalence: Equivalence, *, extra: dict | None = None
    ) -> bool:
        """Store an equivalence.

        ``extra`` holds unknown fields carried over from an imported document.

        Returns True if it was newly added, False if already present.
        """
        ...

    @abstractmethod
    def add_migration(
        self, migration: SubmittedMigration, *, extra: dict | None = None
    ) -> bool:
        """Store a migration.

        Returns True if it was newly added, False if already present.
        """
        ...

    def has_migration(self, migration: SubmittedMigration) -> bool:
        """Whether this exact (directional) migration has been recorded."""
        return migration in self.migrations()

    def find_equivalences(
        self, revision: Revision, other_repository_name: str
    ) -> set[Revision]:
        """Revisions in ``other_repository_name`` known to be equivalent to ``revision``.

        Returns an empty set when there are none -- the common case during a search.
        """
        found: set[Revision] = set()
        for equivalence in self.equivalences():
            if not equivalence.has_revision(revision):
                continue
            other = equivalence.other(revision)
            if other is not None and other.repository_name == other_repository_name:
                found.add(other)
        return found

    @abstractmethod
    def to_storage(self) -> DbStorage:
        """The whole store as a JSON document model, unknown fields included."""
        ...

    def import_storage(self, storage: DbStorage) -> tuple[int, int]:
        """Add every record of a document.

        Returns:
            (equivalences added, migrations added). Records already present
            are skipped.
        """
        added_eq = 0
        for eq_record in storage.equivalences:
            if self.add_equivalence(
                eq_record.to_equivalence(), extra=dict(eq_record.model_extra or {})
            ):
                added_eq += 1
        added_mig = 0
        for mig_record in storage.migrations:
            if self.add_migration(
                mig_record.to_migration(), extra=dict(mig_record.model_extra or {})
            ):
                added_mig += 1
        return added_eq, added_mig

    def write(self) -> None:
        """Persist pending changes."""
