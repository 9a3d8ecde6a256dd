"""SQL implementation of the equivalence store.

Uses SQLAlchemy 2.0-style queries (select() + session.execute()).
Takes a Session in its constructor; mutations are flushed immediately and
committed by write().
"""

from __future__ import annotations

import logging

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from mirrorsync.models.equivalence import Equivalence, SubmittedMigration
from mirrorsync.models.revision import Revision
from mirrorsync.storage.file_db import (
    DbStorage,
    EquivalenceRecord,
    MigrationRecord,
)
from mirrorsync.storage.repositories import Database
from mirrorsync.storage.schema import EquivalenceRow, MigrationRow

logger = logging.getLogger(__name__)


def _equivalence_from_row(row: EquivalenceRow) -> Equivalence:
    return Equivalence(
        Revision(rev_id=row.rev1_id, repository_name=row.rev1_repository),
        Revision(rev_id=row.rev2_id, repository_name=row.rev2_repository),
    )


def _migration_from_row(row: MigrationRow) -> SubmittedMigration:
    return SubmittedMigration(
        Revision(rev_id=row.from_rev_id, repository_name=row.from_repository),
        Revision(rev_id=row.to_rev_id, repository_name=row.to_repository),
    )


class SqlDatabase(Database):
    """SQLAlchemy-backed equivalence store."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _get_equivalence_row(self, equivalence: Equivalence) -> EquivalenceRow | None:
        a, b = equivalence.rev1, equivalence.rev2
        stmt = select(EquivalenceRow).where(
            or_(
                and_(
                    EquivalenceRow.rev1_id == a.rev_id,
                    EquivalenceRow.rev1_repository == a.repository_name,
                    EquivalenceRow.rev2_id == b.rev_id,
                    EquivalenceRow.rev2_repository == b.repository_name,
                ),
                and_(
                    EquivalenceRow.rev1_id == b.rev_id,
                    EquivalenceRow.rev1_repository == b.repository_name,
                    EquivalenceRow.rev2_id == a.rev_id,
                    EquivalenceRow.rev2_repository == a.repository_name,
                ),
            )
        ).limit(1)
        return self._session.execute(stmt).scalars().first()

    def _get_migration_row(self, migration: SubmittedMigration) -> MigrationRow | None:
        src, dst = migration.from_revision, migration.to_revision
        stmt = select(MigrationRow).where(
            MigrationRow.from_rev_id == src.rev_id,
            MigrationRow.from_repository == src.repository_name,
            MigrationRow.to_rev_id == dst.rev_id,
            MigrationRow.to_repository == dst.repository_name,
        ).limit(1)
        return self._session.execute(stmt).scalars().first()

    def equivalences(self) -> list[Equivalence]:
        stmt = select(EquivalenceRow).order_by(EquivalenceRow.id)
        return [_equivalence_from_row(r) for r in self._session.execute(stmt).scalars()]

    def migrations(self) -> list[SubmittedMigration]:
        stmt = select(MigrationRow).order_by(MigrationRow.id)
        return [_migration_from_row(r) for r in self._session.execute(stmt).scalars()]

    def add_equivalence(
        self, equivalence: Equivalence, *, extra: dict | None = None
    ) -> bool:
        if self._get_equivalence_row(equivalence) is not None:
            return False
        self._session.add(
            EquivalenceRow(
                rev1_id=equivalence.rev1.rev_id,
                rev1_repository=equivalence.rev1.repository_name,
                rev2_id=equivalence.rev2.rev_id,
                rev2_repository=equivalence.rev2.repository_name,
                extra_json=extra or None,
            )
        )
        self._session.flush()
        logger.info("Noted equivalence %s", equivalence)
        return True

    def add_migration(
        self, migration: SubmittedMigration, *, extra: dict | None = None
    ) -> bool:
        if self._get_migration_row(migration) is not None:
            return False
        self._session.add(
            MigrationRow(
                from_rev_id=migration.from_revision.rev_id,
                from_repository=migration.from_revision.repository_name,
                to_rev_id=migration.to_revision.rev_id,
                to_repository=migration.to_revision.repository_name,
                extra_json=extra or None,
            )
        )
        self._session.flush()
        logger.info("Noted migration %s", migration)
        return True

    def has_migration(self, migration: SubmittedMigration) -> bool:
        return self._get_migration_row(migration) is not None

    def find_equivalences(
        self, revision: Revision, other_repository_name: str
    ) -> set[Revision]:
        """Indexed lookup of the revisions in another repository equivalent to ``revision``."""
        found: set[Revision] = set()
        as_rev1 = select(EquivalenceRow).where(
            EquivalenceRow.rev1_id == revision.rev_id,
            EquivalenceRow.rev1_repository == revision.repository_name,
            EquivalenceRow.rev2_repository == other_repository_name,
        )
        for row in self._session.execute(as_rev1).scalars():
            found.add(Revision(rev_id=row.rev2_id, repository_name=row.rev2_repository))
        as_rev2 = select(EquivalenceRow).where(
            EquivalenceRow.rev2_id == revision.rev_id,
            EquivalenceRow.rev2_repository == revision.repository_name,
            EquivalenceRow.rev1_repository == other_repository_name,
        )
        for row in self._session.execute(as_rev2).scalars():
            found.add(Revision(rev_id=row.rev1_id, repository_name=row.rev1_repository))
        found.discard(revision)
        return found

    def write(self) -> None:
        self._session.commit()

    # ------------------------------------------------------------------
    # Conversion to and from the JSON document form
    # ------------------------------------------------------------------

    def to_storage(self) -> DbStorage:
        """Export the whole store as a JSON document model."""
        equivalences = []
        for row in self._session.execute(
            select(EquivalenceRow).order_by(EquivalenceRow.id)
        ).scalars():
            equivalences.append(
                EquivalenceRecord.model_validate(
                    {
                        **(row.extra_json or {}),
                        "rev1": {"rev_id": row.rev1_id, "repository_name": row.rev1_repository},
                        "rev2": {"rev_id": row.rev2_id, "repository_name": row.rev2_repository},
                    }
                )
            )
        migrations = []
        for row in self._session.execute(
            select(MigrationRow).order_by(MigrationRow.id)
        ).scalars():
            migrations.append(
                MigrationRecord.model_validate(
                    {
                        **(row.extra_json or {}),
                        "from": {"rev_id": row.from_rev_id, "repository_name": row.from_repository},
                        "to": {"rev_id": row.to_rev_id, "repository_name": row.to_repository},
                    }
                )
            )
        return DbStorage(equivalences=equivalences, migrations=migrations)
