"""JSON-file equivalence database.

The document holds two arrays::

    {"equivalences": [{"rev1": {"rev_id": ..., "repository_name": ...}, "rev2": {...}}],
     "migrations": [{"from": {...}, "to": {...}}]}

Unknown fields at any level are kept and written back unchanged.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from mirrorsync.exceptions import DatabaseFormatError, InvalidEquivalenceError
from mirrorsync.models.equivalence import Equivalence, SubmittedMigration
from mirrorsync.models.revision import Revision
from mirrorsync.storage.repositories import Database

logger = logging.getLogger(__name__)


class RevisionRecord(BaseModel):
    """Serialized form of a Revision."""

    model_config = {"extra": "allow"}

    rev_id: str
    repository_name: str

    @field_validator("rev_id", mode="before")
    @classmethod
    def _coerce_rev_id(cls, v: object) -> object:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @classmethod
    def from_revision(cls, revision: Revision) -> RevisionRecord:
        return cls(rev_id=revision.rev_id, repository_name=revision.repository_name)

    def to_revision(self) -> Revision:
        return Revision(rev_id=self.rev_id, repository_name=self.repository_name)


class EquivalenceRecord(BaseModel):
    """Serialized form of an Equivalence."""

    model_config = {"extra": "allow"}

    rev1: RevisionRecord
    rev2: RevisionRecord

    @classmethod
    def from_equivalence(
        cls, equivalence: Equivalence, extra: dict | None = None
    ) -> EquivalenceRecord:
        return cls.model_validate(
            {
                **(extra or {}),
                "rev1": RevisionRecord.from_revision(equivalence.rev1),
                "rev2": RevisionRecord.from_revision(equivalence.rev2),
            }
        )

    def to_equivalence(self) -> Equivalence:
        return Equivalence(self.rev1.to_revision(), self.rev2.to_revision())


class MigrationRecord(BaseModel):
    """Serialized form of a SubmittedMigration."""

    model_config = {"extra": "allow", "populate_by_name": True}

    from_: RevisionRecord = Field(alias="from")
    to: RevisionRecord

    @classmethod
    def from_migration(
        cls, migration: SubmittedMigration, extra: dict | None = None
    ) -> MigrationRecord:
        return cls.model_validate(
            {
                **(extra or {}),
                "from": RevisionRecord.from_revision(migration.from_revision),
                "to": RevisionRecord.from_revision(migration.to_revision),
            }
        )

    def to_migration(self) -> SubmittedMigration:
        return SubmittedMigration(self.from_.to_revision(), self.to.to_revision())


class DbStorage(BaseModel):
    """The whole serialized database document."""

    model_config = {"extra": "allow"}

    equivalences: list[EquivalenceRecord] = []
    migrations: list[MigrationRecord] = []

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def parse_storage(text: str) -> DbStorage:
    """Parse a database document.

    Raises:
        DatabaseFormatError: If the text is not a valid database document.
    """
    try:
        return DbStorage.model_validate_json(text)
    except ValidationError as e:
        raise DatabaseFormatError(f"Invalid equivalence database: {e}") from e


def dump_storage(storage: DbStorage) -> str:
    """Serialize a database document (two-space indent, trailing newline)."""
    return storage.model_dump_json(indent=2, by_alias=True) + "\n"


class FileDatabase(Database):
    """Database held in memory and persisted as a JSON document.

    Mutations are kept in memory until write() is called.
    """

    def __init__(self, storage: DbStorage | None = None, path: Union[str, Path, None] = None) -> None:
        self._storage = storage if storage is not None else DbStorage()
        self._path = Path(path) if path is not None else None
        self._equivalences: list[Equivalence] = []
        self._migrations: list[SubmittedMigration] = []
        try:
            for record in self._storage.equivalences:
                equivalence = record.to_equivalence()
                if equivalence not in self._equivalences:
                    self._equivalences.append(equivalence)
        except InvalidEquivalenceError as e:
            raise DatabaseFormatError(f"Invalid equivalence database: {e}") from e
        for record in self._storage.migrations:
            migration = record.to_migration()
            if migration not in self._migrations:
                self._migrations.append(migration)

    @classmethod
    def from_json(cls, text: str, path: Union[str, Path, None] = None) -> FileDatabase:
        return cls(parse_storage(text), path=path)

    @classmethod
    def load(cls, path: Union[str, Path]) -> FileDatabase:
        """Load a database file. A missing file is an empty database at that path."""
        path = Path(path)
        if not path.exists():
            logger.info("No database at %s; starting empty", path)
            return cls(path=path)
        logger.debug("Loading equivalence database from %s", path)
        return cls.from_json(path.read_text(encoding="utf-8"), path=path)

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def storage(self) -> DbStorage:
        return self._storage

    def equivalences(self) -> list[Equivalence]:
        return list(self._equivalences)

    def migrations(self) -> list[SubmittedMigration]:
        return list(self._migrations)

    def add_equivalence(
        self, equivalence: Equivalence, *, extra: dict | None = None
    ) -> bool:
        if equivalence in self._equivalences:
            return False
        self._equivalences.append(equivalence)
        self._storage.equivalences.append(EquivalenceRecord.from_equivalence(equivalence, extra))
        logger.info("Noted equivalence %s", equivalence)
        return True

    def add_migration(
        self, migration: SubmittedMigration, *, extra: dict | None = None
    ) -> bool:
        if migration in self._migrations:
            return False
        self._migrations.append(migration)
        self._storage.migrations.append(MigrationRecord.from_migration(migration, extra))
        logger.info("Noted migration %s", migration)
        return True

    def has_migration(self, migration: SubmittedMigration) -> bool:
        return migration in self._migrations

    def to_storage(self) -> DbStorage:
        return self._storage.model_copy(deep=True)

    def to_json(self) -> str:
        return dump_storage(self._storage)

    def write(self) -> None:
        """Write the document back to its path.

        Raises:
            DatabaseFormatError: If this database has no path.
        """
        if self._path is None:
            raise DatabaseFormatError("Cannot write a database that has no file path")
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(self.to_json(), encoding="utf-8")
        os.replace(tmp_path, self._path)
        logger.info(
            "Wrote %d equivalence(s) and %d migration(s) to %s",
            len(self._equivalences),
            len(self._migrations),
            self._path,
        )
