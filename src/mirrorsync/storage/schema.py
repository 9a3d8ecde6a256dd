"""SQLAlchemy ORM schema for mirrorsync.

Defines the database tables: equivalences, migrations, _mirrorsync_meta.
Insertion order is the autoincrement id.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import JSON, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all mirrorsync ORM models."""

    pass


class EquivalenceRow(Base):
    """A stored equivalence. The (rev1, rev2) order is as first recorded."""

    __tablename__ = "equivalences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rev1_id: Mapped[str] = mapped_column(String(255), nullable=False)
    rev1_repository: Mapped[str] = mapped_column(String(255), nullable=False)
    rev2_id: Mapped[str] = mapped_column(String(255), nullable=False)
    rev2_repository: Mapped[str] = mapped_column(String(255), nullable=False)
    # Unknown fields from an imported document, kept for export
    extra_json: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_equivalences_rev1", "rev1_repository", "rev1_id"),
        Index("ix_equivalences_rev2", "rev2_repository", "rev2_id"),
    )


class MigrationRow(Base):
    """A stored submitted migration (directional)."""

    __tablename__ = "migrations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_rev_id: Mapped[str] = mapped_column(String(255), nullable=False)
    from_repository: Mapped[str] = mapped_column(String(255), nullable=False)
    to_rev_id: Mapped[str] = mapped_column(String(255), nullable=False)
    to_repository: Mapped[str] = mapped_column(String(255), nullable=False)
    extra_json: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        Index(
            "ix_migrations_pair",
            "from_repository",
            "from_rev_id",
            "to_repository",
            "to_rev_id",
        ),
    )


class SyncMetaRow(Base):
    """Key-value metadata about the database itself (schema_version)."""

    __tablename__ = "_mirrorsync_meta"

    key: Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
