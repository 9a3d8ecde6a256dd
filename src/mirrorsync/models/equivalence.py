"""Equivalence and migration records for mirrorsync.

Equivalence is an unordered pair of revisions from two repositories that hold
identical content. SubmittedMigration is a directional record of one completed
migration.
"""

from __future__ import annotations

from dataclasses import dataclass

from mirrorsync.exceptions import InvalidEquivalenceError
from mirrorsync.models.revision import Revision


@dataclass(frozen=True, eq=False)
class Equivalence:
    """Two revisions which represent the same files in different repositories.

    Two equivalences are equal when they hold the same two revisions, in any
    order: ``Equivalence(a, b) == Equivalence(b, a)``.
    """

    rev1: Revision
    rev2: Revision

    def __post_init__(self) -> None:
        if self.rev1 == self.rev2:
            raise InvalidEquivalenceError(self.rev1)

    @property
    def revisions(self) -> frozenset[Revision]:
        return frozenset((self.rev1, self.rev2))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Equivalence):
            return NotImplemented
        return self.revisions == other.revisions

    def __hash__(self) -> int:
        return hash(self.revisions)

    def __getitem__(self, repository_name: str) -> Revision:
        """Return the revision belonging to the given repository.

        Raises:
            KeyError: If neither revision is in that repository.
        """
        if self.rev1.repository_name == repository_name:
            return self.rev1
        if self.rev2.repository_name == repository_name:
            return self.rev2
        raise KeyError(f"Equivalence {{{self}}} doesn't have revision for {repository_name}")

    def other(self, revision: Revision) -> Revision | None:
        """Return the member that is not ``revision``, or None if it is not a member."""
        if revision == self.rev1:
            return self.rev2
        if revision == self.rev2:
            return self.rev1
        return None

    def has_revision(self, revision: Revision) -> bool:
        return revision == self.rev1 or revision == self.rev2

    def __str__(self) -> str:
        return f"{self.rev1} == {self.rev2}"


@dataclass(frozen=True)
class SubmittedMigration:
    """A completed migration from one revision to another.

    Unlike Equivalence, direction matters: (a ==> b) != (b ==> a).
    """

    from_revision: Revision
    to_revision: Revision

    def __str__(self) -> str:
        return f"{self.from_revision} ==> {self.to_revision}"
