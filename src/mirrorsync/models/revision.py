"""Revision domain models for mirrorsync.

Revision identifies one commit in one named repository.
RevisionMetadata holds the facts about a revision as reported by a history adapter.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from pydantic import BaseModel, field_validator

# Legacy "KEY=value" description lines, e.g. "BUG=1234" or "R=reviewer".
_FIELD_LINE = re.compile(r"^\s*([A-Z][A-Z0-9_]*)=(.*?)\s*$")


class Revision(BaseModel):
    """A single commit within a named repository.

    Immutable value type: equal and hashable on (rev_id, repository_name).
    """

    model_config = {"frozen": True}

    rev_id: str
    repository_name: str

    @field_validator("rev_id", mode="before")
    @classmethod
    def _coerce_rev_id(cls, v: object) -> object:
        """Accept numeric revision ids (e.g. svn-style) as strings."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def __str__(self) -> str:
        return f"{self.repository_name}{{{self.rev_id}}}"

    def __repr__(self) -> str:
        return f"Revision({self.repository_name}{{{self.rev_id}}})"


@dataclass(frozen=True)
class FieldParsingResult:
    """Outcome of parsing structured fields out of a description.

    Attributes:
        description: The description with the field lines removed.
        fields: Field name to values, in the order they appeared.
    """

    description: str
    fields: dict[str, list[str]] = field(default_factory=dict)


def parse_fields(description: str) -> FieldParsingResult:
    """Extract legacy ``KEY=value`` lines from a commit description."""
    kept: list[str] = []
    fields: dict[str, list[str]] = {}
    for line in description.splitlines(keepends=True):
        match = _FIELD_LINE.match(line.rstrip("\r\n"))
        if match is None:
            kept.append(line)
            continue
        fields.setdefault(match.group(1), []).append(match.group(2))
    return FieldParsingResult(description="".join(kept).rstrip("\n"), fields=fields)


class RevisionMetadata(BaseModel):
    """Metadata describing a single revision.

    Never mutated after creation -- with_parents() and with_parsed_fields()
    return new values.
    """

    model_config = {"frozen": True}

    id: str
    author: str = ""
    date: datetime
    description: str = ""
    parents: tuple[Revision, ...] = ()
    files: Optional[frozenset[str]] = None
    parsed_fields: Optional[dict[str, list[str]]] = None

    def with_parents(self, parents: Iterable[Revision]) -> RevisionMetadata:
        """Return a copy of this metadata with a different parent list."""
        return self.model_copy(update={"parents": tuple(parents)})

    def with_parsed_fields(self) -> RevisionMetadata:
        """Return a copy with structured fields split out of the description."""
        result = parse_fields(self.description)
        return self.model_copy(
            update={"description": result.description, "parsed_fields": result.fields}
        )

    def __str__(self) -> str:
        summary = self.description.strip().splitlines()[0] if self.description.strip() else ""
        if len(summary) > 60:
            summary = summary[:57] + "..."
        return f"{self.id[:12]} {summary}"
