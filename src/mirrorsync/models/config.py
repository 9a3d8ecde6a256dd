"""Configuration models for mirrorsync.

RepositoryConfig describes one repository taking part in a sync.
SearchConfig controls how far and how wide a history search may go.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

# Hard cap on the number of revisions a single search may visit.
MAX_REVISIONS_TO_SEARCH = 400

# Number of log entries requested from a history adapter per fetch.
DEFAULT_BATCH_SIZE = 10000


class SearchType(str, enum.Enum):
    """How a history search follows parents.

    BRANCHED follows every parent of every visited revision.
    LINEAR follows only the first parent, ignoring merged-in branches.
    """

    BRANCHED = "branched"
    LINEAR = "linear"

    def __str__(self) -> str:
        return self.value


class RepositoryConfig(BaseModel):
    """Configuration for a single repository."""

    name: str
    type: str = "git"
    url: str
    branch: Optional[str] = None
    paths: list[str] = []
    git_binary: str = "git"

    @field_validator("paths", mode="before")
    @classmethod
    def _coerce_paths(cls, v: object) -> object:
        """Allow a single path string in place of a list."""
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("type")
    @classmethod
    def _check_type(cls, v: str) -> str:
        if v != "git":
            raise ValueError(f"Unsupported repository type: {v!r}")
        return v


class SearchConfig(BaseModel):
    """Bounds and traversal mode for a history search."""

    max_revisions: int = Field(default=MAX_REVISIONS_TO_SEARCH, gt=0)
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, gt=0)
    search_type: SearchType = SearchType.BRANCHED
