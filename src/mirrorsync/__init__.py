"""mirrorsync: discover and record equivalences between mirrored repositories.

Walks a repository's commit history outward from a starting revision and finds
the boundary between history already migrated to another repository and
history that is not.
"""

from mirrorsync._version import __version__

# Revision model
from mirrorsync.models.revision import FieldParsingResult, Revision, RevisionMetadata, parse_fields
from mirrorsync.models.graph import RevisionGraph

# Equivalence records
from mirrorsync.models.equivalence import Equivalence, SubmittedMigration

# Configuration
from mirrorsync.models.config import (
    DEFAULT_BATCH_SIZE,
    MAX_REVISIONS_TO_SEARCH,
    RepositoryConfig,
    SearchConfig,
    SearchType,
)

# Protocols
from mirrorsync.protocols import HistoryAdapter, Matcher

# Search
from mirrorsync.operations.search import find_revisions, stitch_linear
from mirrorsync.operations.matcher import EquivalenceMatcher, EquivalenceResult, find_last_equivalence

# Storage
from mirrorsync.storage.repositories import Database
from mirrorsync.storage.file_db import DbStorage, FileDatabase

# Exceptions
from mirrorsync.exceptions import (
    DatabaseFormatError,
    DuplicateRevisionError,
    InvalidEquivalenceError,
    MalformedMetadataError,
    MirrorSyncError,
    RepositoryMismatchError,
    SearchBoundExceeded,
    VcsCommandError,
)

__all__ = [
    "__version__",
    # Revision model
    "FieldParsingResult",
    "Revision",
    "RevisionMetadata",
    "RevisionGraph",
    "parse_fields",
    # Equivalence records
    "Equivalence",
    "SubmittedMigration",
    # Configuration
    "DEFAULT_BATCH_SIZE",
    "MAX_REVISIONS_TO_SEARCH",
    "RepositoryConfig",
    "SearchConfig",
    "SearchType",
    # Protocols
    "HistoryAdapter",
    "Matcher",
    # Search
    "EquivalenceMatcher",
    "EquivalenceResult",
    "find_last_equivalence",
    "find_revisions",
    "stitch_linear",
    # Storage
    "Database",
    "DbStorage",
    "FileDatabase",
    # Exceptions
    "DatabaseFormatError",
    "DuplicateRevisionError",
    "InvalidEquivalenceError",
    "MalformedMetadataError",
    "MirrorSyncError",
    "RepositoryMismatchError",
    "SearchBoundExceeded",
    "VcsCommandError",
]
