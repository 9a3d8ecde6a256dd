"""mirrorsync exception hierarchy.

All mirrorsync-specific exceptions inherit from MirrorSyncError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from mirrorsync.models.revision import Revision


class MirrorSyncError(Exception):
    """Base exception for all mirrorsync errors."""


class VcsCommandError(MirrorSyncError):
    """Raised when a version-control command fails to run or exits non-zero."""

    def __init__(
        self,
        command: str,
        args: Sequence[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.command = command
        self.args_list = list(args)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f"Command failed ({returncode}): {command} {' '.join(self.args_list)}"
            + (f"\n{stderr.strip()}" if stderr.strip() else "")
        )


class SearchBoundExceeded(MirrorSyncError):
    """Raised when a history search visits too many revisions without finishing."""

    def __init__(self, start: Revision, matcher_description: str, limit: int) -> None:
        self.start = start
        self.matcher_description = matcher_description
        self.limit = limit
        super().__init__(
            f"Searched more than {limit} revisions from {start} without "
            f"finding {matcher_description}. Is the equivalence database "
            f"missing an entry?"
        )


class MalformedMetadataError(MirrorSyncError):
    """Raised when VCS log output cannot be parsed into revision metadata."""


class InvalidEquivalenceError(MirrorSyncError, ValueError):
    """Raised when an equivalence is built from a revision and itself."""

    def __init__(self, revision: Revision) -> None:
        self.revision = revision
        super().__init__(f"Identical revisions are already equivalent: {revision}")


class RepositoryMismatchError(MirrorSyncError):
    """Raised when a revision is handed to the history of another repository."""

    def __init__(self, revision: Revision, repository_name: str) -> None:
        self.revision = revision
        self.repository_name = repository_name
        super().__init__(
            f"Revision {revision.rev_id} is in repository "
            f"{revision.repository_name} instead of {repository_name}"
        )


class DuplicateRevisionError(MirrorSyncError):
    """Raised when a revision is added to a RevisionGraph twice."""

    def __init__(self, revision: Revision) -> None:
        self.revision = revision
        super().__init__(f"Revision already in graph: {revision}")


class DatabaseFormatError(MirrorSyncError):
    """Raised when an equivalence database document cannot be read."""
