"""Git history adapter for mirrorsync.

GitClonedRepository runs git commands in an existing local checkout.
GitRevisionHistory implements the HistoryAdapter protocol on top of it by
parsing ``git log`` output written with custom field delimiters.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, Union

from mirrorsync.exceptions import MalformedMetadataError, RepositoryMismatchError, VcsCommandError
from mirrorsync.models.config import DEFAULT_BATCH_SIZE, RepositoryConfig
from mirrorsync.models.revision import Revision, RevisionMetadata

logger = logging.getLogger(__name__)

DEFAULT_LOG_DELIMITER = "---@MOE@---"
DEFAULT_ENTRY_DELIMITER = "---@MOE_LOG_ENTRY@---"

# Like ISO 8601, but with a space instead of 'T' (git's %ai)
GIT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"

# hash, author, ISO date, parents, full message, then --name-only file list
_LOG_FIELDS = ("%H", "%an <%ae>", "%ai", "%P", "%B", "")


class GitClonedRepository:
    """A local git checkout that commands are run in."""

    def __init__(self, config: RepositoryConfig, local_path: Union[str, Path, None] = None) -> None:
        self.config = config
        self.local_path = Path(local_path if local_path is not None else config.url)

    @property
    def repository_name(self) -> str:
        return self.config.name

    def run_git_command(self, *args: str) -> str:
        """Run ``git <args>`` in the checkout and return its stdout.

        Raises:
            VcsCommandError: If git cannot be started or exits non-zero.
        """
        cmd = [self.config.git_binary, *args]
        logger.debug("RUN cwd=%s cmd=%s", self.local_path, " ".join(shlex.quote(c) for c in cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=str(self.local_path),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise VcsCommandError(self.config.git_binary, args, -1, "", str(e)) from e
        if result.returncode != 0:
            raise VcsCommandError(
                self.config.git_binary, args, result.returncode, result.stdout, result.stderr
            )
        return result.stdout


class GitRevisionHistory:
    """HistoryAdapter over a git checkout.

    Delimiters are per-instance so histories for different repositories
    never share parsing state.
    """

    def __init__(
        self,
        repo: GitClonedRepository,
        *,
        log_delimiter: str = DEFAULT_LOG_DELIMITER,
        entry_delimiter: str = DEFAULT_ENTRY_DELIMITER,
    ) -> None:
        self._repo = repo
        self.log_delimiter = log_delimiter
        self.entry_delimiter = entry_delimiter

    @property
    def repository_name(self) -> str:
        return self._repo.repository_name

    @property
    def paths(self) -> list[str]:
        return list(self._repo.config.paths)

    @property
    def log_format(self) -> str:
        return self.entry_delimiter + self.log_delimiter.join(_LOG_FIELDS)

    def resolve(self, identifier: Optional[str] = None) -> Revision:
        """Resolve a revision id, branch or tag with ``git log``.

        An empty identifier means the configured branch, or HEAD.
        """
        rev = identifier or self._repo.config.branch or "HEAD"
        args = ["log", "--max-count=1", "--format=%H", rev, "--", *self.paths]
        hash_id = self._repo.run_git_command(*args).strip()
        if not hash_id:
            raise VcsCommandError(
                self._repo.config.git_binary, args, 0, "", f"No revision found for {rev!r}"
            )
        return Revision(rev_id=hash_id, repository_name=self.repository_name)

    def find_head_revisions(self) -> list[Revision]:
        # A git head (current branch) can only ever point to a single commit.
        return [self.resolve(None)]

    def metadata(self, revision: Revision) -> RevisionMetadata | None:
        """Metadata for a single revision, or None if git reports nothing."""
        entries = self.metadata_batch(revision, 1, self.paths)
        return entries[0] if entries else None

    def metadata_batch(
        self,
        start: Revision,
        limit: int = DEFAULT_BATCH_SIZE,
        paths: Sequence[str] = (),
    ) -> list[RevisionMetadata]:
        """Up to ``limit`` revisions reachable from ``start``, newest first."""
        if start.repository_name != self.repository_name:
            raise RepositoryMismatchError(start, self.repository_name)
        args = [
            "log",
            f"--max-count={limit}",
            f"--format={self.log_format}",
            "--ignore-missing",
            "--name-only",
            start.rev_id,
            "--",
            *paths,
        ]
        return self.parse_log(self._repo.run_git_command(*args))

    def parse_log(self, log: str) -> list[RevisionMetadata]:
        """Parse multi-entry log output. Malformed entries are skipped."""
        entries: list[RevisionMetadata] = []
        for chunk in log.split(self.entry_delimiter):
            if not chunk.strip():
                continue
            try:
                metadata = self.parse_metadata(chunk)
            except MalformedMetadataError as e:
                logger.warning("Skipping unparseable log entry in %s: %s", self.repository_name, e)
                continue
            if metadata is not None:
                entries.append(metadata)
        return entries

    def parse_metadata(self, log: str) -> RevisionMetadata | None:
        """Parse one log entry into RevisionMetadata.

        Returns None for empty output.

        Raises:
            MalformedMetadataError: If fields are missing or the date is invalid.
        """
        if not log.strip():
            return None

        # The file list is always the last field and the message may contain the
        # delimiter, so split the file list off the end before splitting the rest.
        head, _, files_text = log.rpartition(self.log_delimiter)
        parts = head.split(self.log_delimiter, 4)
        if len(parts) < 5:
            raise MalformedMetadataError(
                f"Expected 6 fields, got {len(parts) + 1}: {log[:80]!r}"
            )
        rev_id, author, timestamp, parents_text, description = parts

        try:
            date = datetime.strptime(timestamp.strip(), GIT_DATE_FORMAT)
        except ValueError as e:
            raise MalformedMetadataError(f"Bad date {timestamp!r}") from e

        parents = tuple(
            Revision(rev_id=p, repository_name=self.repository_name)
            for p in parents_text.split()
        )
        files = frozenset(line.strip() for line in files_text.splitlines() if line.strip())
        return RevisionMetadata(
            id=rev_id.strip(),
            author=author,
            date=date,
            description=description,
            parents=parents,
            files=files,
        )
