"""Tests for the git history adapter.

Most tests stub GitClonedRepository.run_git_command with canned log output.
TestRealGit runs against a throwaway repository and is skipped without git.
"""

from __future__ import annotations

import shutil
import subprocess
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from mirrorsync.adapters.git import GitClonedRepository, GitRevisionHistory
from mirrorsync.exceptions import MalformedMetadataError, RepositoryMismatchError, VcsCommandError
from mirrorsync.models.config import RepositoryConfig, SearchConfig, SearchType
from mirrorsync.models.equivalence import Equivalence
from mirrorsync.operations.matcher import find_last_equivalence
from mirrorsync.storage.file_db import FileDatabase
from tests.conftest import rev

D = "---@MOE@---"
E = "---@MOE_LOG_ENTRY@---"
GIT_DATE = "2012-07-09 06:00:00 -0700"
PARSED_DATE = datetime(2012, 7, 9, 6, 0, tzinfo=timezone(timedelta(hours=-7)))


def _history(paths=(), run=None, branch=None) -> GitRevisionHistory:
    config = RepositoryConfig(name="mockrepo", url="/nonexistent", paths=list(paths), branch=branch)
    repo = GitClonedRepository(config)
    repo.run_git_command = MagicMock(side_effect=run)  # type: ignore[method-assign]
    return GitRevisionHistory(repo)


def _entry(rev_id: str, parents: str, description: str, files: str = "") -> str:
    return f"{E}{rev_id}{D}foo <foo@google.com>{D}{GIT_DATE}{D}{parents}{D}{description}{D}{files}"


class TestResolve:
    def test_resolve_head(self) -> None:
        history = _history(run=lambda *args: "mockHashID\n")
        assert history.resolve(None) == rev("mockHashID", "mockrepo")
        history._repo.run_git_command.assert_called_once_with(
            "log", "--max-count=1", "--format=%H", "HEAD", "--"
        )

    def test_resolve_configured_branch_and_paths(self) -> None:
        history = _history(paths=["src"], run=lambda *args: "abc\n", branch="main")
        history.resolve()
        history._repo.run_git_command.assert_called_once_with(
            "log", "--max-count=1", "--format=%H", "main", "--", "src"
        )

    def test_resolve_explicit_identifier(self) -> None:
        history = _history(run=lambda *args: "abc\n", branch="main")
        assert history.resolve("v1.0").rev_id == "abc"
        assert history._repo.run_git_command.call_args.args[3] == "v1.0"

    def test_resolve_nothing_found(self) -> None:
        with pytest.raises(VcsCommandError):
            _history(run=lambda *args: "").resolve("missing")

    def test_find_head_revisions(self) -> None:
        history = _history(run=lambda *args: "mockHashID\n")
        assert history.find_head_revisions() == [rev("mockHashID", "mockrepo")]


class TestMetadata:
    def test_get_metadata(self) -> None:
        log = _entry("1", "2 3", "description\n")
        history = _history(run=lambda *args: log)
        metadata = history.metadata(rev("1", "mockrepo"))
        assert metadata.id == "1"
        assert metadata.author == "foo <foo@google.com>"
        assert metadata.date == PARSED_DATE
        assert metadata.description == "description\n"
        assert metadata.parents == (rev("2", "mockrepo"), rev("3", "mockrepo"))
        assert metadata.files == frozenset()
        history._repo.run_git_command.assert_called_once_with(
            "log",
            "--max-count=1",
            f"--format={history.log_format}",
            "--ignore-missing",
            "--name-only",
            "1",
            "--",
        )

    def test_batch_passes_limit_and_paths(self) -> None:
        history = _history(run=lambda *args: "")
        assert history.metadata_batch(rev("abc", "mockrepo"), 50, ["a", "b/c"]) == []
        args = history._repo.run_git_command.call_args.args
        assert args[1] == "--max-count=50"
        assert args[-3:] == ("--", "a", "b/c")

    def test_batch_wrong_repository(self) -> None:
        with pytest.raises(RepositoryMismatchError):
            _history(run=lambda *args: "").metadata_batch(rev("1", "otherrepo"), 10)

    def test_parse_log_multiple_entries(self) -> None:
        log = (
            _entry("head", "parent1 parent2", "merge\n", "\n\nsrc/a.py\nsrc/b.py\n")
            + _entry("parent1", "", "first\n")
            + _entry("parent2", "", "second\n")
        )
        entries = _history().parse_log(log)
        assert [e.id for e in entries] == ["head", "parent1", "parent2"]
        assert entries[0].files == frozenset({"src/a.py", "src/b.py"})
        assert entries[1].parents == ()

    def test_parse_log_skips_malformed(self) -> None:
        log = _entry("good", "", "ok\n") + f"{E}garbage output"
        assert [e.id for e in _history().parse_log(log)] == ["good"]

    def test_parse_metadata_empty(self) -> None:
        assert _history().parse_metadata("  \n") is None

    def test_parse_metadata_too_few_fields(self) -> None:
        with pytest.raises(MalformedMetadataError):
            _history().parse_metadata(f"1{D}author{D}{GIT_DATE}")

    def test_parse_metadata_bad_date(self) -> None:
        with pytest.raises(MalformedMetadataError):
            _history().parse_metadata(f"1{D}author{D}yesterday{D}{D}desc{D}")

    def test_delimiter_inside_description(self) -> None:
        log = _entry("1", "2", f"msg with {D} inside\n", "\n\nfile.txt\n")
        entries = _history().parse_log(log)
        assert len(entries) == 1
        assert entries[0].description == f"msg with {D} inside\n"
        assert entries[0].files == frozenset({"file.txt"})
        assert entries[0].parents == (rev("2", "mockrepo"),)

    def test_missing_file_list_field(self) -> None:
        with pytest.raises(MalformedMetadataError):
            _history().parse_metadata(f"1{D}a{D}{GIT_DATE}{D}{D}desc")


class TestSearchOverGit:
    def test_find_new_revisions(self) -> None:
        log = (
            _entry("head", "parent1 parent2", "description\n")
            + _entry("parent1", "", "description\n")
            + _entry("parent2", "", "description\n")
        )

        def run(*args):
            return "head\n" if "--format=%H" in args else log

        history = _history(run=run)
        db = FileDatabase()
        db.add_equivalence(Equivalence(rev("parent1", "mockrepo"), rev("1001", "public")))
        result = find_last_equivalence(history, db, "public")
        assert result.equivalences == [Equivalence(rev("parent1", "mockrepo"), rev("1001", "public"))]
        assert result.revisions_since_equivalence == [rev("head", "mockrepo"), rev("parent2", "mockrepo")]


class TestRunGitCommand:
    def test_missing_binary(self, tmp_path) -> None:
        config = RepositoryConfig(
            name="repo", url=str(tmp_path), git_binary="mirrorsync-no-such-git-binary"
        )
        with pytest.raises(VcsCommandError) as excinfo:
            GitClonedRepository(config).run_git_command("status")
        assert excinfo.value.returncode == -1
        assert excinfo.value.args_list == ["status"]


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(cwd, *args) -> str:
    return subprocess.run(
        [
            "git",
            "-c", "user.name=Test",
            "-c", "user.email=test@example.com",
            "-c", "commit.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    ).stdout.strip()


@pytest.fixture
def git_repo(tmp_path):
    """A three-commit repository; returns (path, [oldest..newest hashes])."""
    path = tmp_path / "checkout"
    path.mkdir()
    _git(path, "init", "-q")
    hashes = []
    for i, name in enumerate(["a.txt", "docs/b.txt", "a.txt"]):
        target = path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(f"version {i}\n")
        _git(path, "add", "-A")
        _git(path, "commit", "-q", "-m", f"Change {i}\n\nBUG={i}")
        hashes.append(_git(path, "rev-parse", "HEAD"))
    return path, hashes


@requires_git
class TestRealGit:
    def test_resolve_head(self, git_repo) -> None:
        path, hashes = git_repo
        history = GitRevisionHistory(GitClonedRepository(RepositoryConfig(name="internal", url=str(path))))
        assert history.resolve() == rev(hashes[-1], "internal")

    def test_metadata(self, git_repo) -> None:
        path, hashes = git_repo
        history = GitRevisionHistory(GitClonedRepository(RepositoryConfig(name="internal", url=str(path))))
        metadata = history.metadata(rev(hashes[1], "internal"))
        assert metadata.id == hashes[1]
        assert metadata.author == "Test <test@example.com>"
        assert metadata.parents == (rev(hashes[0], "internal"),)
        assert metadata.files == frozenset({"docs/b.txt"})
        assert metadata.with_parsed_fields().parsed_fields == {"BUG": ["1"]}

    def test_find_last_equivalence(self, git_repo) -> None:
        path, hashes = git_repo
        history = GitRevisionHistory(GitClonedRepository(RepositoryConfig(name="internal", url=str(path))))
        db = FileDatabase()
        db.add_equivalence(Equivalence(rev(hashes[0], "internal"), rev("r1", "public")))
        result = find_last_equivalence(history, db, "public")
        assert result.equivalences == [Equivalence(rev(hashes[0], "internal"), rev("r1", "public"))]
        assert result.revisions_since_equivalence == [
            rev(hashes[2], "internal"),
            rev(hashes[1], "internal"),
        ]

    def test_path_filtered_history(self, git_repo) -> None:
        path, hashes = git_repo
        config = RepositoryConfig(name="internal", url=str(path), paths=["a.txt"])
        history = GitRevisionHistory(GitClonedRepository(config))
        result = find_last_equivalence(
            history, FileDatabase(), "public", config=SearchConfig(search_type=SearchType.LINEAR)
        )
        assert result.revisions_since_equivalence == [
            rev(hashes[2], "internal"),
            rev(hashes[0], "internal"),
        ]

    def test_bad_revision(self, git_repo) -> None:
        path, _ = git_repo
        history = GitRevisionHistory(GitClonedRepository(RepositoryConfig(name="internal", url=str(path))))
        with pytest.raises(VcsCommandError):
            history.resolve("no-such-branch")
