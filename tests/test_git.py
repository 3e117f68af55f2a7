"""Tests for the git provider.

Status parsing is tested on canned output; the client itself runs against
real repositories in tmp_path and is skipped when git is not installed.
"""

import shutil
import subprocess
from pathlib import Path

import pytest

from gosnap.engines.reproducer import Reproducer
from gosnap.exceptions import CloneError, VcsCommandError
from gosnap.models import DependencyRecord, GitStatus, Snapshot
from gosnap.providers.base import VersionControl
from gosnap.providers.git import GitClient, _parse_branch_header, parse_status

needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


# ── status parsing ──


class TestParseBranchHeader:
    @pytest.mark.parametrize(
        "header, expected",
        [
            ("master...origin/master", ("master", False)),
            ("main...origin/main [ahead 1, behind 2]", ("main", True)),
            ("dev...origin/dev [behind 3]", ("dev", False)),
            ("HEAD (no branch)", (None, False)),
            ("No commits yet on master", ("master", False)),
            ("Initial commit on master", ("master", False)),
            ("feature", ("feature", False)),
        ],
    )
    def test_headers(self, header, expected):
        assert _parse_branch_header(header) == expected


class TestParseStatus:
    def test_clean(self):
        assert parse_status("## master...origin/master\n", "master") is GitStatus.CLEAN

    def test_modified(self):
        assert parse_status("## master\n M main.go\n", "master") is GitStatus.UNCOMMITTED

    def test_staged(self):
        assert parse_status("## master\nA  new.go\n", "master") is GitStatus.UNCOMMITTED

    def test_untracked(self):
        assert parse_status("## master\n?? scratch.txt\n", "master") is GitStatus.UNTRACKED

    def test_uncommitted_beats_untracked(self):
        out = "## master\n?? scratch.txt\n M main.go\n"
        assert parse_status(out, "master") is GitStatus.UNCOMMITTED

    def test_unpushed(self):
        out = "## master...origin/master [ahead 2]\n"
        assert parse_status(out, "master") is GitStatus.UNPUSHED

    def test_other_branch(self):
        assert parse_status("## feature...origin/feature\n", "master") is GitStatus.NOT_DEFAULT_BRANCH

    def test_detached(self):
        assert parse_status("## HEAD (no branch)\n", "master") is GitStatus.NOT_DEFAULT_BRANCH


# ── clone target preparation ──


class TestCloneTarget:
    def test_parent_is_a_file(self, tmp_path):
        (tmp_path / "src").write_text("not a directory")
        with pytest.raises(CloneError, match="could not create"):
            GitClient().clone(str(tmp_path / "src" / "depone"), "/remotes/depone")

    def test_reproduce_reports_clone_error(self, tmp_path):
        (tmp_path / "src").write_text("not a directory")
        snap = Snapshot.build([DependencyRecord("depone", "/remotes/depone", "1" * 40)])
        with pytest.raises(CloneError, match="Failed to reproduce /remotes/depone, git clone error"):
            Reproducer(GitClient()).reproduce(tmp_path, snap)


# ── GitClient against real repositories ──


def _git(*args: str, cwd: Path) -> str:
    return subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    ).stdout


@pytest.fixture
def origin(tmp_path):
    """A repository with two commits on master, the first one tagged v1.0."""
    repo = tmp_path / "origin"
    repo.mkdir()
    _git("init", "--quiet", "-b", "master", cwd=repo)
    (repo / "a.go").write_text("package a\n")
    _git("add", "a.go", cwd=repo)
    _git("commit", "--quiet", "-m", "first", cwd=repo)
    _git("tag", "v1.0", cwd=repo)
    (repo / "b.go").write_text("package a\n")
    _git("add", "b.go", cwd=repo)
    _git("commit", "--quiet", "-m", "second", cwd=repo)
    return repo


@pytest.fixture
def clone(tmp_path, origin):
    target = tmp_path / "gopath" / "src" / "example.com" / "a"
    GitClient().clone(str(target), str(origin))
    return target


@needs_git
class TestGitClient:
    def test_satisfies_protocol(self):
        assert isinstance(GitClient(), VersionControl)

    def test_clone_creates_parents(self, clone):
        assert (clone / "a.go").is_file()

    def test_clone_failure(self, tmp_path):
        with pytest.raises(CloneError):
            GitClient().clone(str(tmp_path / "x"), str(tmp_path / "no-such-remote"))

    def test_is_repo(self, clone, tmp_path):
        git = GitClient()
        assert git.is_repo(str(clone))
        assert not git.is_repo(str(tmp_path / "missing"))
        plain = tmp_path / "plain"
        plain.mkdir()
        assert not git.is_repo(str(plain))

    def test_metadata(self, clone, origin):
        git = GitClient()
        assert git.remote_url(str(clone)) == str(origin)
        assert git.sha(str(clone)) == _git("rev-parse", "HEAD", cwd=origin).strip()
        assert git.tags(str(clone)) == []
        assert git.commit_time(str(clone)).tzinfo is not None
        assert Path(git.top_level(str(clone / "."))).resolve() == clone.resolve()

    def test_default_branch(self, clone):
        assert GitClient().default_branch(str(clone)) == "master"

    def test_status_transitions(self, clone):
        git = GitClient()
        assert git.status(str(clone)) is GitStatus.CLEAN

        (clone / "scratch.txt").write_text("x")
        assert git.status(str(clone)) is GitStatus.UNTRACKED

        (clone / "a.go").write_text("package changed\n")
        assert git.status(str(clone)) is GitStatus.UNCOMMITTED

    def test_unpushed(self, clone):
        (clone / "c.go").write_text("package a\n")
        _git("add", "c.go", cwd=clone)
        _git("commit", "--quiet", "-m", "local", cwd=clone)
        assert GitClient().status(str(clone)) is GitStatus.UNPUSHED

    def test_checkout_tag_detaches(self, clone):
        git = GitClient()
        git.checkout(str(clone), "v1.0")
        assert git.tags(str(clone)) == ["v1.0"]
        assert git.status(str(clone)) is GitStatus.NOT_DEFAULT_BRANCH

        git.checkout(str(clone), "master")
        git.pull(str(clone))
        assert git.status(str(clone)) is GitStatus.CLEAN

    def test_checkout_unknown_ref(self, clone):
        with pytest.raises(VcsCommandError):
            GitClient().checkout(str(clone), "0" * 40)
