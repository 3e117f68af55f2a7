"""Version control provider backed by the ``git`` command line."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import structlog

from gosnap.exceptions import CloneError, VcsCommandError
from gosnap.models import GitStatus
from gosnap.providers import _exec

log = structlog.get_logger("gosnap.git")

_FALLBACK_BRANCHES = ("main", "master")


def _parse_branch_header(header: str) -> tuple[str | None, bool]:
    """Parse the ``## ...`` line of ``git status --porcelain -b``.

    Returns (branch, ahead). *branch* is None for a detached HEAD.

    Examples:
        main...origin/main [ahead 1, behind 2] -> ("main", True)
        HEAD (no branch)                       -> (None, False)
        No commits yet on master               -> ("master", False)
    """
    if header.startswith("HEAD (no branch)"):
        return None, False
    for prefix in ("No commits yet on ", "Initial commit on "):
        if header.startswith(prefix):
            return header[len(prefix):].strip(), False

    head, _, bracket = header.partition(" [")
    branch = head.split("...", 1)[0].strip()
    return branch or None, "ahead" in bracket


def parse_status(output: str, default_branch: str) -> GitStatus:
    """Reduce ``git status --porcelain -b`` output to a single GitStatus."""
    header = ""
    entries: list[str] = []
    for line in output.splitlines():
        if line.startswith("## "):
            header = line[3:]
        elif line.strip():
            entries.append(line)

    if any(not e.startswith("??") for e in entries):
        return GitStatus.UNCOMMITTED
    if entries:
        return GitStatus.UNTRACKED

    branch, ahead = _parse_branch_header(header)
    if ahead:
        return GitStatus.UNPUSHED
    if branch != default_branch:
        return GitStatus.NOT_DEFAULT_BRANCH
    return GitStatus.CLEAN


class GitClient:
    """Thin wrapper around git subcommands used by the engines."""

    def __init__(self, *, git_binary: str = "git", timeout: float | None = None) -> None:
        self._git = git_binary
        self._timeout = timeout

    def _run(self, path: str, *args: str, error_cls: type[VcsCommandError] = VcsCommandError) -> str:
        return _exec.run(
            [self._git, "-C", str(path), *args],
            timeout=self._timeout,
            error_cls=error_cls,
        )

    def is_repo(self, path: str) -> bool:
        if not os.path.isdir(path):
            return False
        try:
            return self._run(path, "rev-parse", "--is-inside-work-tree").strip() == "true"
        except VcsCommandError:
            return False

    def status(self, path: str) -> GitStatus:
        output = self._run(path, "status", "--porcelain", "-b")
        return parse_status(output, self.default_branch(path))

    def top_level(self, path: str) -> str:
        return str(Path(self._run(path, "rev-parse", "--show-toplevel").strip()))

    def remote_url(self, path: str) -> str:
        return self._run(path, "config", "--get", "remote.origin.url").strip()

    def sha(self, path: str) -> str:
        return self._run(path, "rev-parse", "HEAD").strip()

    def tags(self, path: str) -> list[str]:
        output = self._run(path, "tag", "--points-at", "HEAD")
        return [t.strip() for t in output.splitlines() if t.strip()]

    def commit_time(self, path: str) -> datetime | None:
        value = self._run(path, "log", "-1", "--format=%cI", "HEAD").strip()
        if not value:
            return None
        return datetime.fromisoformat(value)

    def default_branch(self, path: str) -> str:
        """Branch the remote's HEAD points at, falling back to main/master."""
        try:
            ref = self._run(path, "symbolic-ref", "--quiet", "--short", "refs/remotes/origin/HEAD")
            return ref.strip().split("/", 1)[-1]
        except VcsCommandError:
            pass
        for candidate in _FALLBACK_BRANCHES:
            try:
                self._run(path, "rev-parse", "--verify", "--quiet", f"refs/heads/{candidate}")
                return candidate
            except VcsCommandError:
                continue
        return _FALLBACK_BRANCHES[-1]

    def clone(self, target: str, remote: str) -> None:
        try:
            Path(target).parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CloneError(f"could not create {Path(target).parent}: {exc}") from exc
        _exec.run(
            [self._git, "clone", "--quiet", "--", remote, str(target)],
            timeout=self._timeout,
            error_cls=CloneError,
        )
        log.info("git.cloned", remote=remote, target=str(target))

    def checkout(self, path: str, ref: str) -> None:
        self._run(path, "checkout", "--quiet", ref)

    def pull(self, path: str) -> None:
        self._run(path, "pull", "--quiet", "--ff-only")
