"""Reproducer: materialize recorded pins into a GOPATH workspace."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import structlog

from gosnap.exceptions import (
    AlreadyExistsError,
    CloneError,
    DirtyWorkingTreeError,
    NotVersionControlledError,
    RevisionMismatchError,
    VcsCommandError,
)
from gosnap.models import ConflictPolicy, DependencyRecord, GitStatus, Snapshot
from gosnap.progress import ProgressTracker
from gosnap.providers.base import VersionControl

log = structlog.get_logger("gosnap.reproducer")

SOURCE_ROOT = "src"

# A detached HEAD left by an earlier reproduce is not a dirty tree.
_CLEAN_ENOUGH = frozenset({GitStatus.CLEAN, GitStatus.NOT_DEFAULT_BRANCH})


class Reproducer:
    """Clone and check out every recorded dependency.

    Dependencies are processed in snapshot order, build dependencies first.
    The first failure aborts the run; nothing already done is rolled back.
    """

    def __init__(self, git: VersionControl, *, progress: ProgressTracker | None = None) -> None:
        self._git = git
        self.progress = progress or ProgressTracker()
        # Each handler returns True when the revision still has to be synced.
        self._on_existing: dict[ConflictPolicy, Callable[[DependencyRecord, str], bool]] = {
            ConflictPolicy.FAIL: self._existing_fail,
            ConflictPolicy.FORCE: self._existing_force,
            ConflictPolicy.CONTINUE: self._existing_continue,
            ConflictPolicy.CHECK: self._existing_check,
        }

    def reproduce(
        self,
        workspace_root: str | Path,
        snapshot: Snapshot,
        include_tests: bool = True,
        policy: ConflictPolicy = ConflictPolicy.FAIL,
    ) -> None:
        records = list(snapshot.deps)
        if include_tests:
            records += list(snapshot.test_deps)

        for record in records:
            try:
                self._reproduce_dependency(Path(workspace_root), record, policy)
            except Exception as exc:
                self.progress.fail(record.import_path, str(exc))
                raise
            self.progress.complete(record.import_path)

    def target_dir(self, workspace_root: str | Path, record: DependencyRecord) -> Path:
        return Path(workspace_root) / SOURCE_ROOT / record.import_path

    def _reproduce_dependency(
        self, workspace_root: Path, record: DependencyRecord, policy: ConflictPolicy
    ) -> None:
        path = str(self.target_dir(workspace_root, record))

        if not Path(path).exists():
            try:
                self._git.clone(path, record.git_remote)
            except CloneError as exc:
                raise CloneError(
                    f"Failed to reproduce {record.git_remote}, git clone error in {path}: {exc}."
                ) from exc
            log.info("reproduce.cloned", import_path=record.import_path, path=path)
        elif not self._on_existing[policy](record, path):
            return

        self._sync_revision(record, path)

    def _existing_fail(self, record: DependencyRecord, path: str) -> bool:
        raise AlreadyExistsError(f"Failed to reproduce {record.git_remote}, {path} already exists.")

    def _existing_force(self, record: DependencyRecord, path: str) -> bool:
        self._require_clean_repo(record, path)
        try:
            branch = self._git.default_branch(path)
            self._git.checkout(path, branch)
            self._git.pull(path)
        except VcsCommandError as exc:
            raise VcsCommandError(
                f"Failed to reproduce {record.git_remote}, git update error in {path}: {exc}."
            ) from exc
        log.info("reproduce.updated", import_path=record.import_path, branch=branch)
        return True

    def _existing_continue(self, record: DependencyRecord, path: str) -> bool:
        log.debug("reproduce.trust_existing", import_path=record.import_path, path=path)
        return False

    def _existing_check(self, record: DependencyRecord, path: str) -> bool:
        self._require_clean_repo(record, path)
        sha = self._current_sha(record, path)
        if sha != record.sha:
            raise RevisionMismatchError(
                f"Failed to reproduce {record.git_remote}, {path} is at {sha}, expected {record.sha}.",
                expected=record.sha,
                actual=sha,
            )
        return False

    def _require_clean_repo(self, record: DependencyRecord, path: str) -> None:
        if not self._git.is_repo(path):
            raise NotVersionControlledError(
                f"Failed to reproduce {record.git_remote}, {path} is not a git repo."
            )
        try:
            status = self._git.status(path)
        except VcsCommandError as exc:
            raise VcsCommandError(
                f"Failed to reproduce {record.git_remote}, could not get git status for {path}: {exc}."
            ) from exc
        if status not in _CLEAN_ENOUGH:
            raise DirtyWorkingTreeError(
                f"Failed to reproduce {record.git_remote}, git status for {path} is {status}.",
                status,
            )

    def _current_sha(self, record: DependencyRecord, path: str) -> str:
        try:
            return self._git.sha(path)
        except VcsCommandError as exc:
            raise VcsCommandError(
                f"Failed to reproduce {record.git_remote}, git error getting current SHA in {path}: {exc}."
            ) from exc

    def _sync_revision(self, record: DependencyRecord, path: str) -> None:
        if self._current_sha(record, path) == record.sha:
            return
        try:
            self._git.checkout(path, record.sha)
        except VcsCommandError as exc:
            raise VcsCommandError(
                f"Failed to reproduce {record.git_remote}, git error in checkout in {path}: {exc}."
            ) from exc
        log.info("reproduce.checked_out", import_path=record.import_path, sha=record.sha)
