"""Scanner: reduce a package graph to one pinned record per repository."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import PurePath

import structlog

from gosnap.exceptions import (
    DirtyWorkingTreeError,
    GraphQueryError,
    NotVersionControlledError,
    VcsCommandError,
)
from gosnap.models import DependencyRecord, GitStatus, ScanResult, Snapshot
from gosnap.progress import ProgressTracker
from gosnap.providers.base import PackageGraph, VersionControl

log = structlog.get_logger("gosnap.scanner")


def path_contains(parent: str, child: str) -> bool:
    """True if *child* is *parent* or lies beneath it.

    Compares whole path segments, so ``/src/pkg`` does not contain
    ``/src/pkgtwo``.
    """
    parent_parts = PurePath(parent).parts
    child_parts = PurePath(child).parts
    return child_parts[: len(parent_parts)] == parent_parts


def root_import_path(import_path: str, pkg_dir: str, top_level: str) -> str:
    """Trim *import_path* up to the repository root.

    Example:
        pkg_dir        = /go/src/github.com/desal/go-snap/snapshot
        top_level      = /go/src/github.com/desal/go-snap
        import_path    = github.com/desal/go-snap/snapshot
        -> github.com/desal/go-snap
    """
    rel = PurePath(pkg_dir).relative_to(top_level)
    depth = len(rel.parts)
    segments = import_path.split("/")
    if depth >= len(segments):
        raise ValueError(
            f"repository root {top_level} lies above import path {import_path}"
        )
    return "/".join(segments[: len(segments) - depth])


def _has_vendor_segment(import_path: str) -> bool:
    return "vendor" in import_path.split("/")


@dataclass
class ScanState:
    """Directories already resolved during one scan."""

    done_dirs: set[str] = field(default_factory=set)

    def is_done(self, path: str) -> bool:
        path = os.path.realpath(path)
        if path in self.done_dirs:
            return True
        return any(path_contains(done, path) for done in self.done_dirs)

    def mark_done(self, path: str) -> None:
        self.done_dirs.add(os.path.realpath(path))


class Scanner:
    """Compute the pinned dependency set of a workspace.

    Build-time and test-only dependencies are reported separately; a
    dependency needed both ways is reported once, as a build dependency.
    """

    def __init__(
        self,
        go: PackageGraph,
        git: VersionControl,
        *,
        skip_vendor: bool = False,
        progress: ProgressTracker | None = None,
    ) -> None:
        self._go = go
        self._git = git
        self._skip_vendor = skip_vendor
        self.progress = progress or ProgressTracker()

    def scan(
        self,
        working_dir: str,
        patterns: list[str],
        tag_sets: list[str] | None = None,
    ) -> ScanResult:
        """Scan *patterns* under *working_dir* across every tag set.

        Per-dependency problems end up in ``ScanResult.errors`` and on the
        affected records. Missing version control and a failing top-level
        ``go list`` raise.
        """
        state = ScanState()
        initial: set[str] = set()
        regular: set[str] = set()
        tests: set[str] = set()
        # tag set that first introduced each candidate, used to list it alone
        origin: dict[str, str] = {}

        for tags in tag_sets or [""]:
            listing = self._go.list(working_dir, patterns, tags=tags)
            seeds: set[str] = set()
            for import_path, pkg in listing.items():
                initial.add(import_path)
                self._claim_workspace_dir(state, pkg.dir)
                for dep in pkg.deps:
                    regular.add(dep)
                    origin.setdefault(dep, tags)
                seeds.update(pkg.test_imports)
                seeds.update(pkg.xtest_imports)

            if seeds:
                found = set(seeds)
                for pkg in self._go.list(working_dir, sorted(seeds), tags=tags, tolerant=True).values():
                    found.update(pkg.deps)
                for dep in found:
                    tests.add(dep)
                    origin.setdefault(dep, tags)

        tests -= regular

        deps = self._resolve_all(state, sorted(regular), initial, working_dir, origin)
        test_deps = self._resolve_all(state, sorted(tests), initial, working_dir, origin)

        snapshot = Snapshot.build(deps, test_deps)
        errors = [r.error for r in snapshot.all_records() if r.error is not None]
        log.info(
            "scan.done",
            deps=len(snapshot.deps),
            test_deps=len(snapshot.test_deps),
            errors=len(errors),
        )
        return ScanResult(snapshot=snapshot, errors=errors)

    def _claim_workspace_dir(self, state: ScanState, pkg_dir: str) -> None:
        if not state.is_done(pkg_dir):
            # The root of the workspace repo may hold no go files itself,
            # so claim the whole repository.
            if not self._git.is_repo(pkg_dir):
                raise NotVersionControlledError(
                    f"All scanned directories must be in a git repo: {pkg_dir} is not"
                )
            state.mark_done(self._git.top_level(pkg_dir))
        state.mark_done(pkg_dir)

    def _resolve_all(
        self,
        state: ScanState,
        candidates: list[str],
        initial: set[str],
        working_dir: str,
        origin: dict[str, str],
    ) -> list[DependencyRecord]:
        records: list[DependencyRecord] = []
        for import_path in candidates:
            record = self._scan_dependency(
                state, import_path, initial, working_dir, origin.get(import_path, "")
            )
            if record is not None:
                records.append(record)
        return records

    def _scan_dependency(
        self,
        state: ScanState,
        import_path: str,
        initial: set[str],
        working_dir: str,
        tags: str,
    ) -> DependencyRecord | None:
        """Resolve one import path. Returns None when it is not a dependency."""
        if self._go.is_std_lib(import_path):
            return self._skip(import_path, "standard library")
        if import_path in initial:
            return self._skip(import_path, "workspace package")
        if self._skip_vendor and _has_vendor_segment(import_path):
            return self._skip(import_path, "vendored")

        record = DependencyRecord(import_path=import_path)

        # A dependency has to be listable under the tag set that introduced it.
        try:
            pkg = self._go.list(working_dir, [import_path], tags=tags).get(import_path)
            if pkg is None:
                raise GraphQueryError(f"go list returned no package {import_path}")
        except GraphQueryError as exc:
            return self._fail(
                record, GraphQueryError(f"Failed to scan dependency {import_path}: {exc}.")
            )

        pkg_dir = pkg.dir
        if not PurePath(pkg_dir).as_posix().endswith(import_path):
            return self._fail(
                record,
                GraphQueryError(
                    f"Failed to scan dependency: directory {PurePath(pkg_dir).as_posix()} "
                    f"should end in {import_path}."
                ),
            )

        if state.is_done(pkg_dir):
            return self._skip(import_path, "repository already recorded")

        if not self._git.is_repo(pkg_dir):
            raise NotVersionControlledError(
                f"Import {import_path} ({pkg_dir}) is not a git repository"
            )

        try:
            status = self._git.status(pkg_dir)
            if status is GitStatus.NOT_DEFAULT_BRANCH:
                log.warning("scan.not_default_branch", import_path=import_path, dir=pkg_dir)
            elif status is not GitStatus.CLEAN:
                record.error = DirtyWorkingTreeError(
                    f"Import {import_path} ({pkg_dir}) has git status {status}", status
                )

            top_level = self._git.top_level(pkg_dir)
            record.import_path = root_import_path(
                import_path, os.path.realpath(pkg_dir), os.path.realpath(top_level)
            )
            state.mark_done(top_level)
        except (VcsCommandError, ValueError) as exc:
            return self._fail(
                record,
                VcsCommandError(f"Failed to read git metadata for {import_path} ({pkg_dir}): {exc}"),
            )

        # A failed query leaves the other fields populated.
        for attr, read in (
            ("git_remote", self._git.remote_url),
            ("sha", self._git.sha),
            ("tags", self._git.tags),
            ("commit_time", self._git.commit_time),
        ):
            try:
                setattr(record, attr, read(pkg_dir))
            except (VcsCommandError, ValueError) as exc:
                if record.error is None:
                    record.error = VcsCommandError(
                        f"Failed to read git metadata for {import_path} ({pkg_dir}): {exc}"
                    )

        if record.error is not None:
            return self._fail(record, record.error)

        self.progress.complete(import_path)
        return record

    def _skip(self, import_path: str, reason: str) -> None:
        self.progress.skip(import_path, reason)
        return None

    def _fail(self, record: DependencyRecord, error: Exception) -> DependencyRecord:
        record.error = error
        log.warning("scan.dependency_error", import_path=record.import_path, error=str(error))
        self.progress.fail(record.import_path, str(error))
        return record
