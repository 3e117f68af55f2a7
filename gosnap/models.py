"""Data models for snapshots, scan results and compare outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from gosnap.exceptions import DependencyScanError


class GitStatus(Enum):
    """Working tree state as reported by the version control provider."""

    CLEAN = "Clean"
    UNCOMMITTED = "Uncommitted"
    UNTRACKED = "Untracked"
    UNPUSHED = "Unpushed"
    NOT_DEFAULT_BRANCH = "NotDefaultBranch"

    def __str__(self) -> str:
        return self.value


class ConflictPolicy(Enum):
    """What reproduce does when a dependency's target directory already exists."""

    FAIL = "fail"
    FORCE = "force"
    CONTINUE = "continue"
    CHECK = "check"


class Severity(Enum):
    OK = "ok"
    WARN = "warn"
    ERROR = "error"


@dataclass
class PackageInfo:
    """One package as reported by ``go list -json``."""

    import_path: str
    dir: str = ""
    deps: list[str] = field(default_factory=list)
    test_imports: list[str] = field(default_factory=list)
    xtest_imports: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass
class DependencyRecord:
    """A single pinned dependency, keyed by its repository-root import path."""

    import_path: str
    git_remote: str = ""
    sha: str = ""
    tags: list[str] = field(default_factory=list)
    commit_time: datetime | None = None
    # Never persisted; set when the scanner could not get clean data.
    error: Exception | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Snapshot:
    """Recorded pins for build and test-only dependencies.

    Both lists are sorted by import path and disjoint. The tuples are fixed
    once built; the records in them are ordinary dataclasses and are not.
    """

    deps: tuple[DependencyRecord, ...] = ()
    test_deps: tuple[DependencyRecord, ...] = ()

    @classmethod
    def build(
        cls,
        deps: list[DependencyRecord],
        test_deps: list[DependencyRecord] | None = None,
    ) -> Snapshot:
        return cls(
            deps=tuple(sorted(deps, key=lambda d: d.import_path)),
            test_deps=tuple(sorted(test_deps or [], key=lambda d: d.import_path)),
        )

    def all_records(self) -> list[DependencyRecord]:
        return list(self.deps) + list(self.test_deps)


@dataclass
class ScanResult:
    """Snapshot produced by one scan plus any per-dependency errors."""

    snapshot: Snapshot
    errors: list[Exception] = field(default_factory=list)

    @property
    def error(self) -> DependencyScanError | None:
        if not self.errors:
            return None
        return DependencyScanError(self.errors)


@dataclass
class CompareOutcome:
    import_path: str
    message: str
    severity: Severity


@dataclass
class CompareReport:
    """Classified outcomes of one compare run, sorted by import path."""

    outcomes: list[CompareOutcome] = field(default_factory=list)
    ok: bool = True
