"""In-memory test doubles for the go and git providers.

Usage::

    from gosnap.testing import FakeWorkspace

    ws = FakeWorkspace("/gopath")
    ws.add_repo("depone", sha="a" * 40, tags=["v1.0"])
    ws.add_package("mainpkg", deps=["fmt", "depone"])
    scanner = Scanner(ws.go, ws.git)
    result = scanner.scan("/gopath", ["mainpkg"])
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path, PurePosixPath

from gosnap.exceptions import CloneError, GraphQueryError, VcsCommandError
from gosnap.models import GitStatus, PackageInfo

DEFAULT_STD = frozenset({"fmt", "os", "strings", "testing", "errors", "io", "sort", "C"})


@dataclass
class FakeRepo:
    remote: str
    sha: str
    tags: list[str] = field(default_factory=list)
    status: GitStatus = GitStatus.CLEAN
    commit_time: datetime | None = None
    branch: str = "master"
    # every commit the repo knows about; checkout only accepts these
    known_shas: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        self.known_shas.add(self.sha)


class FakeGit:
    """Version control provider over a dict of ``top level -> FakeRepo``."""

    def __init__(
        self,
        repos: dict[str, FakeRepo] | None = None,
        remotes: dict[str, FakeRepo] | None = None,
    ) -> None:
        self.repos: dict[str, FakeRepo] = dict(repos or {})
        self.remotes: dict[str, FakeRepo] = dict(remotes or {})
        self.calls: list[tuple[str, ...]] = []

    def _owner(self, path: str) -> str | None:
        parts = PurePosixPath(path).parts
        best: str | None = None
        for top in self.repos:
            top_parts = PurePosixPath(top).parts
            if parts[: len(top_parts)] == top_parts:
                if best is None or len(top_parts) > len(PurePosixPath(best).parts):
                    best = top
        return best

    def _repo(self, path: str) -> FakeRepo:
        top = self._owner(path)
        if top is None:
            raise VcsCommandError(f"fatal: not a git repository: {path}")
        return self.repos[top]

    def is_repo(self, path: str) -> bool:
        return self._owner(path) is not None

    def status(self, path: str) -> GitStatus:
        return self._repo(path).status

    def top_level(self, path: str) -> str:
        top = self._owner(path)
        if top is None:
            raise VcsCommandError(f"fatal: not a git repository: {path}")
        return top

    def remote_url(self, path: str) -> str:
        return self._repo(path).remote

    def sha(self, path: str) -> str:
        return self._repo(path).sha

    def tags(self, path: str) -> list[str]:
        return list(self._repo(path).tags)

    def commit_time(self, path: str) -> datetime | None:
        return self._repo(path).commit_time

    def default_branch(self, path: str) -> str:
        return "master"

    def clone(self, target: str, remote: str) -> None:
        self.calls.append(("clone", str(target), remote))
        origin = self.remotes.get(remote)
        if origin is None:
            raise CloneError(f"fatal: repository '{remote}' does not exist")
        try:
            Path(target).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CloneError(f"could not create {target}: {exc}") from exc
        self.repos[str(target)] = copy.deepcopy(origin)

    def checkout(self, path: str, ref: str) -> None:
        self.calls.append(("checkout", str(path), ref))
        repo = self._repo(path)
        if ref == repo.branch:
            origin = self.remotes.get(repo.remote)
            if origin is not None:
                repo.sha = origin.sha
            return
        if ref not in repo.known_shas:
            raise VcsCommandError(f"error: pathspec '{ref}' did not match any file(s) known to git")
        repo.sha = ref
        repo.tags = []

    def pull(self, path: str) -> None:
        self.calls.append(("pull", str(path)))
        repo = self._repo(path)
        origin = self.remotes.get(repo.remote)
        if origin is None:
            raise VcsCommandError(f"fatal: '{repo.remote}' does not appear to be a git repository")
        repo.known_shas |= origin.known_shas
        repo.sha = origin.sha
        repo.tags = list(origin.tags)


class FakeGoCommand:
    """Package graph provider over a dict of ``import path -> PackageInfo``.

    *patterns* expands selectors such as ``./...``; *tagged* overlays extra
    packages visible only under a given tag set; *broken* packages fail to list.
    """

    def __init__(
        self,
        packages: dict[str, PackageInfo] | None = None,
        *,
        std: frozenset[str] | set[str] = DEFAULT_STD,
        patterns: dict[str, list[str]] | None = None,
        tagged: dict[str, dict[str, PackageInfo]] | None = None,
        broken: set[str] | None = None,
    ) -> None:
        self.packages: dict[str, PackageInfo] = dict(packages or {})
        self.std = set(std)
        self.patterns: dict[str, list[str]] = dict(patterns or {})
        self.tagged: dict[str, dict[str, PackageInfo]] = dict(tagged or {})
        self.broken: set[str] = set(broken or ())
        self.calls: list[tuple[str, tuple[str, ...], str]] = []

    def list(
        self,
        working_dir: str,
        patterns: list[str],
        tags: str = "",
        tolerant: bool = False,
    ) -> dict[str, PackageInfo]:
        self.calls.append((working_dir, tuple(patterns), tags))
        view = {**self.packages, **self.tagged.get(tags, {})}
        result: dict[str, PackageInfo] = {}
        for pattern in patterns:
            for import_path in self.patterns.get(pattern, [pattern]):
                pkg = view.get(import_path)
                if pkg is None or import_path in self.broken:
                    if tolerant:
                        continue
                    raise GraphQueryError(f"can't load package: package {import_path}: not found")
                result[import_path] = pkg
        return result

    def is_std_lib(self, import_path: str) -> bool:
        return import_path in self.std


class FakeWorkspace:
    """A GOPATH layout wired to a FakeGoCommand and a FakeGit."""

    def __init__(self, gopath: str = "/gopath", remote_base: str = "/remotes") -> None:
        self.gopath = gopath
        self.remote_base = remote_base
        self.go = FakeGoCommand()
        self.git = FakeGit()

    def src(self, import_path: str) -> str:
        return f"{self.gopath}/src/{import_path}"

    def remote(self, name: str) -> str:
        return f"{self.remote_base}/{name}"

    def add_repo(
        self,
        import_path: str,
        sha: str,
        *,
        tags: list[str] | None = None,
        status: GitStatus = GitStatus.CLEAN,
        commit_time: datetime | None = None,
        checked_out: bool = True,
    ) -> FakeRepo:
        """Register a remote and, with *checked_out*, a working copy in src/."""
        repo = FakeRepo(
            remote=self.remote(import_path),
            sha=sha,
            tags=list(tags or []),
            status=status,
            commit_time=commit_time,
        )
        self.git.remotes[repo.remote] = copy.deepcopy(repo)
        self.git.remotes[repo.remote].status = GitStatus.CLEAN
        if checked_out:
            self.git.repos[self.src(import_path)] = repo
        return repo

    def add_package(
        self,
        import_path: str,
        *,
        deps: list[str] | None = None,
        test_imports: list[str] | None = None,
        xtest_imports: list[str] | None = None,
        tags: str | None = None,
    ) -> PackageInfo:
        pkg = PackageInfo(
            import_path=import_path,
            dir=self.src(import_path),
            deps=list(deps or []),
            test_imports=list(test_imports or []),
            xtest_imports=list(xtest_imports or []),
        )
        if tags is None:
            self.go.packages[import_path] = pkg
        else:
            self.go.tagged.setdefault(tags, {})[import_path] = pkg
        return pkg

    def advance(self, import_path: str, sha: str, *, tags: list[str] | None = None) -> None:
        """Commit and push a new revision in the checked-out repo."""
        repo = self.git.repos[self.src(import_path)]
        repo.sha = sha
        repo.tags = list(tags or [])
        repo.known_shas.add(sha)
        origin = self.git.remotes[repo.remote]
        origin.sha = sha
        origin.tags = list(tags or [])
        origin.known_shas.add(sha)
