"""Interfaces the engines consume: the package graph and version control."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from gosnap.models import GitStatus, PackageInfo


@runtime_checkable
class PackageGraph(Protocol):
    """Answers questions about the go package graph."""

    def list(
        self,
        working_dir: str,
        patterns: list[str],
        tags: str = "",
        tolerant: bool = False,
    ) -> dict[str, PackageInfo]: ...

    def is_std_lib(self, import_path: str) -> bool: ...


@runtime_checkable
class VersionControl(Protocol):
    """Queries and mutates git working copies."""

    def is_repo(self, path: str) -> bool: ...

    def status(self, path: str) -> GitStatus: ...

    def top_level(self, path: str) -> str: ...

    def remote_url(self, path: str) -> str: ...

    def sha(self, path: str) -> str: ...

    def tags(self, path: str) -> list[str]: ...

    def commit_time(self, path: str) -> datetime | None: ...

    def default_branch(self, path: str) -> str: ...

    def clone(self, target: str, remote: str) -> None: ...

    def checkout(self, path: str, ref: str) -> None: ...

    def pull(self, path: str) -> None: ...
