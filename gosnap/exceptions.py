"""Custom exceptions for go-snap."""

from __future__ import annotations


class SnapError(Exception):
    """Base exception for all go-snap errors."""


class ConfigurationError(SnapError):
    """Raised when a snapshot file cannot be read or is malformed."""


class CommandError(SnapError):
    """Raised when an external command exits non-zero."""

    def __init__(self, message: str, *, stderr: str = "") -> None:
        self.stderr = stderr
        super().__init__(message)


class CommandTimeoutError(SnapError):
    """Raised when an external command exceeds the configured timeout."""


class GraphQueryError(CommandError):
    """Raised when ``go list`` cannot resolve a package or pattern."""


class VcsCommandError(CommandError):
    """Raised when a git command fails."""


class CloneError(VcsCommandError):
    """Raised when a repository cannot be cloned."""


class NotVersionControlledError(SnapError):
    """Raised when a directory that must be a git working copy is not one."""


class DirtyWorkingTreeError(SnapError):
    """Raised when a working tree is not clean where cleanliness is required."""

    def __init__(self, message: str, status: object) -> None:
        self.status = status
        super().__init__(message)


class AlreadyExistsError(SnapError):
    """Raised when reproducing into a path that already exists under the fail policy."""


class RevisionMismatchError(SnapError):
    """Raised when a working copy is not at the recorded commit."""

    def __init__(self, message: str, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class DependencyScanError(SnapError):
    """Aggregate of the per-dependency errors collected during one scan."""

    def __init__(self, errors: list[Exception]):
        self.errors = errors
        super().__init__(", ".join(str(e) for e in errors))
