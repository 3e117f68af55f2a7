"""go-snap: pin, reproduce and verify the git revisions a Go workspace builds against."""

__version__ = "0.1.0"

from gosnap.engines.comparator import Comparator
from gosnap.engines.reproducer import Reproducer
from gosnap.engines.scanner import Scanner
from gosnap.models import (
    CompareOutcome,
    CompareReport,
    ConflictPolicy,
    DependencyRecord,
    GitStatus,
    ScanResult,
    Severity,
    Snapshot,
)
from gosnap.snapshot_io import read_snapshot, write_snapshot

__all__ = [
    "CompareOutcome",
    "CompareReport",
    "Comparator",
    "ConflictPolicy",
    "DependencyRecord",
    "GitStatus",
    "Reproducer",
    "ScanResult",
    "Scanner",
    "Severity",
    "Snapshot",
    "read_snapshot",
    "write_snapshot",
]
