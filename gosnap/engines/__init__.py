"""Scan, reproduce and compare engines."""

from gosnap.engines.comparator import Comparator, compare_snapshots
from gosnap.engines.reproducer import Reproducer
from gosnap.engines.scanner import Scanner, ScanState

__all__ = ["Comparator", "Reproducer", "ScanState", "Scanner", "compare_snapshots"]
