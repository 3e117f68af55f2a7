"""Comparator: diff a recorded snapshot against a fresh scan."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from gosnap.engines.scanner import Scanner
from gosnap.models import (
    CompareOutcome,
    CompareReport,
    DependencyRecord,
    Severity,
    Snapshot,
)

log = structlog.get_logger("gosnap.comparator")

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def short_sha(sha: str) -> str:
    return sha[:6]


def _format_tags(tags: Sequence[str]) -> str:
    return "[" + " ".join(tags) + "]"


def describe_mismatch(expected: DependencyRecord, actual: DependencyRecord) -> str:
    """Build the "(expected) ... vs (actual) ..." message for a changed pin."""
    exp = short_sha(expected.sha)
    act = short_sha(actual.sha)

    if expected.tags:
        exp += " " + _format_tags(expected.tags)
    if actual.tags:
        act += " " + _format_tags(actual.tags)

    if expected.commit_time is not None and actual.commit_time is not None:
        exp += f" [{expected.commit_time.strftime(_TIME_FORMAT)}]"
        act += f" [{actual.commit_time.strftime(_TIME_FORMAT)}]"
        if expected.commit_time > actual.commit_time:
            exp += " NEWER"
            act += " OLDER"
        else:
            exp += " OLDER"
            act += " NEWER"

    return f"(expected) {exp} vs (actual) {act}"


def compare_lists(
    expected: Sequence[DependencyRecord],
    actual: Sequence[DependencyRecord],
) -> list[CompareOutcome]:
    """Classify every dependency in either list. Output is unsorted."""
    live = {dep.import_path: dep for dep in actual}
    outcomes: list[CompareOutcome] = []

    for exp in expected:
        act = live.pop(exp.import_path, None)
        if act is None:
            outcomes.append(CompareOutcome(exp.import_path, "No longer required", Severity.WARN))
        elif act.error is not None:
            outcomes.append(CompareOutcome(exp.import_path, str(act.error), Severity.ERROR))
        elif act.sha != exp.sha:
            outcomes.append(
                CompareOutcome(exp.import_path, describe_mismatch(exp, act), Severity.ERROR)
            )
        else:
            outcomes.append(CompareOutcome(exp.import_path, "", Severity.OK))

    # Whatever is left was not recorded at all.
    for import_path in live:
        outcomes.append(CompareOutcome(import_path, "New dependency", Severity.ERROR))
    return outcomes


def compare_snapshots(recorded: Snapshot, live: Snapshot, include_tests: bool = True) -> CompareReport:
    outcomes = compare_lists(recorded.deps, live.deps)
    if include_tests:
        outcomes += compare_lists(recorded.test_deps, live.test_deps)
    outcomes.sort(key=lambda o: o.import_path)
    ok = not any(o.severity is Severity.ERROR for o in outcomes)
    return CompareReport(outcomes=outcomes, ok=ok)


class Comparator:
    """Rescan the workspace and classify drift from a recorded snapshot."""

    def __init__(self, scanner: Scanner) -> None:
        self._scanner = scanner

    def compare(
        self,
        working_dir: str,
        patterns: list[str],
        tag_sets: list[str] | None,
        recorded: Snapshot,
        include_tests: bool = True,
    ) -> CompareReport:
        # Per-dependency scan errors surface as outcome messages below.
        result = self._scanner.scan(working_dir, patterns, tag_sets)
        report = compare_snapshots(recorded, result.snapshot, include_tests)
        log.info(
            "compare.done",
            outcomes=len(report.outcomes),
            ok=report.ok,
            scan_errors=len(result.errors),
        )
        return report
