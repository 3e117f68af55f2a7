"""Per-dependency progress tracking for scan and reproduce runs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class DependencyProgress:
    import_path: str
    status: str = "completed"  # "completed" | "failed" | "skipped"
    detail: str = ""


class ProgressTracker:
    """Record what happened to each dependency and notify listeners."""

    def __init__(self) -> None:
        self.events: list[DependencyProgress] = []
        self.callbacks: list[Callable[[DependencyProgress], None]] = []

    def complete(self, import_path: str, detail: str = "") -> None:
        self._record(DependencyProgress(import_path, "completed", detail))

    def fail(self, import_path: str, error: str) -> None:
        self._record(DependencyProgress(import_path, "failed", error))

    def skip(self, import_path: str, reason: str) -> None:
        self._record(DependencyProgress(import_path, "skipped", reason))

    def completed(self) -> list[str]:
        return [e.import_path for e in self.events if e.status == "completed"]

    def get_summary(self) -> dict[str, Any]:
        counts = {"completed": 0, "failed": 0, "skipped": 0}
        for e in self.events:
            counts[e.status] += 1
        return {
            **counts,
            "events": [
                {"import_path": e.import_path, "status": e.status, "detail": e.detail}
                for e in self.events
            ],
        }

    def _record(self, p: DependencyProgress) -> None:
        self.events.append(p)
        for cb in self.callbacks:
            try:
                cb(p)
            except Exception:
                logger.debug("Progress callback error for %s", p.import_path, exc_info=True)
