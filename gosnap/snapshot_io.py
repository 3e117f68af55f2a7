"""Read and write snapshot files (JSON).

The file format is additive: missing fields read as empty values, ``null``
tag lists read as empty, and Go's zero time reads as "no commit time".
``stdin`` / ``stdout`` as a filename select the standard streams.
"""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gosnap.exceptions import ConfigurationError
from gosnap.models import DependencyRecord, Snapshot

STDIN = "stdin"
STDOUT = "stdout"


class DependencyEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    import_path: str = Field("", alias="ImportPath")
    git_remote: str = Field("", alias="GitRemote")
    sha: str = Field("", alias="SHA")
    tags: list[str] = Field(default_factory=list, alias="Tags")
    commit_time: datetime | None = Field(None, alias="CommitTime")

    @field_validator("import_path", "git_remote", "sha", mode="before")
    @classmethod
    def _null_string(cls, v):
        return "" if v is None else v

    @field_validator("tags", mode="before")
    @classmethod
    def _null_tags(cls, v):
        return [] if v is None else v

    @field_validator("commit_time", mode="after")
    @classmethod
    def _zero_time(cls, v: datetime | None) -> datetime | None:
        if v is None or v.year <= 1:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def from_record(cls, record: DependencyRecord) -> DependencyEntry:
        return cls(
            import_path=record.import_path,
            git_remote=record.git_remote,
            sha=record.sha,
            tags=list(record.tags),
            commit_time=record.commit_time,
        )

    def to_record(self) -> DependencyRecord:
        return DependencyRecord(
            import_path=self.import_path,
            git_remote=self.git_remote,
            sha=self.sha,
            tags=list(self.tags),
            commit_time=self.commit_time,
        )


class SnapshotFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    deps: list[DependencyEntry] = Field(default_factory=list, alias="Deps")
    test_deps: list[DependencyEntry] = Field(default_factory=list, alias="TestDeps")

    @field_validator("deps", "test_deps", mode="before")
    @classmethod
    def _null_list(cls, v):
        return [] if v is None else v


def dumps(snapshot: Snapshot) -> str:
    doc = SnapshotFile(
        deps=[DependencyEntry.from_record(r) for r in snapshot.deps],
        test_deps=[DependencyEntry.from_record(r) for r in snapshot.test_deps],
    )
    data = doc.model_dump(mode="json", by_alias=True)
    for entry in data["Deps"] + data["TestDeps"]:
        if entry["CommitTime"] is None:
            del entry["CommitTime"]
    return json.dumps(data, indent=2) + "\n"


def loads(text: str) -> Snapshot:
    try:
        doc = SnapshotFile.model_validate_json(text)
    except ValidationError as exc:
        raise ConfigurationError(f"malformed snapshot: {exc}") from exc
    # Files written by hand may be unsorted; Snapshot.build restores the order.
    return Snapshot.build(
        [e.to_record() for e in doc.deps],
        [e.to_record() for e in doc.test_deps],
    )


def read_snapshot(filename: str) -> Snapshot:
    try:
        if filename == STDIN:
            text = sys.stdin.read()
        else:
            text = Path(filename).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"could not read {filename}: {exc}") from exc
    return loads(text)


def write_snapshot(filename: str, snapshot: Snapshot) -> None:
    text = dumps(snapshot)
    if filename == STDOUT:
        sys.stdout.write(text)
        sys.stdout.flush()
        return
    try:
        Path(filename).write_text(text, encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"could not write {filename}: {exc}") from exc
