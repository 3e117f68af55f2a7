"""Tests for CLI commands: go and git are replaced by in-memory fakes."""

from __future__ import annotations

import json
from contextlib import contextmanager
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from conftest import SHA1, SHA1_NEW, SHA2, SHA3
from gosnap.cli import main
from gosnap.models import DependencyRecord, GitStatus, Snapshot
from gosnap.snapshot_io import read_snapshot, write_snapshot
from gosnap.testing import FakeWorkspace


@pytest.fixture
def ws(tmp_path):
    ws = FakeWorkspace(str(tmp_path / "gopath"))
    ws.add_repo("mainpkg", SHA3)
    ws.add_repo("depone", SHA1, tags=["v1.0"])
    ws.add_repo("deptwo", SHA2)
    ws.add_package("depone")
    ws.add_package("deptwo")
    ws.add_package("mainpkg", deps=["depone", "deptwo", "fmt"])
    return ws


@pytest.fixture
def snapshot_file(tmp_path):
    return str(tmp_path / "snapshot.json")


@contextmanager
def _fakes(ws: FakeWorkspace):
    with patch("gosnap.cli.GoCommand", return_value=ws.go), patch(
        "gosnap.cli.GitClient", return_value=ws.git
    ):
        yield


def _invoke(ws: FakeWorkspace, args: list[str]):
    runner = CliRunner()
    with _fakes(ws):
        return runner.invoke(main, args, env={"GOPATH": ws.gopath})


# ── snapshot ──


class TestSnapshotCommand:
    def test_writes_file(self, ws, snapshot_file):
        result = _invoke(ws, ["-f", snapshot_file, "snapshot", "mainpkg"])
        assert result.exit_code == 0, result.output
        snap = read_snapshot(snapshot_file)
        assert [(d.import_path, d.sha, d.tags) for d in snap.deps] == [
            ("depone", SHA1, ["v1.0"]),
            ("deptwo", SHA2, []),
        ]

    def test_json_layout(self, ws, snapshot_file):
        _invoke(ws, ["-f", snapshot_file, "snapshot", "mainpkg"])
        with open(snapshot_file) as f:
            data = json.load(f)
        assert data["Deps"][0]["GitRemote"] == ws.remote("depone")
        assert data["TestDeps"] == []

    def test_dirty_dependency_warns_but_writes(self, ws, snapshot_file):
        ws.git.repos[ws.src("deptwo")].status = GitStatus.UNPUSHED
        result = _invoke(ws, ["-f", snapshot_file, "snapshot", "mainpkg"])
        assert result.exit_code == 0
        assert "[WARN] Import deptwo" in result.output
        assert "has git status Unpushed" in result.output
        assert len(read_snapshot(snapshot_file).deps) == 2

    def test_workspace_not_in_git(self, ws, snapshot_file):
        del ws.git.repos[ws.src("mainpkg")]
        result = _invoke(ws, ["-f", snapshot_file, "snapshot", "mainpkg"])
        assert result.exit_code == 1
        assert "Could not scan mainpkg" in result.output

    def test_tag_sets_forwarded(self, ws, snapshot_file):
        ws.add_repo("linuxonly", SHA1_NEW)
        ws.add_package("linuxonly")
        ws.add_package("mainpkg", deps=["depone", "linuxonly"], tags="linux")
        result = _invoke(
            ws, ["-f", snapshot_file, "snapshot", "--tags", "", "--tags", "linux", "mainpkg"]
        )
        assert result.exit_code == 0, result.output
        paths = [d.import_path for d in read_snapshot(snapshot_file).deps]
        assert paths == ["depone", "deptwo", "linuxonly"]

    def test_packages_required(self, ws):
        result = _invoke(ws, ["snapshot"])
        assert result.exit_code == 2

    def test_verbose_lists_dependencies(self, ws, snapshot_file):
        result = _invoke(ws, ["-v", "-f", snapshot_file, "snapshot", "mainpkg"])
        assert result.exit_code == 0
        assert "depone" in result.output
        assert "deptwo" in result.output


# ── reproduce ──


class TestReproduceCommand:
    @pytest.fixture
    def recorded(self, ws, snapshot_file):
        write_snapshot(
            snapshot_file,
            Snapshot.build(
                [
                    DependencyRecord("depone", ws.remote("depone"), SHA1),
                    DependencyRecord("deptwo", ws.remote("deptwo"), SHA2),
                ]
            ),
        )
        # nothing checked out yet
        for name in ("depone", "deptwo"):
            del ws.git.repos[ws.src(name)]
        return snapshot_file

    def test_clones_into_gopath(self, ws, recorded, tmp_path):
        result = _invoke(ws, ["-f", recorded, "reproduce"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "gopath" / "src" / "depone").is_dir()
        assert (tmp_path / "gopath" / "src" / "deptwo").is_dir()

    def test_existing_directory_fails(self, ws, recorded, tmp_path):
        (tmp_path / "gopath" / "src" / "depone").mkdir(parents=True)
        result = _invoke(ws, ["-f", recorded, "reproduce"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_continue_skips_existing(self, ws, recorded, tmp_path):
        (tmp_path / "gopath" / "src" / "depone").mkdir(parents=True)
        result = _invoke(ws, ["-f", recorded, "reproduce", "--continue"])
        assert result.exit_code == 0, result.output
        assert ws.git.calls == [("clone", ws.src("deptwo"), ws.remote("deptwo"))]

    def test_unusable_gopath_is_reported(self, ws, recorded, tmp_path):
        (tmp_path / "gopath").mkdir()
        (tmp_path / "gopath" / "src").write_text("not a directory")
        result = _invoke(ws, ["-f", recorded, "reproduce"])
        assert result.exit_code == 1
        assert "Failed to reproduce" in result.output
        assert "git clone error" in result.output

    def test_policies_are_exclusive(self, ws, recorded):
        result = _invoke(ws, ["-f", recorded, "reproduce", "--force", "--check"])
        assert result.exit_code == 2
        assert "mutually exclusive" in result.output

    def test_missing_snapshot(self, ws, tmp_path):
        result = _invoke(ws, ["-f", str(tmp_path / "absent.json"), "reproduce"])
        assert result.exit_code == 1
        assert "Could not read snapshot" in result.output

    def test_malformed_snapshot(self, ws, snapshot_file):
        with open(snapshot_file, "w") as f:
            f.write("{not json")
        result = _invoke(ws, ["-f", snapshot_file, "reproduce"])
        assert result.exit_code == 1
        assert "malformed snapshot" in result.output


# ── compare ──


class TestCompareCommand:
    def test_unchanged(self, ws, snapshot_file):
        _invoke(ws, ["-f", snapshot_file, "snapshot", "mainpkg"])
        result = _invoke(ws, ["-f", snapshot_file, "compare", "mainpkg"])
        assert result.exit_code == 0, result.output
        assert "[ OK ] depone" in result.output
        assert "[ OK ] deptwo" in result.output

    def test_drift_exits_nonzero(self, ws, snapshot_file):
        _invoke(ws, ["-f", snapshot_file, "snapshot", "mainpkg"])
        ws.advance("depone", SHA1_NEW, tags=["v2.0"])
        result = _invoke(ws, ["-f", snapshot_file, "compare", "mainpkg"])
        assert result.exit_code == 1
        assert "[FAIL] depone (expected) 111111 [v1.0] vs (actual) aaaaaa [v2.0]" in result.output

    def test_removed_dependency_is_warning(self, ws, snapshot_file):
        _invoke(ws, ["-f", snapshot_file, "snapshot", "mainpkg"])
        ws.go.packages["mainpkg"].deps.remove("deptwo")
        result = _invoke(ws, ["-f", snapshot_file, "compare", "mainpkg"])
        assert result.exit_code == 0
        assert "[WARN] deptwo No longer required" in result.output

    def test_missing_snapshot(self, ws, tmp_path):
        result = _invoke(ws, ["-f", str(tmp_path / "absent.json"), "compare", "mainpkg"])
        assert result.exit_code == 1
        assert "Could not read snapshot" in result.output
