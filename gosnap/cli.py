"""CLI entry point: go-snap.

Subcommands:
    go-snap snapshot ./...                 # Record every dependency of the workspace
    go-snap reproduce [--force|--continue|--check]
                                           # Clone/checkout the recorded pins into GOPATH
    go-snap compare ./...                  # Report drift from the recorded snapshot
"""

from __future__ import annotations

import os
import sys
from typing import NoReturn

import click
from dotenv import load_dotenv

from gosnap.core.config import Settings, load_settings
from gosnap.core.logging import setup_logging
from gosnap.engines.comparator import Comparator
from gosnap.engines.reproducer import Reproducer
from gosnap.engines.scanner import Scanner
from gosnap.exceptions import SnapError
from gosnap.models import ConflictPolicy
from gosnap.progress import DependencyProgress, ProgressTracker
from gosnap.providers.git import GitClient
from gosnap.providers.gocmd import GoCommand
from gosnap.render import echo_outcomes
from gosnap.snapshot_io import read_snapshot, write_snapshot


class _AppContext:
    def __init__(self, settings: Settings, filename: str, verbose: bool) -> None:
        self.settings = settings
        self.filename = filename
        self.verbose = verbose

    def progress(self) -> ProgressTracker:
        tracker = ProgressTracker()
        if self.verbose:
            tracker.callbacks.append(_echo_completed)
        return tracker

    def git(self) -> GitClient:
        return GitClient(
            git_binary=self.settings.git_binary,
            timeout=self.settings.command_timeout,
        )

    def scanner(self, skip_vendor: bool = False) -> Scanner:
        go = GoCommand(
            self.settings.gopath,
            go_binary=self.settings.go_binary,
            timeout=self.settings.command_timeout,
        )
        return Scanner(go, self.git(), skip_vendor=skip_vendor, progress=self.progress())


def _echo_completed(p: DependencyProgress) -> None:
    if p.status == "completed":
        click.echo(p.import_path, err=True)


def _fail(message: str) -> NoReturn:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _tag_sets(tags: tuple[str, ...]) -> list[str]:
    return list(tags) or [""]


@click.group()
@click.option("-f", "--filename", default=None, help="Snapshot file ('stdin'/'stdout' for streams)")
@click.option("-v", "--verbose", is_flag=True, help="Print each dependency as it is processed")
@click.pass_context
def main(ctx: click.Context, filename: str | None, verbose: bool) -> None:
    """go-snap: Go dependency snapshot management."""
    load_dotenv(override=False)
    try:
        settings = load_settings()
    except SnapError as e:
        _fail(str(e))
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        fmt=settings.log_format,
    )
    ctx.obj = _AppContext(settings, filename or settings.snapshot_file, verbose)


@main.command("snapshot")
@click.argument("packages", nargs=-1, required=True)
@click.option(
    "--tags", "tags", multiple=True,
    help="Build tag set to scan with (repeatable; default: no tags)",
)
@click.option("--skip-vendor", is_flag=True, help="Ignore vendored import paths")
@click.pass_obj
def snapshot_cmd(app: _AppContext, packages: tuple[str, ...], tags: tuple[str, ...], skip_vendor: bool) -> None:
    """Take a snapshot of all currently used dependencies."""
    try:
        result = app.scanner(skip_vendor).scan(os.getcwd(), list(packages), _tag_sets(tags))
    except SnapError as e:
        _fail(f"Could not scan {' '.join(packages)}: {e}")

    for err in result.errors:
        click.secho(f"[WARN] {err}", fg="yellow", err=True)

    try:
        write_snapshot(app.filename, result.snapshot)
    except SnapError as e:
        _fail(f"Could not write snapshot '{app.filename}': {e}")


@main.command("reproduce")
@click.option("-t", "--notests", is_flag=True, help="Skip dependencies used exclusively for tests")
@click.option("--force", is_flag=True, help="Update existing clean working copies to the recorded commit")
@click.option("--continue", "continue_", is_flag=True, help="Leave existing working copies untouched")
@click.option("--check", is_flag=True, help="Verify existing working copies are at the recorded commit")
@click.pass_obj
def reproduce_cmd(app: _AppContext, notests: bool, force: bool, continue_: bool, check: bool) -> None:
    """Reproduce the environment recorded in the snapshot file.

    Existing directories are an error unless one of --force, --continue
    or --check is given.
    """
    chosen = [
        policy
        for policy, flag in (
            (ConflictPolicy.FORCE, force),
            (ConflictPolicy.CONTINUE, continue_),
            (ConflictPolicy.CHECK, check),
        )
        if flag
    ]
    if len(chosen) > 1:
        raise click.UsageError("--force, --continue and --check are mutually exclusive")
    policy = chosen[0] if chosen else ConflictPolicy.FAIL

    try:
        snap = read_snapshot(app.filename)
    except SnapError as e:
        _fail(f"Could not read snapshot '{app.filename}': {e}")

    reproducer = Reproducer(app.git(), progress=app.progress())
    try:
        reproducer.reproduce(
            app.settings.workspace_root, snap, include_tests=not notests, policy=policy
        )
    except SnapError as e:
        _fail(str(e))


@main.command("compare")
@click.argument("packages", nargs=-1, required=True)
@click.option(
    "--tags", "tags", multiple=True,
    help="Build tag set to scan with (repeatable; default: no tags)",
)
@click.option("-t", "--notests", is_flag=True, help="Skip dependencies used exclusively for tests")
@click.option("--skip-vendor", is_flag=True, help="Ignore vendored import paths")
@click.pass_obj
def compare_cmd(
    app: _AppContext,
    packages: tuple[str, ...],
    tags: tuple[str, ...],
    notests: bool,
    skip_vendor: bool,
) -> None:
    """Compare the live workspace against the snapshot file."""
    try:
        snap = read_snapshot(app.filename)
    except SnapError as e:
        _fail(f"Could not read snapshot '{app.filename}': {e}")

    comparator = Comparator(app.scanner(skip_vendor))
    try:
        report = comparator.compare(
            os.getcwd(), list(packages), _tag_sets(tags), snap, include_tests=not notests
        )
    except SnapError as e:
        _fail(f"Could not scan {' '.join(packages)}: {e}")

    echo_outcomes(report.outcomes)
    sys.exit(0 if report.ok else 1)


if __name__ == "__main__":
    main()
