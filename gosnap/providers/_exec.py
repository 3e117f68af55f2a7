"""Subprocess helper shared by the go and git providers."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping

import structlog

from gosnap.exceptions import CommandError, CommandTimeoutError

log = structlog.get_logger("gosnap.exec")


def run(
    cmd: list[str],
    *,
    cwd: str | os.PathLike[str] | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
    error_cls: type[CommandError] = CommandError,
) -> str:
    """Run *cmd* and return its stdout.

    Raises *error_cls* on non-zero exit and ``CommandTimeoutError`` when
    *timeout* elapses.
    """
    log.debug("exec.run", cmd=cmd, cwd=str(cwd) if cwd else None)
    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise CommandTimeoutError(
            f"{' '.join(cmd)} timed out after {timeout}s"
        ) from None
    except FileNotFoundError as exc:
        raise error_cls(f"{cmd[0]} not found: {exc}") from exc

    if proc.returncode != 0:
        stderr = proc.stderr.strip()
        raise error_cls(
            f"{' '.join(cmd)} failed (exit {proc.returncode}): {stderr}",
            stderr=stderr,
        )
    return proc.stdout
