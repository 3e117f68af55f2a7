"""Runtime settings, read from environment variables.

Supported variables:
    GOPATH                  - workspace roots (default: ~/go)
    GOSNAP_GO               - go binary (default: go)
    GOSNAP_GIT              - git binary (default: git)
    GOSNAP_COMMAND_TIMEOUT  - per-command timeout in seconds (default: none)
    GOSNAP_SNAPSHOT_FILE    - default snapshot filename (default: snapshot.json)
    GOSNAP_LOG_LEVEL        - log level (default: WARNING)
    GOSNAP_LOG_FORMAT       - console | json (default: console)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from gosnap.exceptions import ConfigurationError

DEFAULT_SNAPSHOT_FILE = "snapshot.json"


@dataclass
class Settings:
    gopath: list[str] = field(default_factory=list)
    go_binary: str = "go"
    git_binary: str = "git"
    command_timeout: float | None = None
    snapshot_file: str = DEFAULT_SNAPSHOT_FILE
    log_level: str = "WARNING"
    log_format: str = "console"

    @property
    def workspace_root(self) -> Path:
        """First GOPATH entry, where reproduce materializes sources."""
        return Path(self.gopath[0])


def _parse_gopath(value: str | None) -> list[str]:
    if value:
        entries = [p for p in value.split(os.pathsep) if p]
        if entries:
            return entries
    # Same default as the go tool itself.
    return [str(Path.home() / "go")]


def _parse_timeout(value: str | None) -> float | None:
    if value is None or value.strip() == "":
        return None
    try:
        timeout = float(value)
    except ValueError:
        raise ConfigurationError(
            f"GOSNAP_COMMAND_TIMEOUT must be a number of seconds, got {value!r}"
        ) from None
    if timeout <= 0:
        raise ConfigurationError("GOSNAP_COMMAND_TIMEOUT must be positive")
    return timeout


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        gopath=_parse_gopath(env.get("GOPATH")),
        go_binary=env.get("GOSNAP_GO", "go"),
        git_binary=env.get("GOSNAP_GIT", "git"),
        command_timeout=_parse_timeout(env.get("GOSNAP_COMMAND_TIMEOUT")),
        snapshot_file=env.get("GOSNAP_SNAPSHOT_FILE", DEFAULT_SNAPSHOT_FILE),
        log_level=env.get("GOSNAP_LOG_LEVEL", "WARNING").upper(),
        log_format=env.get("GOSNAP_LOG_FORMAT", "console").lower(),
    )
