"""Tests for environment-driven settings."""

import os
from pathlib import Path

import pytest

from gosnap.core.config import DEFAULT_SNAPSHOT_FILE, load_settings
from gosnap.exceptions import ConfigurationError


class TestLoadSettings:
    def test_defaults(self):
        s = load_settings({})
        assert s.gopath == [str(Path.home() / "go")]
        assert s.go_binary == "go"
        assert s.git_binary == "git"
        assert s.command_timeout is None
        assert s.snapshot_file == DEFAULT_SNAPSHOT_FILE
        assert s.log_level == "WARNING"
        assert s.log_format == "console"

    def test_gopath_list(self):
        s = load_settings({"GOPATH": os.pathsep.join(["/first", "", "/second"])})
        assert s.gopath == ["/first", "/second"]
        assert s.workspace_root == Path("/first")

    def test_overrides(self):
        s = load_settings({
            "GOSNAP_GO": "/opt/go/bin/go",
            "GOSNAP_GIT": "/usr/local/bin/git",
            "GOSNAP_COMMAND_TIMEOUT": "30",
            "GOSNAP_SNAPSHOT_FILE": "deps.json",
            "GOSNAP_LOG_LEVEL": "debug",
            "GOSNAP_LOG_FORMAT": "JSON",
        })
        assert s.go_binary == "/opt/go/bin/go"
        assert s.git_binary == "/usr/local/bin/git"
        assert s.command_timeout == 30.0
        assert s.snapshot_file == "deps.json"
        assert s.log_level == "DEBUG"
        assert s.log_format == "json"

    def test_blank_timeout_means_none(self):
        assert load_settings({"GOSNAP_COMMAND_TIMEOUT": " "}).command_timeout is None

    @pytest.mark.parametrize("value", ["soon", "0", "-5"])
    def test_bad_timeout(self, value):
        with pytest.raises(ConfigurationError, match="GOSNAP_COMMAND_TIMEOUT"):
            load_settings({"GOSNAP_COMMAND_TIMEOUT": value})
