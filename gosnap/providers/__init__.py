"""Providers wrapping the external go and git tools."""

from gosnap.providers.base import PackageGraph, VersionControl
from gosnap.providers.git import GitClient
from gosnap.providers.gocmd import GoCommand

__all__ = ["GitClient", "GoCommand", "PackageGraph", "VersionControl"]
