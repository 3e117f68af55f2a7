"""Shared pytest fixtures for go-snap tests."""

import pytest

from gosnap.testing import FakeWorkspace

SHA1 = "1111111111111111111111111111111111111111"
SHA2 = "2222222222222222222222222222222222222222"
SHA3 = "3333333333333333333333333333333333333333"
SHA1_NEW = "aaaaaa1111111111111111111111111111111111"


@pytest.fixture
def workspace():
    """/gopath with an empty fake go + git."""
    return FakeWorkspace("/gopath")


@pytest.fixture
def two_deps(workspace):
    """mainpkg importing depone (tagged v1.0) and deptwo."""
    workspace.add_repo("mainpkg", SHA3)
    workspace.add_repo("depone", SHA1, tags=["v1.0"])
    workspace.add_repo("deptwo", SHA2)
    workspace.add_package("depone")
    workspace.add_package("deptwo")
    workspace.add_package("mainpkg", deps=["depone", "deptwo", "fmt"])
    return workspace
