"""Package graph provider backed by ``go list -json``."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from typing import Any

import structlog

from gosnap.exceptions import GraphQueryError
from gosnap.models import PackageInfo
from gosnap.providers import _exec

log = structlog.get_logger("gosnap.gocmd")

# cgo's pseudo-package never shows up in ``go list std``
_PSEUDO_STD = {"C", "unsafe"}


def parse_list_output(output: str) -> dict[str, PackageInfo]:
    """Decode the stream of concatenated JSON objects ``go list -json`` prints."""
    decoder = json.JSONDecoder()
    packages: dict[str, PackageInfo] = {}
    idx = 0
    end = len(output)
    while True:
        while idx < end and output[idx].isspace():
            idx += 1
        if idx >= end:
            break
        try:
            obj, idx = decoder.raw_decode(output, idx)
        except json.JSONDecodeError as exc:
            raise GraphQueryError(f"could not decode go list output: {exc}") from exc
        pkg = _package_from_json(obj)
        packages[pkg.import_path] = pkg
    return packages


def _package_from_json(obj: dict[str, Any]) -> PackageInfo:
    error = obj.get("Error")
    return PackageInfo(
        import_path=obj.get("ImportPath", ""),
        dir=obj.get("Dir", ""),
        deps=list(obj.get("Deps") or []),
        test_imports=list(obj.get("TestImports") or []),
        xtest_imports=list(obj.get("XTestImports") or []),
        error=error.get("Err") if isinstance(error, dict) else None,
    )


class GoCommand:
    """Run ``go list`` against a GOPATH workspace."""

    def __init__(
        self,
        gopath: list[str],
        *,
        go_binary: str = "go",
        timeout: float | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._go = go_binary
        self._timeout = timeout
        base = dict(os.environ if environ is None else environ)
        base["GOPATH"] = os.pathsep.join(gopath)
        base.setdefault("GO111MODULE", "off")
        self._env = base
        self._std: set[str] | None = None

    def list(
        self,
        working_dir: str,
        patterns: list[str],
        tags: str = "",
        tolerant: bool = False,
    ) -> dict[str, PackageInfo]:
        """List *patterns* and return packages keyed by import path.

        With *tolerant*, broken packages are dropped instead of failing the
        whole query.
        """
        cmd = [self._go, "list", "-json"]
        if tolerant:
            cmd.append("-e")
        if tags:
            cmd += ["-tags", tags]
        cmd += list(patterns)

        output = _exec.run(
            cmd,
            cwd=working_dir,
            env=self._env,
            timeout=self._timeout,
            error_cls=GraphQueryError,
        )
        packages = parse_list_output(output)
        if tolerant:
            broken = [p for p, info in packages.items() if info.error]
            for p in broken:
                log.debug("gocmd.skip_broken", import_path=p, error=packages[p].error)
                del packages[p]
        return packages

    def is_std_lib(self, import_path: str) -> bool:
        if import_path in _PSEUDO_STD:
            return True
        return import_path in self._std_packages()

    def _std_packages(self) -> set[str]:
        if self._std is None:
            output = _exec.run(
                [self._go, "list", "std"],
                env=self._env,
                timeout=self._timeout,
                error_cls=GraphQueryError,
            )
            self._std = {line.strip() for line in output.splitlines() if line.strip()}
        return self._std
