"""Shared fixtures.

No test runs a real system command: FakeSystem replaces subprocess.run and
shutil.which as seen by pifleet.lib.command, and a tmp_path directory stands
in for the host root.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest

from pifleet.context import RunContext
from pifleet.lib import command

TIMESTAMP = "20240105030000"

Response = Union[Tuple[int, str, str], Callable[[List[str], Optional[str]], Tuple[int, str, str]]]


@dataclass
class Call:
    argv: List[str]
    input: Optional[str]
    env: Optional[Dict[str, str]]


class FakeSystem:
    def __init__(self) -> None:
        self.calls: List[Call] = []
        self.handlers: Dict[Tuple[str, ...], Response] = {}
        self.installed: set[str] = set()
        self.users: set[str] = set()
        self.on("id", fn=self._id)
        self.on("useradd", fn=self._useradd)

    def on(self, *prefix: str, rc: int = 0, stdout: str = "", stderr: str = "", fn=None) -> None:
        self.handlers[tuple(prefix)] = fn if fn is not None else (rc, stdout, stderr)

    def _id(self, argv: List[str], _input: Optional[str]) -> Tuple[int, str, str]:
        if argv[-1] in self.users:
            return 0, "1000\n", ""
        return 1, "", f"id: '{argv[-1]}': no such user"

    def _useradd(self, argv: List[str], _input: Optional[str]) -> Tuple[int, str, str]:
        if argv[-1] in self.users:
            return 9, "", f"useradd: user '{argv[-1]}' already exists"
        self.users.add(argv[-1])
        return 0, "", ""

    def run(self, argv, input=None, text=True, stdout=None, stderr=None, cwd=None, env=None):
        argv = list(argv)
        self.calls.append(Call(argv=argv, input=input, env=env))
        best: Optional[Tuple[str, ...]] = None
        for prefix in self.handlers:
            if tuple(argv[: len(prefix)]) == prefix and (best is None or len(prefix) > len(best)):
                best = prefix
        rc, out, err = 0, "", ""
        if best is not None:
            handler = self.handlers[best]
            rc, out, err = handler(argv, input) if callable(handler) else handler
        return subprocess.CompletedProcess(argv, rc, out, err)

    def which(self, name: str) -> Optional[str]:
        return f"/usr/bin/{name}" if name in self.installed else None

    def argvs(self, *prefix: str) -> List[List[str]]:
        return [c.argv for c in self.calls if tuple(c.argv[: len(prefix)]) == prefix]

    def inputs(self, *prefix: str) -> List[Optional[str]]:
        return [c.input for c in self.calls if tuple(c.argv[: len(prefix)]) == prefix]


@pytest.fixture
def fake_system(monkeypatch) -> FakeSystem:
    fake = FakeSystem()
    monkeypatch.setattr(command.subprocess, "run", fake.run)
    monkeypatch.setattr(command.shutil, "which", fake.which)
    return fake


@pytest.fixture
def host(tmp_path) -> Path:
    root = tmp_path / "host"
    (root / "etc").mkdir(parents=True)
    return root


@pytest.fixture
def out_dir(tmp_path) -> Path:
    d = tmp_path / "out"
    d.mkdir()
    return d


@pytest.fixture
def make_ctx(host, out_dir):
    def _make(audit_path: Optional[Path] = None, *, dry_run: bool = False) -> RunContext:
        return RunContext(
            output_dir=out_dir,
            host_root=host,
            audit_path=audit_path,
            timestamp=TIMESTAMP,
            dry_run=dry_run,
        )

    return _make


def write(path: Path, contents: str, mode: Optional[int] = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")
    if mode is not None:
        path.chmod(mode)
    return path
