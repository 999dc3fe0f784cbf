"""Shared fixtures for scpignore tests."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List

import pytest


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Create a small project tree to copy.

    Structure::

        src/
        ├── build/
        │   └── out.bin
        ├── emptydir/
        ├── file1.txt
        ├── file2.log
        ├── logger.txt
        └── nonemptydir/
            └── file.txt
    """
    root = tmp_path / "src"
    root.mkdir()
    (root / "build").mkdir()
    (root / "build" / "out.bin").write_bytes(b"\x00")
    (root / "emptydir").mkdir()
    (root / "file1.txt").write_text("one")
    (root / "file2.log").write_text("two")
    (root / "logger.txt").write_text("logger")
    (root / "nonemptydir").mkdir()
    (root / "nonemptydir" / "file.txt").write_text("test")
    return root


class FakeRun:
    """Stand-in for ``subprocess.run`` that records every command."""

    def __init__(self, fail_on: tuple = ()) -> None:
        self.calls: List[List[str]] = []
        self.fail_on = fail_on

    def __call__(self, cmd, **kwargs) -> subprocess.CompletedProcess:
        self.calls.append(list(cmd))
        if any(any(marker in arg for arg in cmd) for marker in self.fail_on):
            return subprocess.CompletedProcess(cmd, 1, stdout="scp: No such file or directory\n")
        return subprocess.CompletedProcess(cmd, 0, stdout="")

    @property
    def scp_calls(self) -> List[List[str]]:
        return [c for c in self.calls if c[0].endswith("scp")]


@pytest.fixture
def fake_run(monkeypatch: pytest.MonkeyPatch) -> FakeRun:
    runner = FakeRun()
    monkeypatch.setattr(subprocess, "run", runner)
    return runner
