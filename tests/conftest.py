from __future__ import annotations

import subprocess
from collections.abc import Sequence
from pathlib import Path

import pytest


def make_executable(directory: Path, name: str, body: str = "exit 0") -> Path:
    path = directory / name
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(0o755)
    return path


class CommandRecorder:
    """Stand-in for ``run_command``: records argv and fakes exit codes and output."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.failing: set[str] = set()
        self.outputs: dict[str, str] = {}

    def __call__(self, args: Sequence[str], *, capture: bool = False) -> subprocess.CompletedProcess[str]:
        argv = list(args)
        self.calls.append(argv)
        line = " ".join(argv)
        code = 1 if any(fragment in line for fragment in self.failing) else 0
        stdout = next((out for key, out in self.outputs.items() if key in line), "")
        return subprocess.CompletedProcess(argv, code, stdout=stdout, stderr="")

    def ran(self, fragment: str) -> bool:
        return any(fragment in " ".join(call) for call in self.calls)


@pytest.fixture(autouse=True)
def plain_environment(monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")
    for name in ("CI", "NONINTERACTIVE", "HOMEBREW_NO_AUTO_UPDATE", "FORCE_COLOR"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def home(tmp_path, monkeypatch) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    monkeypatch.setenv("HOME", str(path))
    return path


@pytest.fixture
def bin_dir(tmp_path, monkeypatch) -> Path:
    path = tmp_path / "bin"
    path.mkdir()
    monkeypatch.setenv("PATH", str(path))
    return path


@pytest.fixture
def commands(monkeypatch) -> CommandRecorder:
    recorder = CommandRecorder()
    for module in ("installer", "tools", "pyenv", "checks"):
        monkeypatch.setattr(f"dotinstall.{module}.run_command", recorder)
    return recorder


@pytest.fixture
def as_root(monkeypatch):
    monkeypatch.setattr("dotinstall.utils.is_root", lambda: True)


@pytest.fixture
def as_user(monkeypatch):
    monkeypatch.setattr("dotinstall.utils.is_root", lambda: False)
