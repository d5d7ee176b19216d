from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console

console = Console()


def repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def display_path(path: Path) -> str:
    home = Path.home()
    try:
        return f"~/{path.relative_to(home)}"
    except ValueError:
        return str(path)


def expand_home(value: str) -> str:
    return value.replace("$HOME", str(Path.home()))


def run_command(args: Sequence[str], *, capture: bool = False) -> subprocess.CompletedProcess[str]:
    return subprocess.run(list(args), capture_output=capture, text=True)


def is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def sudo(args: Sequence[str]) -> list[str]:
    if is_root():
        return list(args)
    return ["sudo", *args]


def noninteractive_env() -> bool:
    return bool(os.environ.get("CI") or os.environ.get("NONINTERACTIVE"))


def extend_path(*dirs: Path) -> None:
    """Prepend ``dirs`` to PATH for this process, skipping ones already present."""
    current = os.environ.get("PATH", "").split(os.pathsep)
    missing = [str(d) for d in dirs if str(d) not in current]
    if missing:
        os.environ["PATH"] = os.pathsep.join([*missing, *filter(None, current)])
