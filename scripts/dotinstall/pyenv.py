from __future__ import annotations

import re
import shutil

from rich.markup import escape

from .installer import InstallSession, run_step
from .utils import console, run_command

LATEST_PYTHON_RE = re.compile(r"^\s*(3\.\d+\.\d+)\s*$")


def latest_python(listing: str) -> str | None:
    """Last plain CPython 3.X.Y release in ``pyenv install --list`` output."""
    versions = [m.group(1) for m in map(LATEST_PYTHON_RE.match, listing.splitlines()) if m]
    return versions[-1] if versions else None


def configure_python(session: InstallSession) -> None:
    if shutil.which("pyenv") is None:
        console.print("[yellow]WARN[/yellow]    pyenv not available - skipping Python setup")
        return

    try:
        r = run_command(["pyenv", "install", "--list"], capture=True)
    except OSError as exc:
        console.print(f"[red]ERROR[/red]   pyenv: {escape(str(exc))}")
        session.record_failure("Python (pyenv install --list)")
        return
    if r.returncode != 0:
        console.print("[red]ERROR[/red]   Could not list Python versions")
        session.record_failure("Python (pyenv install --list)")
        return

    version = latest_python(r.stdout)
    if version is None:
        console.print("[red]ERROR[/red]   No Python 3 release found in pyenv")
        session.record_failure("Python (pyenv)")
        return

    console.print(f"[cyan]INSTALL[/cyan] Python {version} via pyenv")
    if not run_step(["pyenv", "install", version, "--skip-existing"], session):
        console.print(f"[red]ERROR[/red]   Failed to install Python {version} - continuing")
        session.record_failure(f"Python {version} (pyenv)")
        return

    if not run_step(["pyenv", "global", version], session):
        console.print(f"[red]ERROR[/red]   Failed to set Python {version} as global")
        session.record_failure(f"Python {version} (pyenv global)")
        return

    if not session.dry_run:
        console.print(f"[green]OK[/green]      Python {version} set as global default")
