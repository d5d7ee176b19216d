from __future__ import annotations

import shlex
import shutil
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rich.markup import escape

from .osdetect import OSKind
from .tools import ToolDescriptor, is_present, version_of
from .utils import console, display_path, run_command, sudo

INSTALLER_BINARY = {
    "brew": "brew",
    "apt": "apt-get",
    "npm": "npm",
    "pipx": "pipx",
    "cargo": "cargo",
    "script": "sh",
}


class Outcome(str, Enum):
    found = "found"
    installed = "installed"
    failed = "failed"
    planned = "planned"


@dataclass
class InstallSession:
    """State shared by every stage of one install run."""

    os_kind: OSKind
    yes: bool = False
    dry_run: bool = False
    failures: list[str] = field(default_factory=list)
    installed: list[str] = field(default_factory=list)

    def record_failure(self, item: str) -> None:
        self.failures.append(item)

    def discard_failures(self, label: str) -> None:
        self.failures = [f for f in self.failures if not f.startswith(f"{label} (")]


def apt_get(*args: str) -> list[str]:
    return sudo(["env", "DEBIAN_FRONTEND=noninteractive", "apt-get", *args])


def install_command(via: str, spec: str, os_kind: OSKind) -> list[str]:
    if via == "brew":
        return ["brew", "install", spec]
    if via == "apt":
        return apt_get("install", "-y", spec)
    if via == "npm":
        args = ["npm", "install", "-g", spec]
        return args if os_kind == OSKind.macos else sudo(args)
    if via in ("pipx", "cargo"):
        return [via, "install", spec]
    if via == "script":
        return ["sh", "-c", spec]
    raise ValueError(f"unknown installer: {via}")


def installer_available(via: str) -> bool:
    return shutil.which(INSTALLER_BINARY[via]) is not None


def run_step(args: list[str], session: InstallSession) -> bool:
    """Run one external command; dry runs only print it."""
    if session.dry_run:
        console.print(f"[cyan]DRYRUN[/cyan]  {escape(shlex.join(args))}")
        return True
    try:
        return run_command(args).returncode == 0
    except OSError as exc:
        console.print(f"[red]ERROR[/red]   {escape(args[0])}: {escape(str(exc))}")
        return False


def describe_present(tool: ToolDescriptor) -> str:
    if tool.kind == "command":
        return version_of(tool)
    return display_path(Path(tool.target))


def install_tool(
    tool: ToolDescriptor,
    session: InstallSession,
    only: str | None = None,
) -> Outcome:
    if is_present(tool):
        console.print(
            f"[green]FOUND[/green]   {tool.label} is already installed ({escape(describe_present(tool))})"
        )
        return Outcome.found

    usable = [
        (via, spec)
        for via, spec in tool.directives(session.os_kind)
        if (only is None or via == only) and installer_available(via)
    ]
    if not usable:
        if session.dry_run:
            # an earlier stage may still provide the installer (e.g. Homebrew)
            console.print(f"[yellow]WARN[/yellow]    {tool.label}: no installer available yet")
            return Outcome.planned
        console.print(f"[yellow]WARN[/yellow]    {tool.label}: no installer available")
        session.record_failure(f"{tool.label} (no installer available)")
        return Outcome.failed

    if session.dry_run:
        via, spec = usable[0]
        run_step(install_command(via, spec, session.os_kind), session)
        return Outcome.planned

    last_via = usable[-1][0]
    for via, spec in usable:
        console.print(f"[cyan]INSTALL[/cyan] {tool.label} via {via}")
        if run_step(install_command(via, spec, session.os_kind), session):
            console.print(f"[green]OK[/green]      {tool.label} installed successfully")
            session.installed.append(tool.label)
            session.discard_failures(tool.label)
            return Outcome.installed
        console.print(f"[red]FAIL[/red]    {tool.label} via {via}")

    console.print(f"[red]ERROR[/red]   Failed to install {tool.label} - continuing")
    session.record_failure(f"{tool.label} ({last_via})")
    return Outcome.failed


def install_tools(
    tools: Iterable[ToolDescriptor],
    session: InstallSession,
    only: str | None = None,
) -> dict[str, Outcome]:
    return {tool.label: install_tool(tool, session, only=only) for tool in tools}


def ensure_command_aliases(tools: Iterable[ToolDescriptor], session: InstallSession) -> None:
    """Expose Debian's renamed binaries (batcat, fdfind, ...) under their usual names."""
    for tool in tools:
        if not tool.alt or shutil.which(tool.target):
            continue
        alt_path = shutil.which(tool.alt)
        if alt_path is None:
            continue
        console.print(f"[blue]INFO[/blue]    Creating symlink for {tool.target} -> {tool.alt}")
        link = f"/usr/local/bin/{tool.target}"
        if not run_step(sudo(["ln", "-sf", alt_path, link]), session):
            console.print(f"[yellow]WARN[/yellow]    Could not link {link}")
