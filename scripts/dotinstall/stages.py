from __future__ import annotations

import os
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

import typer
from rich.markup import escape

from .installer import (
    InstallSession,
    apt_get,
    ensure_command_aliases,
    install_tools,
    run_step,
)
from .osdetect import OSKind
from .pyenv import configure_python
from .symlinks import ReplaceMode, link_items, load_link_items
from .tools import ToolDescriptor, is_present, load_tools
from .utils import console, noninteractive_env

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"

BASE_PACKAGES = (
    "build-essential",
    "curl",
    "wget",
    "ca-certificates",
    "gnupg",
    "lsb-release",
    "software-properties-common",
    "git",
    "unzip",
    "xz-utils",
    "pkg-config",
)

# Headers pyenv needs to compile CPython.
PYTHON_BUILD_PACKAGES = (
    "make",
    "libssl-dev",
    "zlib1g-dev",
    "libbz2-dev",
    "libreadline-dev",
    "libsqlite3-dev",
    "llvm",
    "libncursesw5-dev",
    "tk-dev",
    "libxml2-dev",
    "libxmlsec1-dev",
    "libffi-dev",
    "liblzma-dev",
)


class StageError(Exception):
    """A stage gave up; the run logs it and moves on to the next stage."""


@dataclass(frozen=True)
class Stage:
    title: str
    prompt: str
    action: Callable[[InstallSession], None]
    default_yes: bool = False


def tool_paths(os_kind: OSKind) -> list[Path]:
    home = Path.home()
    paths = [home / ".local" / "bin", home / ".cargo" / "bin", home / ".pyenv" / "bin"]
    if os_kind == OSKind.macos:
        paths.append(Path("/opt/homebrew/bin"))
    return paths


def auto_confirm(session: InstallSession) -> bool:
    return session.yes or noninteractive_env()


def confirm_stage(stage: Stage, session: InstallSession) -> bool:
    if auto_confirm(session):
        console.print(f"[blue]INFO[/blue]    Auto-proceeding: {stage.prompt}")
        return True
    return typer.confirm(f"Do you want to {stage.prompt}?", default=stage.default_yes)


# ── stage actions ───────────────────────────────────────────────────────


def install_homebrew(session: InstallSession) -> None:
    if shutil.which("brew") is None:
        console.print("[cyan]INSTALL[/cyan] Homebrew package manager")
        script = f'NONINTERACTIVE=1 /bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_URL})"'
        if not run_step(["sh", "-c", script], session):
            console.print("[red]ERROR[/red]   Failed to install Homebrew - cannot continue")
            raise typer.Exit(1)
        if not session.dry_run:
            console.print("[green]OK[/green]      Homebrew installed successfully")
        return

    console.print("[green]FOUND[/green]   Homebrew is already installed")
    if auto_confirm(session) or os.environ.get("HOMEBREW_NO_AUTO_UPDATE"):
        console.print("[blue]INFO[/blue]    Skipping brew update (CI/auto-update disabled)")
        return
    if not run_step(["brew", "update"], session):
        console.print("[yellow]WARN[/yellow]    Failed to update Homebrew - continuing")


def apt_update_and_basics(session: InstallSession) -> None:
    if not run_step(apt_get("update", "-y"), session):
        console.print("[yellow]WARN[/yellow]    apt-get update failed - continuing")
    if not run_step(apt_get("upgrade", "-y"), session):
        console.print("[yellow]WARN[/yellow]    apt-get upgrade failed - continuing")
    packages = [*BASE_PACKAGES, *PYTHON_BUILD_PACKAGES]
    if not run_step(apt_get("install", "-y", *packages), session):
        raise StageError("base packages (apt)")


def _install_group(group: str, session: InstallSession) -> list[ToolDescriptor]:
    tools = [t for t in load_tools(session.os_kind) if t.group == group]
    install_tools(tools, session)
    return tools


def install_cli_tools(session: InstallSession) -> None:
    tools = _install_group("cli", session)
    if session.os_kind in (OSKind.linux, OSKind.wsl):
        ensure_command_aliases(tools, session)


def install_rust(session: InstallSession) -> None:
    _install_group("rust", session)


def cargo_fallbacks(session: InstallSession) -> None:
    if shutil.which("cargo") is None:
        console.print("[yellow]WARN[/yellow]    cargo not available - skipping cargo fallbacks")
        return
    missing = [
        t
        for t in load_tools(session.os_kind)
        if any(via == "cargo" for via, _ in t.install) and not is_present(t)
    ]
    if not missing:
        console.print("[green]OK[/green]      No cargo fallbacks needed")
        return
    install_tools(missing, session, only="cargo")


def install_shell_framework(session: InstallSession) -> None:
    _install_group("shell", session)


def setup_dotfiles(session: InstallSession) -> None:
    errors = link_items(load_link_items(), mode=ReplaceMode.backup, dry_run=session.dry_run)
    for key in errors:
        session.record_failure(f"link {key}")


# ── stage tables ────────────────────────────────────────────────────────


def stages_for(os_kind: OSKind) -> list[Stage]:
    common_head = [
        Stage("CLI tools", "install command-line development tools", install_cli_tools),
        Stage("Rust", "install Rust programming language", install_rust),
    ]
    common_tail = [
        Stage("Oh My Zsh", "install and configure Oh My Zsh shell framework", install_shell_framework),
        Stage("Dotfiles", "set up dotfiles and modular shell utilities", setup_dotfiles, default_yes=True),
        Stage("Python", "configure Python environment with pyenv", configure_python),
    ]
    if os_kind == OSKind.macos:
        return [
            Stage("Homebrew", "install/update Homebrew package manager", install_homebrew, default_yes=True),
            *common_head,
            *common_tail,
        ]
    if os_kind in (OSKind.linux, OSKind.wsl):
        return [
            Stage("Base packages", "update apt and base packages", apt_update_and_basics, default_yes=True),
            *common_head,
            Stage("Cargo fallbacks", "fallback install for tools via cargo (eza, git-delta)", cargo_fallbacks),
            *common_tail,
        ]
    return []


def print_plan(stages: Sequence[Stage], session: InstallSession) -> None:
    console.rule("[bold]Installation stages[/bold]", align="left")
    for n, stage in enumerate(stages, start=1):
        console.print(f"  {n}. {stage.title} - {escape(stage.prompt)}")
    if not auto_confirm(session):
        console.print("[blue]INFO[/blue]    Tip: use -y or --yes to skip all prompts")
    console.print()


def run_stages(stages: Sequence[Stage], session: InstallSession) -> None:
    for stage in stages:
        console.rule(f"[bold]{stage.title}[/bold]", align="left")
        if not confirm_stage(stage, session):
            console.print(f"[yellow]SKIP[/yellow]    {stage.prompt}")
            console.print()
            continue
        try:
            stage.action(session)
        except StageError as exc:
            console.print(f"[red]ERROR[/red]   Stage '{stage.title}' failed: {escape(str(exc))} - continuing")
            session.record_failure(str(exc))
        console.print()


# ── wrap-up ─────────────────────────────────────────────────────────────


def show_failure_summary(session: InstallSession) -> None:
    if session.installed:
        names = ", ".join(session.installed)
        console.print(f"[green]OK[/green]      Installed {len(session.installed)} tool(s): {escape(names)}")
    if not session.failures:
        console.print("[green]OK[/green]      All installations completed successfully")
        return
    console.rule("[bold red]Installation failures[/bold red]", align="left")
    for item in session.failures:
        console.print(f"[red]FAIL[/red]    {escape(item)}")
    console.print(
        "[blue]INFO[/blue]    The remaining tools were installed normally;"
        " retry the failed ones manually."
    )


def show_next_steps() -> None:
    console.print()
    console.rule("[bold]Next steps[/bold]", align="left")
    console.print("  - Restart your terminal or run: source ~/.zshrc")
    for command, name in (("code", "VS Code"), ("cursor", "Cursor")):
        if shutil.which(command):
            console.print(f"  - Sign in to {name} to sync settings and extensions")
