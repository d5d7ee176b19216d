from __future__ import annotations

import typer
from rich.markup import escape

from .installer import InstallSession
from .osdetect import SUPPORTED, OSKind, detect_os, require_apt, require_supported
from .stages import (
    print_plan,
    run_stages,
    show_failure_summary,
    show_next_steps,
    stages_for,
    tool_paths,
)
from .symlinks import (
    ReplaceMode,
    confirm_mode,
    link_items,
    load_link_items,
    print_status,
    resolve_items,
)
from .tools import ToolDescriptor, is_present, load_tools, version_of
from .utils import console, extend_path
from .verify import run_verification

app = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Bootstrap a development environment: install tools, link dotfiles, verify the result.",
)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand:
        return
    print(ctx.get_help())


@app.command()
def install(
    yes: bool = typer.Option(False, "-y", "--yes", help="Answer yes to every stage prompt."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print commands instead of running them."),
) -> None:
    """Install tools and link dotfiles for this OS."""
    os_kind = detect_os()
    require_supported(os_kind)
    if os_kind in (OSKind.linux, OSKind.wsl):
        require_apt()

    extend_path(*tool_paths(os_kind))
    session = InstallSession(os_kind=os_kind, yes=yes, dry_run=dry_run)
    stages = stages_for(os_kind)
    print_plan(stages, session)
    run_stages(stages, session)

    show_failure_summary(session)
    show_next_steps()


@app.command("list")
def list_items() -> None:
    """Show every dotfile link and whether it is in place."""
    print_status(load_link_items())


@app.command()
def status() -> None:
    """Same as list."""
    print_status(load_link_items())


def _tools_for_host() -> list[ToolDescriptor]:
    os_kind = detect_os()
    return load_tools(os_kind if os_kind in SUPPORTED else None)


@app.command()
def tools() -> None:
    """Show the tool table for this OS with install state."""
    os_kind = detect_os()
    for tool in _tools_for_host():
        installers = ", ".join(via for via, _ in tool.directives(os_kind)) or "-"
        if is_present(tool):
            detail = version_of(tool) if tool.kind == "command" else tool.target
            console.print(
                f"[green]FOUND[/green]   {tool.label:<16} [dim]{installers:<18}[/dim] {escape(detail)}"
            )
        else:
            console.print(f"[red]MISSING[/red] {tool.label:<16} [dim]{installers:<18}[/dim]")


@app.command()
def verify() -> None:
    """Run all verification checks on your environment."""
    if run_verification(detect_os()).fail:
        raise typer.Exit(1)


@app.command()
def link(
    targets: list[str] = typer.Argument(
        None, help="Home-relative paths such as .zshrc (see 'list').", show_default=False
    ),
    all_targets: bool = typer.Option(False, "--all", help="Link every dotfile."),
    mode: ReplaceMode = typer.Option(
        ReplaceMode.safe,
        "--mode",
        help="What to do with a file already at the target: skip, rename to .backup, or delete.",
    ),
    yes: bool = typer.Option(False, "-y", "--yes", help="Do not ask before replacing files."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print what would change."),
) -> None:
    """Symlink dotfiles from the repository into $HOME."""
    if not targets and not all_targets:
        typer.echo("No targets specified. Use --all or pass target keys.")
        raise typer.Exit(2)

    items = resolve_items(targets or [], use_all=all_targets)
    if not confirm_mode(mode, dry_run=dry_run, yes=yes):
        typer.echo("Aborted.")
        raise typer.Exit(1)

    if link_items(items, mode=mode, dry_run=dry_run):
        raise typer.Exit(2)
