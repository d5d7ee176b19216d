from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import typer
from rich.markup import escape

from .utils import console, display_path, repo_root

BACKUP_SUFFIX = ".backup"
KEY_WIDTH = 36


class ReplaceMode(str, Enum):
    safe = "safe"
    backup = "backup"
    force = "force"


class LinkStatus(str, Enum):
    linked = "linked"
    absent = "absent"
    exists = "exists"
    missing_source = "missing-source"
    elsewhere = "linked-elsewhere"
    broken = "broken-link"
    directory = "target-dir"

    @property
    def label(self) -> str:
        return {
            "missing-source": "MISSING",
            "linked-elsewhere": "OTHER",
            "broken-link": "BROKEN",
            "target-dir": "DIR",
        }.get(self.value, self.value.upper())


@dataclass(frozen=True)
class LinkItem:
    """One dotfile in the repository and the place it is linked to under $HOME."""

    key: str
    description: str
    source: Path
    target: Path

    @property
    def summary(self) -> str:
        return f"{display_path(self.source)} -> {display_path(self.target)}"

    @property
    def occupied(self) -> bool:
        return self.target.exists() or self.target.is_symlink()


def load_link_items() -> list[LinkItem]:
    root = repo_root()
    with open(root / "scripts" / "links.json", encoding="utf-8") as f:
        entries = json.load(f)["links"]
    home = Path.home()
    return [
        LinkItem(
            key=entry["target"],
            description=entry["description"],
            source=root / entry["source"],
            target=home / entry["target"],
        )
        for entry in entries
    ]


def resolve_items(keys: Iterable[str], use_all: bool) -> list[LinkItem]:
    items = load_link_items()
    if use_all:
        return items

    by_key = {item.key: item for item in items}
    wanted = list(dict.fromkeys(key.strip() for key in keys))
    unknown = [key for key in wanted if key not in by_key]
    if unknown:
        raise typer.BadParameter(
            f"Unknown target(s): {', '.join(unknown)}. Use 'list' to see options."
        )
    return [by_key[key] for key in wanted]


def status_of(item: LinkItem) -> tuple[LinkStatus, str]:
    if not (item.source.exists() or item.source.is_symlink()):
        return LinkStatus.missing_source, "source missing"

    target = item.target
    if target.is_symlink():
        points_to = target.resolve(strict=False)
        detail = f"points to {display_path(points_to)}"
        if points_to == item.source.resolve(strict=False):
            return LinkStatus.linked, detail
        if target.exists():
            return LinkStatus.elsewhere, detail
        return LinkStatus.broken, detail

    if target.is_dir():
        return LinkStatus.directory, "target is a directory"
    if target.exists():
        return LinkStatus.exists, "target exists"
    return LinkStatus.absent, "target missing"


def points_into_repo(item: LinkItem) -> bool:
    return item.target.resolve(strict=False).is_relative_to(repo_root().resolve())


def print_status(items: Iterable[LinkItem]) -> None:
    for item in items:
        status, detail = status_of(item)
        typer.echo(f"{status.label:<7} {item.key:<{KEY_WIDTH}} {item.summary} ({detail})")


def backup_path_for(target: Path) -> Path:
    return target.with_name(target.name + BACKUP_SUFFIX)


def _dryrun(text: str) -> None:
    console.print(f"[cyan]DRYRUN[/cyan]  {escape(text)}")


def _clear_target(item: LinkItem, mode: ReplaceMode, dry_run: bool) -> None:
    target = item.target
    if mode == ReplaceMode.force:
        if dry_run:
            _dryrun(f"rm {display_path(target)}")
        else:
            target.unlink()
        return

    backup = backup_path_for(target)
    if dry_run:
        _dryrun(f"mv {display_path(target)} {display_path(backup)}")
        return
    # replace() overwrites a backup left by an earlier run
    target.replace(backup)
    console.print(f"[yellow]BACKUP[/yellow]  {item.key:<{KEY_WIDTH}} {escape(display_path(backup))}")


def _make_link(item: LinkItem, dry_run: bool) -> None:
    parent = item.target.parent
    if dry_run:
        if not parent.exists():
            _dryrun(f"mkdir -p {display_path(parent)}")
        _dryrun(f"ln -s {display_path(item.source)} {display_path(item.target)}")
        return
    parent.mkdir(parents=True, exist_ok=True)
    item.target.symlink_to(item.source)
    console.print(f"[green]LINKED[/green]  {item.key:<{KEY_WIDTH}} {escape(item.summary)}")


def link_items(items: Iterable[LinkItem], mode: ReplaceMode, dry_run: bool) -> list[str]:
    """Link each item into $HOME and return the keys that could not be linked."""
    failed: list[str] = []
    for item in items:
        status, detail = status_of(item)
        if status == LinkStatus.linked:
            console.print(f"[blue]SKIP[/blue]    {item.key:<{KEY_WIDTH}} already linked")
            continue
        if status in (LinkStatus.missing_source, LinkStatus.directory):
            path = item.source if status == LinkStatus.missing_source else item.target
            console.print(
                f"[red]ERROR[/red]   {item.key:<{KEY_WIDTH}} {detail}: {escape(display_path(path))}"
            )
            failed.append(item.key)
            continue
        if item.occupied and mode == ReplaceMode.safe:
            console.print(
                f"[yellow]SKIP[/yellow]    {item.key:<{KEY_WIDTH}} target exists (use --mode backup/force)"
            )
            continue
        try:
            if item.occupied:
                _clear_target(item, mode, dry_run)
            _make_link(item, dry_run)
        except OSError as exc:
            console.print(f"[red]ERROR[/red]   {item.key:<{KEY_WIDTH}} {escape(str(exc))}")
            failed.append(item.key)
    return failed


def confirm_mode(mode: ReplaceMode, dry_run: bool, yes: bool) -> bool:
    if mode == ReplaceMode.safe or dry_run or yes:
        return True
    return typer.confirm(
        f"Mode '{mode.value}' will modify existing targets. Continue?",
        default=False,
    )
