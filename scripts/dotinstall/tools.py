from __future__ import annotations

import json
import os
import shlex
import shutil
from collections.abc import Callable
from dataclasses import dataclass

from .osdetect import SUPPORTED, OSKind
from .utils import expand_home, repo_root, run_command

KIND_PREDICATE: dict[str, Callable[[str], object]] = {
    "command": shutil.which,
    "dir": os.path.isdir,
    "file": os.path.isfile,
}

INSTALLERS = ("brew", "apt", "npm", "pipx", "cargo", "script")

# Installers not listed here are usable on every supported OS.
INSTALLER_OS: dict[str, frozenset[OSKind]] = {
    "brew": frozenset({OSKind.macos}),
    "apt": frozenset({OSKind.linux, OSKind.wsl}),
}

VERSION_FLAGS = ("--version", "-version", "version")


@dataclass(frozen=True)
class ToolDescriptor:
    label: str
    kind: str
    target: str
    group: str
    install: tuple[tuple[str, str], ...]
    alt: str | None = None
    version: str | None = None

    def directives(self, os_kind: OSKind) -> list[tuple[str, str]]:
        return [
            (via, spec)
            for via, spec in self.install
            if os_kind in INSTALLER_OS.get(via, SUPPORTED)
        ]

    def applies_to(self, os_kind: OSKind) -> bool:
        return bool(self.directives(os_kind))


def load_tools(os_kind: OSKind | None = None) -> list[ToolDescriptor]:
    tools_file = repo_root() / "scripts" / "tools.json"
    with open(tools_file, encoding="utf-8") as f:
        data = json.load(f)
    tools = [
        ToolDescriptor(
            label=item["label"],
            kind=item["kind"],
            target=expand_home(item["target"]),
            group=item["group"],
            install=tuple(item["install"].items()),
            alt=item.get("alt"),
            version=item.get("version"),
        )
        for item in data["tools"]
    ]
    if os_kind is None:
        return tools
    return [tool for tool in tools if tool.applies_to(os_kind)]


def resolve_command(tool: ToolDescriptor) -> str | None:
    if tool.kind != "command":
        return None
    found = shutil.which(tool.target)
    if found is None and tool.alt:
        found = shutil.which(tool.alt)
    return found


def is_present(tool: ToolDescriptor) -> bool:
    if tool.kind == "command":
        return resolve_command(tool) is not None
    predicate = KIND_PREDICATE[tool.kind]
    return bool(predicate(tool.target))


def _first_line(args: list[str]) -> str | None:
    try:
        r = run_command(args, capture=True)
    except OSError:
        return None
    out = (r.stdout or r.stderr or "").strip()
    if r.returncode != 0 or not out:
        return None
    return out.splitlines()[0].strip()


def version_of(tool: ToolDescriptor) -> str:
    """First line of the tool's version output, or ``version unknown``."""
    command = resolve_command(tool)
    if command is None:
        return "version unknown"

    if tool.version:
        args = shlex.split(tool.version)
        if args and args[0] in (tool.target, tool.alt):
            args[0] = command
        return _first_line(args) or "version unknown"

    for flag in VERSION_FLAGS:
        line = _first_line([command, flag])
        if line:
            return line
    return "version unknown"
