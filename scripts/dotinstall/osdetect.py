from __future__ import annotations

import platform
import shutil
from enum import Enum

import typer

from .utils import console


class OSKind(str, Enum):
    macos = "macos"
    linux = "linux"
    wsl = "wsl"
    windows = "windows"
    unknown = "unknown"


SUPPORTED = frozenset({OSKind.macos, OSKind.linux, OSKind.wsl})

PACKAGE_MANAGER = {
    OSKind.macos: "brew",
    OSKind.linux: "apt",
    OSKind.wsl: "apt",
}

DISPLAY_NAME = {
    OSKind.macos: "macOS",
    OSKind.linux: "Linux",
    OSKind.wsl: "WSL",
    OSKind.windows: "Windows",
    OSKind.unknown: "unknown OS",
}


def detect_os(system: str | None = None, release: str | None = None) -> OSKind:
    """Classify the host the way ``uname -s`` would be matched in a shell."""
    system = platform.system() if system is None else system
    if system.startswith("Darwin"):
        return OSKind.macos
    if system.startswith("Linux"):
        release = platform.release() if release is None else release
        if "microsoft" in release.lower():
            return OSKind.wsl
        return OSKind.linux
    if system.startswith(("CYGWIN", "MINGW", "MSYS", "Windows")):
        return OSKind.windows
    return OSKind.unknown


def require_supported(os_kind: OSKind) -> None:
    if os_kind in SUPPORTED:
        console.print(f"[blue]INFO[/blue]    Detected {DISPLAY_NAME[os_kind]} - supported")
        return
    if os_kind == OSKind.windows:
        console.print("[red]ERROR[/red]   Windows support is not yet implemented")
    else:
        console.print("[red]ERROR[/red]   Unknown or unsupported operating system")
    console.print("[blue]INFO[/blue]    Supported systems: macOS, Linux (apt-based), WSL")
    raise typer.Exit(1)


def require_apt() -> None:
    if shutil.which("apt") is None:
        console.print(
            "[red]ERROR[/red]   This installer currently supports apt-based distros (Debian/Ubuntu)."
        )
        raise typer.Exit(1)
