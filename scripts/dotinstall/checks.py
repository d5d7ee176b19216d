from __future__ import annotations

import json
import os
import re
import shlex
from dataclasses import dataclass
from pathlib import Path

from .utils import display_path, expand_home, repo_root, run_command


@dataclass(frozen=True)
class EnvCheck:
    label: str
    kind: str
    target: str
    pattern: str | None = None


def load_checks() -> list[EnvCheck]:
    checks_file = repo_root() / "scripts" / "checks.json"
    with open(checks_file, encoding="utf-8") as f:
        data = json.load(f)
    return [
        EnvCheck(
            label=item["label"],
            kind=item["kind"],
            target=expand_home(item["target"]),
            pattern=item.get("pattern"),
        )
        for item in data["checks"]
    ]


def _contains(path: str, pattern: str) -> bool:
    try:
        text = Path(path).read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return False
    return re.search(pattern, text, re.MULTILINE) is not None


def _runs(command: str) -> bool:
    try:
        return run_command(shlex.split(command), capture=True).returncode == 0
    except OSError:
        return False


def run_check(check: EnvCheck) -> tuple[bool, str]:
    """Evaluate one check; returns (passed, detail for the report line)."""
    if check.kind == "dir":
        return os.path.isdir(check.target), f"dir: {display_path(Path(check.target))}"
    if check.kind == "file":
        return os.path.isfile(check.target), f"file: {display_path(Path(check.target))}"
    if check.kind == "contains":
        detail = f"{display_path(Path(check.target))} =~ {check.pattern}"
        return _contains(check.target, check.pattern or ""), detail
    if check.kind == "run":
        return _runs(check.target), f"run: {check.target}"
    return False, f"unknown kind: {check.kind}"
