from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from rich.markup import escape

from .checks import load_checks, run_check
from .osdetect import SUPPORTED, OSKind
from .symlinks import LinkStatus, load_link_items, points_into_repo, status_of
from .tools import is_present, load_tools
from .utils import console, repo_root
from .validation import (
    DATA_FILES,
    check_hardcoded_paths,
    check_json_formatting,
    validate_checks_schema,
    validate_links_schema,
    validate_tools_schema,
)

SCHEMA_VALIDATORS: dict[str, Callable[[], list[str]]] = {
    "tools.json": validate_tools_schema,
    "links.json": validate_links_schema,
    "checks.json": validate_checks_schema,
}


@dataclass
class Tally:
    ok: int = 0
    fail: int = 0

    def passed(self, text: str) -> None:
        console.print(f"[green]OK[/green]      {escape(text)}")
        self.ok += 1

    def failed(self, text: str, label: str = "FAIL") -> None:
        console.print(f"[red]{label:<7}[/red] {escape(text)}")
        self.fail += 1

    def record(self, ok: bool, text: str, failure: str | None = None) -> None:
        if ok:
            self.passed(text)
        else:
            self.failed(failure or text)

    @property
    def summary(self) -> str:
        fail = f"[red]{self.fail} fail[/red]" if self.fail else f"{self.fail} fail"
        return f"[green]{self.ok} ok[/green], {fail}"


def check_links(tally: Tally, os_kind: OSKind) -> None:
    for item in load_link_items():
        status, detail = status_of(item)
        if status != LinkStatus.linked:
            tally.failed(f"{item.key} - {status.label}: {detail}")
        else:
            tally.record(points_into_repo(item), item.key, f"{item.key} - points outside the repository")


def check_tools(tally: Tally, os_kind: OSKind) -> None:
    tools = load_tools(os_kind if os_kind in SUPPORTED else None)
    for tool in sorted(tools, key=lambda t: t.label.casefold()):
        line = f"{tool.label} - {tool.kind}: {tool.target}"
        if is_present(tool):
            tally.passed(line)
            continue
        installers = ", ".join(via for via, _ in tool.directives(os_kind))
        tally.failed(f"{line} (install: {installers})" if installers else line, label="MISSING")


def check_environment(tally: Tally, os_kind: OSKind) -> None:
    for check in load_checks():
        passed, detail = run_check(check)
        tally.record(passed, check.label, f"{check.label} - {detail}")


def check_schemas(tally: Tally, os_kind: OSKind) -> None:
    for name, validator in SCHEMA_VALIDATORS.items():
        errors = validator()
        if not errors:
            tally.passed(f"scripts/{name}")
        for err in errors:
            tally.failed(f"scripts/{name}: {err}")


def check_formatting(tally: Tally, os_kind: OSKind) -> None:
    for name in DATA_FILES:
        tally.record(
            check_json_formatting(repo_root() / "scripts" / name),
            f"scripts/{name}",
            f"scripts/{name} not formatted (run: python3 -m json.tool --indent 2)",
        )


def check_home_paths(tally: Tally, os_kind: OSKind) -> None:
    violations = check_hardcoded_paths(repo_root() / "dotfiles" / ".zshrc")
    if not violations:
        tally.passed("No hardcoded paths found")
    for lineno, line in violations:
        tally.failed(f"dotfiles/.zshrc:{lineno}: {line}")


SECTIONS: tuple[tuple[str, Callable[[Tally, OSKind], None]], ...] = (
    ("Symlink health", check_links),
    ("Tools", check_tools),
    ("Environment checks", check_environment),
    ("JSON schema validation", check_schemas),
    ("JSON formatting", check_formatting),
    ("Hardcoded home paths", check_home_paths),
)


def run_verification(os_kind: OSKind) -> Tally:
    tally = Tally()
    for title, section in SECTIONS:
        console.rule(f"[bold]{title}[/bold]", align="left")
        section(tally, os_kind)
        console.print()
    console.rule(f"[bold]Summary: {tally.summary}[/bold]", align="left")
    return tally
