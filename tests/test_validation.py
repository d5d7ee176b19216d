from __future__ import annotations

import json
import shutil

import pytest

from dotinstall import validation
from dotinstall.utils import repo_root
from dotinstall.validation import (
    DATA_FILES,
    check_hardcoded_paths,
    check_json_formatting,
    validate_checks_schema,
    validate_json_schema,
    validate_links_schema,
    validate_tools_schema,
)


@pytest.fixture
def data_root(tmp_path, monkeypatch):
    """A scratch repository root holding copies of the schemas."""
    scripts = tmp_path / "scripts"
    scripts.mkdir()
    for schema in ("tools.schema.json", "links.schema.json", "checks.schema.json"):
        shutil.copy(repo_root() / "scripts" / schema, scripts / schema)
    monkeypatch.setattr(validation, "repo_root", lambda: tmp_path)
    return scripts


def _write(path, data):
    path.write_text(json.dumps(data, indent=2) + "\n")


def test_shipped_data_files_are_valid():
    assert validate_tools_schema() == []
    assert validate_links_schema() == []
    assert validate_checks_schema() == []


@pytest.mark.parametrize("name", DATA_FILES)
def test_shipped_data_files_are_formatted(name):
    assert check_json_formatting(repo_root() / "scripts" / name)


def test_shipped_zshrc_has_no_hardcoded_home():
    assert check_hardcoded_paths(repo_root() / "dotfiles" / ".zshrc") == []


def test_hardcoded_paths_reported_with_line_numbers(tmp_path):
    rc = tmp_path / ".zshrc"
    rc.write_text('export A="$HOME/bin"\nexport B=/home/alice/bin\nsource /Users/bob/.env\n')
    assert check_hardcoded_paths(rc) == [
        (2, "export B=/home/alice/bin"),
        (3, "source /Users/bob/.env"),
    ]


def test_unformatted_json_detected(tmp_path):
    path = tmp_path / "x.json"
    path.write_text('{"links": []}')
    assert not check_json_formatting(path)


def test_tool_errors(data_root):
    _write(
        data_root / "tools.json",
        {
            "tools": [
                {"label": "a", "kind": "command", "target": "a", "group": "cli", "install": {"snap": "a"}},
                {"label": "a", "kind": "socket", "target": "b", "group": "cli", "install": {}},
                {"label": "c", "kind": "dir", "target": "c", "group": "gui", "install": {"apt": 3}, "alt": "cc"},
                {"label": "d", "kind": "command", "group": "cli", "install": "brew d", "extra": 1},
            ]
        },
    )
    errors = validate_tools_schema()
    assert "tools[0].install: unknown installer 'snap', expected one of ['brew', 'apt', 'npm', 'pipx', 'cargo', 'script']" in errors
    assert "tools[1].kind: must be one of ['command', 'dir', 'file'], got 'socket'" in errors
    assert "tools[1].install: must list at least one installer" in errors
    assert "tools[1].label: duplicate value 'a'" in errors
    assert "tools[2].group: must be one of ['cli', 'rust', 'shell'], got 'gui'" in errors
    assert "tools[2].install.apt: must be a string" in errors
    assert "tools[2].alt: only valid for kind 'command'" in errors
    assert "tools[3]: missing required field: target" in errors
    assert "tools[3]: unexpected field: extra" in errors
    assert "tools[3].install: must be an object" in errors


def test_link_errors(data_root):
    _write(
        data_root / "links.json",
        {
            "links": [
                {"source": "dotfiles/.vimrc", "target": ".vimrc", "description": "vim"},
                {"source": "dotfiles/other", "target": ".vimrc", "description": "dup"},
            ],
            "extra": True,
        },
    )
    errors = validate_links_schema()
    assert "unexpected key: extra" in errors
    assert "links[1].target: duplicate value '.vimrc'" in errors


def test_check_errors(data_root):
    _write(
        data_root / "checks.json",
        {
            "checks": [
                {"label": "a", "kind": "contains", "target": "$HOME/.zshrc"},
                {"label": "b", "kind": "contains", "target": "$HOME/.zshrc", "pattern": "(unclosed"},
                {"label": "c", "kind": "run", "target": "true"},
            ]
        },
    )
    errors = validate_checks_schema()
    assert "checks[0]: kind 'contains' requires a pattern" in errors
    assert any(e.startswith("checks[1].pattern: invalid regex") for e in errors)
    assert not any(e.startswith("checks[2]") for e in errors)


def test_unreadable_files(data_root, tmp_path):
    (data_root / "links.json").write_text("{not json")
    errors = validate_links_schema()
    assert len(errors) == 1
    assert errors[0].startswith("cannot load links.json")

    errors = validate_json_schema(data_root / "links.json", tmp_path / "missing.schema.json", "links")
    assert errors[0].startswith("cannot load")


def test_root_must_be_object(data_root):
    _write(data_root / "checks.json", [1, 2])
    assert validate_checks_schema() == ["root must be an object"]
