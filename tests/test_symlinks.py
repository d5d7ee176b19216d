from __future__ import annotations

import os

import pytest
import typer

from dotinstall.symlinks import (
    LinkItem,
    ReplaceMode,
    link_items,
    load_link_items,
    points_into_repo,
    resolve_items,
    status_of,
)
from dotinstall.utils import repo_root


def test_load_link_items_uses_home(home):
    items = load_link_items()
    keys = [item.key for item in items]
    assert ".zshrc" in keys
    assert ".config/shell-utils/shell-utils.sh" in keys
    for item in items:
        assert item.target.is_relative_to(home)
        assert item.source.is_relative_to(repo_root())
        assert item.source.exists()


def test_link_all_points_into_repo(home):
    items = load_link_items()
    assert link_items(items, mode=ReplaceMode.backup, dry_run=False) == []
    for item in items:
        assert item.target.is_symlink()
        assert item.target.exists()
        assert points_into_repo(item)
        assert status_of(item)[0] == "linked"
    assert (home / ".config" / "shell-utils").is_dir()


def test_existing_file_is_backed_up_once(home, capsys):
    (home / ".vimrc").write_text("set mine\n")
    items = resolve_items([".vimrc"], use_all=False)

    link_items(items, mode=ReplaceMode.backup, dry_run=False)
    backup = home / ".vimrc.backup"
    assert backup.read_text() == "set mine\n"
    assert "BACKUP" in capsys.readouterr().out

    link_items(items, mode=ReplaceMode.backup, dry_run=False)
    assert "already linked" in capsys.readouterr().out
    assert backup.read_text() == "set mine\n"
    assert sorted(p.name for p in home.iterdir()) == [".vimrc", ".vimrc.backup"]


def test_backup_replaces_stale_backup(home):
    (home / ".tmux.conf.backup").write_text("old\n")
    (home / ".tmux.conf").write_text("newer\n")
    link_items(resolve_items([".tmux.conf"], use_all=False), mode=ReplaceMode.backup, dry_run=False)
    assert (home / ".tmux.conf.backup").read_text() == "newer\n"
    assert (home / ".tmux.conf").is_symlink()


def test_safe_mode_leaves_existing_file(home, capsys):
    (home / ".zshrc").write_text("# mine\n")
    errors = link_items(resolve_items([".zshrc"], use_all=False), mode=ReplaceMode.safe, dry_run=False)
    assert errors == []
    assert not (home / ".zshrc").is_symlink()
    assert "target exists" in capsys.readouterr().out


def test_force_mode_replaces_without_backup(home):
    (home / ".gitconfig").write_text("[user]\n")
    link_items(resolve_items([".gitconfig"], use_all=False), mode=ReplaceMode.force, dry_run=False)
    assert (home / ".gitconfig").is_symlink()
    assert not (home / ".gitconfig.backup").exists()


def test_dry_run_touches_nothing(home, capsys):
    (home / ".vimrc").write_text("x\n")
    link_items(load_link_items(), mode=ReplaceMode.backup, dry_run=True)
    assert sorted(p.name for p in home.iterdir()) == [".vimrc"]
    out = capsys.readouterr().out
    assert "DRYRUN  mv" in out
    assert "DRYRUN  ln -s" in out


def test_missing_source_and_directory_target_are_errors(home, tmp_path):
    (home / "dir-target").mkdir()
    items = [
        LinkItem("ghost", "missing", tmp_path / "nope", home / "ghost"),
        LinkItem("dir-target", "dir", repo_root() / "dotfiles" / ".vimrc", home / "dir-target"),
    ]
    assert link_items(items, mode=ReplaceMode.backup, dry_run=False) == ["ghost", "dir-target"]
    assert not (home / "ghost").exists()


def test_filesystem_errors_are_reported_per_item(home, capsys):
    (home / ".config").write_text("")
    failed = link_items(load_link_items(), mode=ReplaceMode.backup, dry_run=False)
    assert failed == [".config/shell-utils/shell-utils.sh", ".config/shell-utils/aliases.sh"]
    assert (home / ".zshrc").is_symlink()
    assert (home / ".config").is_file()
    assert "ERROR   .config/shell-utils/aliases.sh" in capsys.readouterr().out


def test_status_classification(home, tmp_path):
    source = tmp_path / "src"
    source.write_text("x")
    elsewhere = tmp_path / "elsewhere"
    elsewhere.write_text("y")
    item = LinkItem("k", "d", source, home / "k")

    assert status_of(item)[0] == "absent"
    (home / "k").write_text("z")
    assert status_of(item)[0] == "exists"
    (home / "k").unlink()
    os.symlink(elsewhere, home / "k")
    assert status_of(item)[0] == "linked-elsewhere"
    (home / "k").unlink()
    os.symlink(tmp_path / "gone", home / "k")
    assert status_of(item)[0] == "broken-link"
    (home / "k").unlink()
    os.symlink(source, home / "k")
    assert status_of(item)[0] == "linked"
    # linked, but the source lives outside the repository
    assert not points_into_repo(item)


def test_unknown_keys_rejected(home):
    with pytest.raises(typer.BadParameter):
        resolve_items([".vimrc", ".nope"], use_all=False)


def test_resolve_items_dedupes(home):
    items = resolve_items([".vimrc", " .vimrc "], use_all=False)
    assert [item.key for item in items] == [".vimrc"]
