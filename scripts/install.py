#!/usr/bin/env -S uv run --script
# /// script
# requires-python = ">=3.10"
# dependencies = ["typer>=0.21.0", "rich>=13.0"]
# ///
"""Fresh-machine entry point, same as ``dotfiles install``."""
from __future__ import annotations

import typer

from dotinstall.cli import install

app = typer.Typer(add_completion=False, context_settings={"help_option_names": ["-h", "--help"]})
app.command()(install)


if __name__ == "__main__":
    app()
