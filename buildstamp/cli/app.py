"""Main Typer application: imports and registers all CLI commands.

Entry point: ``buildstamp`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import typer

from buildstamp.cli.commands.bump_cmd import bump_cmd
from buildstamp.cli.commands.get_cmd import get_cmd

app = typer.Typer(
    name="buildstamp",
    help="buildstamp: reconcile commit history with the build ledger and mint build versions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(name="get", help="Print the current build version.")(get_cmd)
app.command(name="bump", help="Mint and record a new build version.")(bump_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
