"""``buildstamp get PRODUCT_LINE``: print the current build version."""

from __future__ import annotations

from pathlib import Path

import typer

from buildstamp.cli.runtime import build_config, run_engine
from buildstamp.models.version import Variant


def get_cmd(
    product_line: str = typer.Argument(..., help="Product line whose ledgers to read."),
    patch: int = typer.Option(None, "--patch", "-p", help="Caller-supplied patch digit."),
    variant: Variant = typer.Option(
        None, "--variant", help="Version stream. Detected from the upstream pin file if omitted."
    ),
    upstream_ref: str = typer.Option(
        None, "--upstream-ref", help="Pinned upstream commit (derived builds)."
    ),
    upstream_file: Path = typer.Option(
        None, "--upstream-file", help="File holding the pinned upstream commit."
    ),
    store: str = typer.Option(
        None, "--store", "-s", help="Ledger location: a directory or s3://bucket/prefix."
    ),
    repo: Path = typer.Option(None, "--repo", help="Git checkout to read history from."),
    lookback: int = typer.Option(None, "--lookback", help="Commits of history to inspect."),
    log_level: str = typer.Option(None, "--log-level", help="Logging level for stderr."),
) -> None:
    """Print the version that applies to the current tree. Never writes."""
    config = build_config(
        product_line=product_line,
        patch=patch,
        variant=variant,
        upstream_ref=upstream_ref,
        upstream_file=upstream_file,
        store=store,
        repo_path=repo,
        lookback=lookback,
        log_level=log_level,
    )
    version = run_engine(config, lambda engine: engine.get())
    typer.echo(version)
