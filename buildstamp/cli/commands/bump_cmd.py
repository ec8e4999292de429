"""``buildstamp bump PRODUCT_LINE``: mint and record a new build version.

Open-source builds get a new build number unless HEAD already has one;
derived builds always get the next suffix.  With ``--dry-run`` (or
``--debug``, which also turns on debug logging) the full computation runs
and the resulting version is printed, but no ledger is written.
"""

from __future__ import annotations

from pathlib import Path

import typer

from buildstamp.cli.runtime import build_config, err_console, run_engine
from buildstamp.models.version import BumpOutcome, Variant


def bump_cmd(
    product_line: str = typer.Argument(..., help="Product line whose ledgers to update."),
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
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Compute everything but write nothing."
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Dry run with debug logging."
    ),
    log_level: str = typer.Option(None, "--log-level", help="Logging level for stderr."),
) -> None:
    """Mint a new version if needed, record it, and print it."""
    if debug:
        dry_run = True
        log_level = "DEBUG"

    config = build_config(
        product_line=product_line,
        patch=patch,
        variant=variant,
        upstream_ref=upstream_ref,
        upstream_file=upstream_file,
        store=store,
        repo_path=repo,
        lookback=lookback,
        dry_run=True if dry_run else None,
        log_level=log_level,
    )
    result = run_engine(config, lambda engine: engine.bump())

    if config.dry_run and result.outcome != BumpOutcome.ALREADY_BUILT:
        rows = len(result.patch_rows) + len(result.suffix_rows)
        err_console.print(
            f"[yellow]Dry run:[/yellow] would record {rows} ledger row(s) for {result.version}"
        )
    typer.echo(result.version)
