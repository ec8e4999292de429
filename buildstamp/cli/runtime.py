"""Shared plumbing for the CLI commands: logging, config, error reporting."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from buildstamp.config import BuildstampConfig
from buildstamp.core.engine import VersionEngine
from buildstamp.core.errors import BuildstampError, PersistenceFailed
from buildstamp.models.version import Variant

err_console = Console(stderr=True)

T = TypeVar("T")


def configure_logging(level: str) -> None:
    """Send log records to stderr through Rich; stdout carries only the version."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def detect_variant(upstream_file: Path) -> Variant:
    """A checkout carrying an upstream pin file is a derived build."""
    return Variant.DERIVED if upstream_file.exists() else Variant.PRIMARY


def build_config(**options: Any) -> BuildstampConfig:
    """Create the config from CLI options; unset options fall back to env/defaults."""
    overrides = {key: value for key, value in options.items() if value is not None}
    try:
        config = BuildstampConfig(**overrides)
    except ValidationError as exc:
        err_console.print(f"[bold red]Invalid options:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2)
    if "variant" not in config.model_fields_set:
        config = config.model_copy(
            update={"variant": detect_variant(config.upstream_path)}
        )
    return config


def run_engine(config: BuildstampConfig, action: Callable[[VersionEngine], T]) -> T:
    """Run one engine action, turning failures into a non-zero exit."""
    configure_logging(config.log_level)
    try:
        return action(VersionEngine(config))
    except PersistenceFailed as exc:
        err_console.print(f"[bold red]Persistence failed:[/bold red] {escape(str(exc))}")
        if exc.version:
            err_console.print(f"[dim]Computed version (not recorded): {exc.version}[/dim]")
        raise typer.Exit(code=1)
    except BuildstampError as exc:
        err_console.print(f"[bold red]{type(exc).__name__}:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
