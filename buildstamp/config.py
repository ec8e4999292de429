"""Runtime configuration: env-driven, passed explicitly to the engine.

Settings come from keyword arguments (the CLI), ``BUILDSTAMP_*`` environment
variables, or a ``.env`` file, in that order of precedence.

Examples
--------
Point a CI job at a local ledger directory in dry-run mode::

    export BUILDSTAMP_STORE=/srv/build-ledgers
    export BUILDSTAMP_DRY_RUN=true
"""

from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from buildstamp.models.version import Variant

DEFAULT_STORE = "s3://rstudio-ide-build/version"


def normalize_product_line(value: str) -> str:
    """Spaces become dashes and everything is lowercased ("Desktop Pro" -> "desktop-pro")."""
    return value.strip().replace(" ", "-").lower()


class BuildstampConfig(BaseSettings):
    """Options for one get/bump invocation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="BUILDSTAMP_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    variant: Variant = Variant.PRIMARY
    product_line: str = "default"
    dry_run: bool = False

    # Caller-supplied patch digit; the engine adds the build number after it
    patch: int | None = None
    # Upstream commit a derived build is pinned to (falls back to upstream_file)
    upstream_ref: str | None = None

    # History
    lookback: int = 100
    repo_path: Path = Path(".")
    upstream_file: Path = Path("upstream/VERSION")

    # Ledger store: a local directory or an s3:// URL
    store: str = DEFAULT_STORE
    patch_ledger_name: str = "oss-patch.csv"
    suffix_ledger_name: str = "pro-suffix.csv"

    log_level: str = "INFO"

    @field_validator("product_line")
    @classmethod
    def _normalize_product_line(cls, value: str) -> str:
        value = normalize_product_line(value)
        if not value:
            raise ValueError("product line must not be empty")
        return value

    @field_validator("patch")
    @classmethod
    def _non_negative_patch(cls, value: int | None) -> int | None:
        if value is not None and value < 0:
            raise ValueError("patch must be >= 0")
        return value

    @field_validator("lookback")
    @classmethod
    def _positive_lookback(cls, value: int) -> int:
        if value < 1:
            raise ValueError("lookback must be at least 1")
        return value

    @property
    def upstream_path(self) -> Path:
        """The pin file; a relative ``upstream_file`` lives inside ``repo_path``."""
        return self.repo_path / self.upstream_file

    @property
    def patch_ledger_key(self) -> str:
        return f"{self.product_line}/{self.patch_ledger_name}"

    @property
    def suffix_ledger_key(self) -> str:
        return f"{self.product_line}/{self.suffix_ledger_name}"
