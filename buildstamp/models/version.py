"""Resolution and bump result models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from buildstamp.models.ledger import PatchLedgerEntry, SuffixLedgerEntry


class Variant(str, Enum):
    """Which version stream a build belongs to."""

    PRIMARY = "primary"  # open source: major.minor.patch.build
    DERIVED = "derived"  # pro: major.minor.patch.build-suffix


class BumpOutcome(str, Enum):
    """Terminal states of a bump transaction."""

    ALREADY_BUILT = "already_built"
    NEW_PATCH = "new_patch"
    NEW_SUFFIX = "new_suffix"


class ResolvedPatch(BaseModel):
    """Result of reconciling commit history against the patch ledger.

    ``match_index`` is the history position of the matched commit, or
    ``None`` when no ledger row intersects the visible history.
    """

    model_config = ConfigDict(frozen=True)

    build_number: int
    match_index: int | None
    max_seen: int

    @property
    def resolved(self) -> bool:
        return self.match_index is not None

    @property
    def at_head(self) -> bool:
        """Whether the most recent commit is the one recorded for the build."""
        return self.match_index == 0


class ResolvedVersion(BaseModel):
    """Everything a ``get`` computed, kept so a bump can build on it."""

    model_config = ConfigDict(frozen=True)

    variant: Variant
    product_line: str
    major_minor: str
    patch: int | None = None
    history: tuple[str, ...] = ()
    resolved_patch: ResolvedPatch
    suffix: int | None = None
    version: str

    @property
    def build_number(self) -> int:
        return self.resolved_patch.build_number


class BumpResult(BaseModel):
    """Outcome of a bump: the version to report and what was recorded."""

    model_config = ConfigDict(frozen=True)

    outcome: BumpOutcome
    version: str
    previous: ResolvedVersion
    patch_rows: tuple[PatchLedgerEntry, ...] = ()
    suffix_rows: tuple[SuffixLedgerEntry, ...] = ()
    persisted: bool = False
