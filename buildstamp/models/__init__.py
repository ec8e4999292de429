"""buildstamp data models: all Pydantic v2, all frozen (immutable)."""

from buildstamp.models.ledger import (
    PatchLedger,
    PatchLedgerEntry,
    SuffixLedger,
    SuffixLedgerEntry,
)
from buildstamp.models.version import (
    BumpOutcome,
    BumpResult,
    ResolvedPatch,
    ResolvedVersion,
    Variant,
)

__all__ = [
    # ledger
    "PatchLedgerEntry",
    "SuffixLedgerEntry",
    "PatchLedger",
    "SuffixLedger",
    # version
    "Variant",
    "BumpOutcome",
    "ResolvedPatch",
    "ResolvedVersion",
    "BumpResult",
]
