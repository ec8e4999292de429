"""Suffix ledger resolution for derived builds."""

from __future__ import annotations

from buildstamp.models.ledger import SuffixLedger


def resolve_suffix(build_number: int, ledger: SuffixLedger) -> int:
    """Return the highest suffix recorded for ``build_number``, or 0 if none."""
    return max(
        (e.suffix for e in ledger.entries if e.build_number == build_number),
        default=0,
    )
