"""Bump transactions: what to append to the ledgers when minting a version.

Primary builds move ``Resolved -> AlreadyBuilt | NewPatch``:

- HEAD already carries the resolved build number: nothing to record.
- Otherwise the new build number is one past the highest ever recorded and
  every commit since the last recorded build (HEAD included) is marked with
  it, so any of them later resolves to the same version.  Without a known
  baseline the whole visible history window is marked.

Derived builds always move ``Resolved -> NewSuffix``: each invocation is one
real build of the derived artifact and gets the next suffix.

Planning is pure.  Publishing the plan is the engine's job.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from buildstamp.models.ledger import PatchLedgerEntry, SuffixLedgerEntry
from buildstamp.models.version import BumpOutcome, ResolvedPatch


class PatchBumpPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: BumpOutcome
    build_number: int
    rows: tuple[PatchLedgerEntry, ...] = ()


class SuffixBumpPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: BumpOutcome = BumpOutcome.NEW_SUFFIX
    build_number: int
    suffix: int
    row: SuffixLedgerEntry


def plan_patch_bump(
    resolved: ResolvedPatch,
    history: Sequence[str],
    now: datetime,
) -> PatchBumpPlan:
    """Decide whether a primary build needs a new build number, and which rows record it."""
    if resolved.at_head:
        return PatchBumpPlan(
            outcome=BumpOutcome.ALREADY_BUILT,
            build_number=resolved.build_number,
        )

    new_build_number = resolved.max_seen + 1
    span = len(history) if resolved.match_index is None else resolved.match_index
    rows = tuple(
        PatchLedgerEntry(commit=commit, build_number=new_build_number, timestamp=now)
        for commit in history[:span]
    )
    return PatchBumpPlan(
        outcome=BumpOutcome.NEW_PATCH,
        build_number=new_build_number,
        rows=rows,
    )


def plan_suffix_bump(
    build_number: int,
    current_suffix: int,
    commit: str,
    now: datetime,
) -> SuffixBumpPlan:
    """Plan the next derived build for ``build_number``, recorded against ``commit``."""
    suffix = current_suffix + 1
    return SuffixBumpPlan(
        build_number=build_number,
        suffix=suffix,
        row=SuffixLedgerEntry(
            build_number=build_number,
            suffix=suffix,
            commit=commit,
            timestamp=now,
        ),
    )
