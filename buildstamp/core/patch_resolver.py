"""Patch ledger resolution: which build number applies to the current tree.

The ledger is prepended to over time, so rows near the front belong to the
most recent builds.  The first row (in ledger order) whose commit appears
anywhere in the visible history is the build the tree is on.  Rows from
rebased-away commits never match and are simply passed over.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence

from buildstamp.models.ledger import PatchLedger
from buildstamp.models.version import ResolvedPatch

logger = logging.getLogger(__name__)


def _matches(history: Sequence[str], ledger: PatchLedger) -> Iterator[tuple[int, int]]:
    """Yield ``(build_number, history_index)`` for each ledger row found in history.

    Rows are visited in ledger order.  Lazy; a fresh call restarts the walk.
    """
    positions: dict[str, int] = {}
    for index, commit in enumerate(history):
        positions.setdefault(commit, index)
    for entry in ledger.entries:
        index = positions.get(entry.commit)
        if index is not None:
            yield entry.build_number, index


def resolve_patch(history: Sequence[str], ledger: PatchLedger) -> ResolvedPatch:
    """Reconcile commit history against the patch ledger.

    Returns the build number of the first matching ledger row together with
    the history index of its commit.  ``max_seen`` is the highest build
    number anywhere in the ledger.  Without a match the build number falls
    back to ``max_seen`` and ``match_index`` is ``None``.
    """
    max_seen = ledger.max_build_number
    match = next(_matches(history, ledger), None)

    if match is None:
        head = history[0] if history else "<none>"
        logger.warning(
            "No build number found for commit %s in the last %d commits; presuming %d",
            head, len(history), max_seen,
        )
        return ResolvedPatch(build_number=max_seen, match_index=None, max_seen=max_seen)

    build_number, index = match
    logger.debug("Found build number %d at revision %d (%s)", build_number, index, history[index])
    return ResolvedPatch(build_number=build_number, match_index=index, max_seen=max_seen)
