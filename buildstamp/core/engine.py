"""Version engine: the central coordinator for ``get`` and ``bump``.

The engine wires the ledger store, the history provider, both resolvers,
the composer and the bump planner together.  It keeps no state between
calls: every call re-reads the ledgers and the history.

Every write goes through ``_publish``, which checks ``config.dry_run``
before touching the store.  Dry runs perform the full computation and
return the same versions a real run would.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from buildstamp.config import BuildstampConfig
from buildstamp.core.bump import plan_patch_bump, plan_suffix_bump
from buildstamp.core.composer import compose, major_minor
from buildstamp.core.errors import PersistenceFailed
from buildstamp.core.history import GitHistory, HistoryProvider
from buildstamp.core.ledger_store import LedgerStore, open_store
from buildstamp.core.patch_resolver import resolve_patch
from buildstamp.core.suffix_resolver import resolve_suffix
from buildstamp.models.ledger import PatchLedger, SuffixLedger
from buildstamp.models.version import (
    BumpOutcome,
    BumpResult,
    ResolvedVersion,
    Variant,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VersionEngine:
    """Resolves and mints build versions for one product line.

    Parameters
    ----------
    config:
        Invocation options.  Uses defaults (and ``BUILDSTAMP_*`` env vars)
        if not provided.
    store:
        Ledger store.  Opened from ``config.store`` if not provided.
    history:
        Commit history provider.  Reads the local git checkout if not
        provided.
    clock:
        Returns the current UTC time; drives ``YYYY-MM`` and row timestamps.
    """

    def __init__(
        self,
        config: BuildstampConfig | None = None,
        *,
        store: LedgerStore | None = None,
        history: HistoryProvider | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or BuildstampConfig()
        self.store = store or open_store(self.config.store)
        self.history_provider = history or GitHistory(
            self.config.repo_path,
            lookback=self.config.lookback,
            upstream_file=self.config.upstream_file,
        )
        self._clock = clock or _utcnow

    @property
    def is_derived(self) -> bool:
        return self.config.variant == Variant.DERIVED

    # ------------------------------------------------------------------
    # Ledger I/O
    # ------------------------------------------------------------------

    def _read_patch_ledger(self) -> PatchLedger:
        return PatchLedger.parse(self.store.read(self.config.patch_ledger_key))

    def _read_suffix_ledger(self) -> SuffixLedger:
        return SuffixLedger.parse(self.store.read(self.config.suffix_ledger_key))

    def _load_ledgers(self) -> tuple[PatchLedger, SuffixLedger | None]:
        if not self.is_derived:
            return self._read_patch_ledger(), None
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="buildstamp") as pool:
            patch_future = pool.submit(self._read_patch_ledger)
            suffix_future = pool.submit(self._read_suffix_ledger)
            return patch_future.result(), suffix_future.result()

    def _publish(self, key: str, text: str, version: str) -> bool:
        """Write a whole ledger blob unless this is a dry run.

        Returns True if the store was written.
        """
        if self.config.dry_run:
            logger.info("Dry run: not pushing updated %s (%s)", key, version)
            return False
        try:
            self.store.write(key, text)
        except PersistenceFailed as exc:
            raise PersistenceFailed(
                f"Version {version} was computed but not recorded: {exc}",
                version=version,
            ) from exc
        logger.info("Pushed updated %s (%s)", key, version)
        return True

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _resolve(
        self, now: datetime
    ) -> tuple[ResolvedVersion, PatchLedger, SuffixLedger | None]:
        history = self.history_provider.history(self.config.variant, self.config.upstream_ref)
        patch_ledger, suffix_ledger = self._load_ledgers()

        resolved_patch = resolve_patch(history, patch_ledger)
        suffix = None
        if suffix_ledger is not None:
            suffix = resolve_suffix(resolved_patch.build_number, suffix_ledger)

        mm = major_minor(now)
        resolved = ResolvedVersion(
            variant=self.config.variant,
            product_line=self.config.product_line,
            major_minor=mm,
            patch=self.config.patch,
            history=tuple(history),
            resolved_patch=resolved_patch,
            suffix=suffix,
            version=compose(
                self.config.variant,
                mm,
                resolved_patch.build_number,
                suffix,
                patch=self.config.patch,
            ),
        )
        return resolved, patch_ledger, suffix_ledger

    def resolve(self) -> ResolvedVersion:
        """Compute the version that applies to the current tree."""
        resolved, _, _ = self._resolve(self._clock())
        return resolved

    def get(self) -> str:
        """Return the current version string without changing anything."""
        return self.resolve().version

    # ------------------------------------------------------------------
    # Bump
    # ------------------------------------------------------------------

    def bump(self) -> BumpResult:
        """Mint a new version if needed and record it in the ledger."""
        now = self._clock()
        resolved, patch_ledger, suffix_ledger = self._resolve(now)
        if suffix_ledger is not None:
            return self._bump_suffix(resolved, suffix_ledger, now)
        return self._bump_patch(resolved, patch_ledger, now)

    def _bump_patch(
        self, resolved: ResolvedVersion, ledger: PatchLedger, now: datetime
    ) -> BumpResult:
        plan = plan_patch_bump(resolved.resolved_patch, resolved.history, now)

        if plan.outcome == BumpOutcome.ALREADY_BUILT:
            logger.info("Not bumping version (HEAD is at %s)", resolved.version)
            return BumpResult(
                outcome=plan.outcome,
                version=resolved.version,
                previous=resolved,
            )

        version = compose(
            Variant.PRIMARY, resolved.major_minor, plan.build_number, patch=resolved.patch
        )
        logger.info("Creating new patch release %s", version)
        for row in plan.rows:
            logger.debug("Marking commit %s for patch %s", row.commit, version)

        updated = ledger.prepend(plan.rows)
        persisted = self._publish(self.config.patch_ledger_key, updated.to_text(), version)
        return BumpResult(
            outcome=plan.outcome,
            version=version,
            previous=resolved,
            patch_rows=plan.rows,
            persisted=persisted,
        )

    def _bump_suffix(
        self, resolved: ResolvedVersion, ledger: SuffixLedger, now: datetime
    ) -> BumpResult:
        commit = self.history_provider.head_commit()
        plan = plan_suffix_bump(resolved.build_number, resolved.suffix or 0, commit, now)

        version = compose(
            Variant.DERIVED,
            resolved.major_minor,
            plan.build_number,
            plan.suffix,
            patch=resolved.patch,
        )
        logger.info("Creating new derived release %s at %s", version, commit)

        updated = ledger.prepend([plan.row])
        persisted = self._publish(self.config.suffix_ledger_key, updated.to_text(), version)
        return BumpResult(
            outcome=plan.outcome,
            version=version,
            previous=resolved,
            suffix_rows=(plan.row,),
            persisted=persisted,
        )
