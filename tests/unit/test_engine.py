"""Tests for the VersionEngine: get/bump against a local ledger store."""

from __future__ import annotations

import pytest

from buildstamp.core.errors import HistoryUnavailable, LedgerUnavailable, PersistenceFailed
from buildstamp.core.ledger_store import LocalLedgerStore
from buildstamp.models.version import BumpOutcome, Variant

HISTORY = ["c5", "c4", "c3", "c2", "c1"]
PATCH = "oss-patch.csv"
SUFFIX = "pro-suffix.csv"


class FailingStore(LocalLedgerStore):
    """Reads normally, refuses every write."""

    def write(self, key: str, text: str) -> None:
        raise PersistenceFailed(f"refusing to write {key}")


class TestPrimaryGet:
    def test_worked_example(self, make_engine, write_ledger):
        write_ledger(PATCH, "c3,5,2026-01-05 09:00:00\n")
        resolved = make_engine(HISTORY).resolve()
        assert resolved.resolved_patch.match_index == 2
        assert resolved.build_number == 5
        assert resolved.version == "2026-10.5"

    def test_patch_seed_is_included(self, make_engine, write_ledger):
        write_ledger(PATCH, "c3,5,2026-01-05 09:00:00\n")
        assert make_engine(HISTORY, patch=3).get() == "2026-10.3.5"

    def test_get_is_idempotent(self, make_engine, write_ledger, read_ledger):
        write_ledger(PATCH, "c3,5,2026-01-05 09:00:00\n")
        engine = make_engine(HISTORY)
        assert engine.get() == engine.get()
        assert read_ledger(PATCH) == "c3,5,2026-01-05 09:00:00\n"

    def test_missing_ledger_is_fatal(self, make_engine):
        with pytest.raises(LedgerUnavailable):
            make_engine(HISTORY).get()

    def test_missing_history_is_fatal(self, make_engine, write_ledger):
        write_ledger(PATCH, "")
        with pytest.raises(HistoryUnavailable):
            make_engine([]).get()


class TestPrimaryBump:
    def test_worked_example(self, make_engine, write_ledger, read_ledger):
        write_ledger(PATCH, "c3,5,2026-01-05 09:00:00\n")
        result = make_engine(HISTORY).bump()
        assert result.outcome == BumpOutcome.NEW_PATCH
        assert result.version == "2026-10.6"
        assert result.persisted is True
        assert read_ledger(PATCH) == (
            "c5,6,2026-10-19 12:30:00\n"
            "c4,6,2026-10-19 12:30:00\n"
            "c3,5,2026-01-05 09:00:00\n"
        )

    def test_no_op_when_head_already_built(self, make_engine, write_ledger, read_ledger):
        blob = "c5,6,2026-01-05 09:00:00\nc4,6,2026-01-05 09:00:00\n"
        write_ledger(PATCH, blob)
        engine = make_engine(HISTORY)
        result = engine.bump()
        assert result.outcome == BumpOutcome.ALREADY_BUILT
        assert result.version == engine.get() == "2026-10.6"
        assert result.persisted is False
        assert read_ledger(PATCH) == blob

    def test_bump_then_get_agrees(self, make_engine, write_ledger):
        write_ledger(PATCH, "c3,5,2026-01-05 09:00:00\n")
        engine = make_engine(HISTORY)
        bumped = engine.bump().version
        assert engine.get() == bumped
        assert engine.bump().outcome == BumpOutcome.ALREADY_BUILT

    def test_span_completeness(self, make_engine, write_ledger):
        write_ledger(PATCH, "c3,5,2026-01-05 09:00:00\n")
        make_engine(HISTORY).bump()
        # Checking out any commit of the new span resolves to the new build
        assert make_engine(["c4", "c3", "c2", "c1"]).get() == "2026-10.6"
        assert make_engine(["c3", "c2", "c1"]).get() == "2026-10.5"

    def test_build_numbers_are_monotonic(self, make_engine, write_ledger, read_ledger):
        write_ledger(PATCH, "c3,5,2026-01-05 09:00:00\nstale,9,2025-01-01 00:00:00\n")
        result = make_engine(HISTORY).bump()
        assert result.version == "2026-10.10"
        assert read_ledger(PATCH).startswith("c5,10,")

    def test_unresolved_history_marks_whole_window(self, make_engine, write_ledger, read_ledger):
        write_ledger(PATCH, "elsewhere,7,2026-01-05 09:00:00\n")
        engine = make_engine(HISTORY)
        assert engine.get() == "2026-10.7"
        result = engine.bump()
        assert result.version == "2026-10.8"
        assert [r.commit for r in result.patch_rows] == HISTORY
        assert len(read_ledger(PATCH).splitlines()) == 6

    def test_fresh_product_line(self, make_engine, write_ledger):
        write_ledger(PATCH, "")
        result = make_engine(["only"]).bump()
        assert result.version == "2026-10.1"

    def test_malformed_rows_survive_republish(self, make_engine, write_ledger, read_ledger):
        write_ledger(PATCH, "not,a,valid,row\nc3,5,2026-01-05 09:00:00\n")
        make_engine(HISTORY).bump()
        assert read_ledger(PATCH).splitlines()[2:] == [
            "not,a,valid,row",
            "c3,5,2026-01-05 09:00:00",
        ]

    def test_persistence_failure_reports_version(self, make_engine, write_ledger, store_dir):
        write_ledger(PATCH, "c3,5,2026-01-05 09:00:00\n")
        engine = make_engine(HISTORY, target_store=FailingStore(store_dir))
        with pytest.raises(PersistenceFailed) as info:
            engine.bump()
        assert info.value.version == "2026-10.6"


class TestDerived:
    @pytest.fixture(autouse=True)
    def seed(self, write_ledger):
        write_ledger(PATCH, "c5,6,2026-01-05 09:00:00\nc3,5,2026-01-01 09:00:00\n")
        write_ledger(
            SUFFIX,
            "5,2,p8,2026-01-04 00:00:00\n5,1,p7,2026-01-03 00:00:00\n6,4,p9,2026-01-06 00:00:00\n",
        )

    def derived(self, make_engine, ref: str = "c3", **overrides):
        return make_engine(
            ["p10", "p9"], variant=Variant.DERIVED, upstream_ref=ref, **overrides
        )

    def test_get(self, make_engine):
        assert self.derived(make_engine).get() == "2026-10.5-2"

    def test_get_with_patch_seed(self, make_engine):
        assert self.derived(make_engine, patch=1).get() == "2026-10.1.5-2"

    def test_bump_records_head_commit(self, make_engine, read_ledger):
        result = self.derived(make_engine).bump()
        assert result.outcome == BumpOutcome.NEW_SUFFIX
        assert result.version == "2026-10.5-3"
        assert read_ledger(SUFFIX).splitlines()[0] == "5,3,p10,2026-10-19 12:30:00"
        # The patch ledger is never touched by a derived bump
        assert read_ledger(PATCH).startswith("c5,6,")

    def test_suffixes_increase_on_every_bump(self, make_engine):
        engine = self.derived(make_engine)
        versions = [engine.bump().version for _ in range(3)]
        assert versions == ["2026-10.5-3", "2026-10.5-4", "2026-10.5-5"]

    def test_suffix_starts_at_one(self, make_engine, write_ledger):
        write_ledger(PATCH, "c3,5,2026-01-01 09:00:00\nnew,12,2026-02-01 09:00:00\n")
        engine = self.derived(make_engine, ref="new")
        assert engine.get() == "2026-10.12-0"
        assert engine.bump().version == "2026-10.12-1"
        assert engine.bump().version == "2026-10.12-2"

    def test_unknown_upstream_falls_back_to_max_seen(self, make_engine):
        assert self.derived(make_engine, ref="unknown").get() == "2026-10.6-4"

    def test_missing_suffix_ledger_is_fatal(self, make_engine, store_dir):
        (store_dir / "desktop" / SUFFIX).unlink()
        with pytest.raises(LedgerUnavailable):
            self.derived(make_engine).get()

    def test_missing_upstream_ref(self, make_engine):
        engine = make_engine(["p10"], variant=Variant.DERIVED)
        with pytest.raises(HistoryUnavailable):
            engine.get()


class TestDryRun:
    def test_primary_dry_run_writes_nothing(self, make_engine, write_ledger, read_ledger):
        blob = "c3,5,2026-01-05 09:00:00\n"
        write_ledger(PATCH, blob)
        engine = make_engine(HISTORY, dry_run=True)
        results = [engine.bump() for _ in range(2)]
        assert [r.version for r in results] == ["2026-10.6", "2026-10.6"]
        assert all(r.persisted is False for r in results)
        assert [r.commit for r in results[0].patch_rows] == ["c5", "c4"]
        assert read_ledger(PATCH) == blob

    def test_derived_dry_run_writes_nothing(self, make_engine, write_ledger, read_ledger):
        write_ledger(PATCH, "c3,5,2026-01-05 09:00:00\n")
        write_ledger(SUFFIX, "5,1,p1,2026-01-05 09:00:00\n")
        engine = make_engine(
            ["p2"], variant=Variant.DERIVED, upstream_ref="c3", dry_run=True
        )
        assert engine.bump().version == "2026-10.5-2"
        assert read_ledger(SUFFIX) == "5,1,p1,2026-01-05 09:00:00\n"

    def test_dry_run_matches_real_run(self, make_engine, write_ledger, tmp_path):
        blob = "c3,5,2026-01-05 09:00:00\n"
        write_ledger(PATCH, blob)
        real_store = LocalLedgerStore(tmp_path / "real")
        real_store.write("desktop/" + PATCH, blob)

        dry = make_engine(HISTORY, dry_run=True).bump()
        real = make_engine(HISTORY, target_store=real_store).bump()
        assert dry.version == real.version
        assert dry.patch_rows == real.patch_rows

    def test_dry_run_skips_failing_store(self, make_engine, write_ledger, store_dir):
        write_ledger(PATCH, "c3,5,2026-01-05 09:00:00\n")
        engine = make_engine(HISTORY, dry_run=True, target_store=FailingStore(store_dir))
        assert engine.bump().version == "2026-10.6"
