"""Tests for version composition."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from buildstamp.core.composer import compose, major_minor
from buildstamp.models.version import Variant


class TestMajorMinor:
    def test_year_month(self):
        assert major_minor(datetime(2026, 10, 19, tzinfo=timezone.utc)) == "2026-10"

    def test_converted_to_utc(self):
        # 23:30 on Oct 31 at UTC-2 is already November in UTC
        local = datetime(2026, 10, 31, 23, 30, tzinfo=timezone(timedelta(hours=-2)))
        assert major_minor(local) == "2026-11"


class TestCompose:
    def test_primary_without_patch(self):
        assert compose(Variant.PRIMARY, "2026-10", 5) == "2026-10.5"

    def test_primary_with_patch(self):
        assert compose(Variant.PRIMARY, "2026-10", 5, patch=3) == "2026-10.3.5"

    def test_derived_with_patch(self):
        assert compose(Variant.DERIVED, "2026-10", 5, 2, patch=3) == "2026-10.3.5-2"

    def test_derived_zero_suffix(self):
        assert compose(Variant.DERIVED, "2026-10", 5, 0) == "2026-10.5-0"

    def test_primary_ignores_suffix(self):
        assert compose(Variant.PRIMARY, "2026-10", 5, 4) == "2026-10.5"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"variant": Variant.PRIMARY, "build_number": -1},
            {"variant": Variant.DERIVED, "build_number": 1, "suffix": None},
            {"variant": Variant.DERIVED, "build_number": 1, "suffix": -1},
            {"variant": Variant.PRIMARY, "build_number": 1, "patch": -2},
        ],
    )
    def test_invalid_inputs(self, kwargs):
        with pytest.raises(ValueError):
            compose(major_minor="2026-10", **kwargs)
