"""Tests for shared value types."""

import dataclasses

import pytest

from mem_apps.models import (
    UINT64_MASK,
    AppIdentity,
    FootprintError,
    FootprintResult,
    ScanStats,
)
from tests.conftest import make_app, make_record


class TestFootprintResult:
    def test_of(self):
        result = FootprintResult.of(123)
        assert result.ok
        assert result.bytes == 123
        assert result.error is None

    def test_of_masks_to_64_bits(self):
        assert FootprintResult.of(UINT64_MASK + 5).bytes == 4

    def test_failed(self):
        result = FootprintResult.failed(FootprintError.PERMISSION_DENIED)
        assert not result.ok
        assert result.error is FootprintError.PERMISSION_DENIED


class TestImmutability:
    """Records, aggregates and identities are frozen."""

    def test_record_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            make_record().footprint_bytes = 5  # type: ignore[misc]

    def test_aggregate_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            make_app().process_count = 5  # type: ignore[misc]

    def test_identity_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            AppIdentity("other", "Other").name = "x"  # type: ignore[misc]


class TestSerialization:
    def test_aggregate_to_dict(self):
        assert make_app("A", 10, None, 2).to_dict() == {
            "name": "A",
            "bundleId": None,
            "footprintBytes": 10,
            "processCount": 2,
        }

    def test_stats_to_dict(self):
        assert ScanStats(4, 1, 1, 1).to_dict() == {
            "total_scanned": 4,
            "skipped_permission_denied": 1,
            "skipped_unavailable": 1,
            "skipped_unmapped": 1,
        }
