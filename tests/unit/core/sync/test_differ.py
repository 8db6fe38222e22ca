"""Tests for store comparison."""

from typing import Any, List

import pytest

from spotsync.core.exceptions import StoreReadError
from spotsync.core.models.records import TestRecord
from spotsync.core.sync.differ import compare_snapshots, compare_stores
from spotsync.storage.memory import InMemoryRecordStore


def records(docs: List[dict]) -> List[TestRecord]:
    return [TestRecord.model_validate(doc) for doc in docs]


class UnreadableStore(InMemoryRecordStore):
    async def list_all(self) -> List[Any]:
        raise StoreReadError("HTTP 401", self.backend_name)


class TestCompareSnapshots:
    """Tests for compare_snapshots()."""

    def test_partition_covers_union(self, make_test_doc) -> None:
        """Test the three id lists are disjoint and cover both stores."""
        a = records([make_test_doc(i) for i in (1, 2, 3)])
        b = records([make_test_doc(i) for i in (2, 3, 4, 5)])

        diff = compare_snapshots(a, b)

        assert diff.only_in_a == ["marquis-test-1"]
        assert diff.only_in_b == ["marquis-test-4", "marquis-test-5"]
        assert diff.common_ids == ["marquis-test-2", "marquis-test-3"]
        union = set(diff.only_in_a) | set(diff.only_in_b) | set(diff.common_ids)
        assert union == {r.id for r in a} | {r.id for r in b}
        assert len(union) == (
            len(diff.only_in_a) + len(diff.only_in_b) + len(diff.common_ids)
        )
        assert (diff.count_a, diff.count_b) == (3, 4)

    def test_tracked_field_differences(self, make_test_doc) -> None:
        """Test differing names and descriptions are listed per field."""
        a = records([make_test_doc(1, description="Old")])
        b = records([make_test_doc(1, description="New", method_name_ar="آخر")])

        diff = compare_snapshots(a, b)

        fields = {d.field: (d.value_a, d.value_b) for d in diff.field_differences}
        assert fields["description"] == ("Old", "New")
        assert fields["method_name_ar"] == ("اختبار 1", "آخر")
        assert "method_name" not in fields
        assert diff.is_in_sync is False

    def test_untracked_changes_are_ignored(self, make_test_doc) -> None:
        """Test result rows are not compared."""
        a = records([make_test_doc(1)])
        b = records([make_test_doc(1, rows=[])])

        diff = compare_snapshots(a, b)

        assert diff.field_differences == []
        assert diff.is_in_sync is True


class TestCompareStores:
    """Tests for compare_stores()."""

    @pytest.mark.asyncio
    async def test_compares_two_stores(self, sample_docs) -> None:
        """Test comparison reads both stores."""
        diff = await compare_stores(
            InMemoryRecordStore(sample_docs), InMemoryRecordStore(sample_docs[:3])
        )
        assert diff.only_in_a == ["marquis-test-4", "marquis-test-5"]
        assert diff.errors == []

    @pytest.mark.asyncio
    async def test_read_failure_degrades(self, sample_docs) -> None:
        """Test an unreadable side is compared as empty and reported."""
        diff = await compare_stores(InMemoryRecordStore(sample_docs), UnreadableStore())

        assert len(diff.only_in_a) == 5
        assert diff.count_b == 0
        assert len(diff.errors) == 1
        assert "HTTP 401" in diff.errors[0]
        assert diff.to_dict()["errors"] == diff.errors
