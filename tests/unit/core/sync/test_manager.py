"""Tests for the Synchronizer.

Organization
------------
- TestSynchronize: A -> B transfer of missing tests
- TestPrepareReverse: B -> A preparation without writes
"""

from typing import Any, List

import pytest

from spotsync.core.exceptions import StoreReadError
from spotsync.core.sync.manager import Synchronizer
from spotsync.core.sync.models import MigrationOptions
from spotsync.storage.memory import InMemoryRecordStore


class UnreadableStore(InMemoryRecordStore):
    async def list_all(self) -> List[Any]:
        raise StoreReadError("timeout", self.backend_name)


def no_delay() -> MigrationOptions:
    return MigrationOptions(batch_delay_sec=0.0)


class TestSynchronize:
    """Tests for Synchronizer.synchronize()."""

    @pytest.mark.asyncio
    async def test_copies_only_missing(self, sample_docs, make_test_doc) -> None:
        """Test tests present in both stores are left untouched."""
        changed = make_test_doc(1, method_name="Edited remotely")
        store_a = InMemoryRecordStore(sample_docs)
        store_b = InMemoryRecordStore([changed])

        report = await Synchronizer(store_a, store_b, no_delay()).synchronize()

        assert report.success is True
        assert report.transferred == 4
        assert report.message == "Synchronization completed: 4 tests synchronized"
        assert (await store_b.get("marquis-test-1")).method_name == "Edited remotely"
        assert (await store_b.get("marquis-test-5")).created_by == "sync_service"

    @pytest.mark.asyncio
    async def test_already_in_sync(self, sample_docs) -> None:
        """Test nothing is written when B already has every test."""
        store_a = InMemoryRecordStore(sample_docs)
        store_b = InMemoryRecordStore(sample_docs)

        report = await Synchronizer(store_a, store_b, no_delay()).synchronize()

        assert report.success is False
        assert report.transferred == 0
        assert report.message == "Stores already in sync"
        assert report.message_localized == "المصدران متزامنان بالفعل"

    @pytest.mark.asyncio
    async def test_overwrite_option_is_ignored(
        self, sample_docs, make_test_doc
    ) -> None:
        """Test synchronization never rewrites shared tests."""
        store_b = InMemoryRecordStore([make_test_doc(1, method_name="Keep me")])
        options = MigrationOptions(batch_delay_sec=0.0, overwrite=True)

        await Synchronizer(
            InMemoryRecordStore(sample_docs), store_b, options
        ).synchronize()

        assert (await store_b.get("marquis-test-1")).method_name == "Keep me"

    @pytest.mark.asyncio
    async def test_unreadable_a_fails(self) -> None:
        """Test a failing read of store A is reported, not raised."""
        report = await Synchronizer(
            UnreadableStore(), InMemoryRecordStore(), no_delay()
        ).synchronize()

        assert report.success is False
        assert report.message.startswith("Synchronization failed:")

    @pytest.mark.asyncio
    async def test_unreadable_b_counts_as_empty(self, sample_docs) -> None:
        """Test a failing read of store B is treated as an empty store."""
        store_b = UnreadableStore()
        report = await Synchronizer(
            InMemoryRecordStore(sample_docs), store_b, no_delay()
        ).synchronize()

        assert report.transferred == 5
        assert await store_b.count() == 5


class TestPrepareReverse:
    """Tests for Synchronizer.prepare_reverse()."""

    @pytest.mark.asyncio
    async def test_prepares_without_writing(self, sample_docs) -> None:
        """Test B's extra tests are counted and A stays untouched."""
        store_a = InMemoryRecordStore(sample_docs[:2])
        store_b = InMemoryRecordStore(sample_docs)

        report = await Synchronizer(store_a, store_b, no_delay()).prepare_reverse()

        assert report.success is True
        assert report.transferred == 3
        assert report.message == "Migration prepared: 3 tests ready for local update"
        assert await store_a.count() == 2

    @pytest.mark.asyncio
    async def test_empty_b(self, sample_docs) -> None:
        """Test an empty B reports an empty source."""
        report = await Synchronizer(
            InMemoryRecordStore(sample_docs), InMemoryRecordStore(), no_delay()
        ).prepare_reverse()

        assert report.success is False
        assert report.errors == ["Source store is empty"]

    @pytest.mark.asyncio
    async def test_nothing_to_prepare(self, sample_docs) -> None:
        """Test identical stores give no candidates."""
        report = await Synchronizer(
            InMemoryRecordStore(sample_docs),
            InMemoryRecordStore(sample_docs),
            no_delay(),
        ).prepare_reverse()

        assert report.message == "No tests to migrate"

    @pytest.mark.asyncio
    async def test_validation_gate_applies(self, sample_docs, make_test_doc) -> None:
        """Test defective B tests stop the preparation."""
        broken = make_test_doc(9, rows=[])
        report = await Synchronizer(
            InMemoryRecordStore(sample_docs),
            InMemoryRecordStore([broken]),
            no_delay(),
        ).prepare_reverse()

        assert report.message == "Data validation failed"
        assert report.failed == 1
        assert "Test missing color results: marquis-test-9" in report.errors
