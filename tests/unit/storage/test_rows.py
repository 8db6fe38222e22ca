"""Tests for row-level result helpers."""

import pytest

from spotsync.core.exceptions import RecordNotFoundError, ResultIndexError
from spotsync.core.models.records import TestResultRow
from spotsync.storage.memory import InMemoryRecordStore
from spotsync.storage.rows import add_result, delete_result, update_result

NEW_ROW = {
    "color_result": "Orange",
    "color_result_ar": "برتقالي",
    "possible_substance": "Amphetamine",
    "possible_substance_ar": "أمفيتامين",
}


class TestRowHelpers:
    """Tests for add_result, update_result and delete_result."""

    @pytest.mark.asyncio
    async def test_add_returns_index(self, make_test_doc) -> None:
        """Test a row is appended and its index returned."""
        store = InMemoryRecordStore([make_test_doc(1)])

        index = await add_result(store, "marquis-test-1", NEW_ROW)

        record = await store.get("marquis-test-1")
        assert index == 1
        assert record.results[1].color_result == "Orange"

    @pytest.mark.asyncio
    async def test_update_replaces_row(self, make_test_doc) -> None:
        """Test the row at the index is replaced."""
        store = InMemoryRecordStore([make_test_doc(1)])

        await update_result(
            store, "marquis-test-1", 0, TestResultRow.model_validate(NEW_ROW)
        )

        record = await store.get("marquis-test-1")
        assert len(record.results) == 1
        assert record.results[0].possible_substance == "Amphetamine"

    @pytest.mark.asyncio
    async def test_delete_removes_row(self, make_test_doc) -> None:
        """Test the row at the index is removed."""
        store = InMemoryRecordStore([make_test_doc(1)])
        await add_result(store, "marquis-test-1", NEW_ROW)

        await delete_result(store, "marquis-test-1", 0)

        record = await store.get("marquis-test-1")
        assert [r.color_result for r in record.results] == ["Orange"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("index", [-1, 1, 5])
    async def test_index_out_of_bounds(self, make_test_doc, index: int) -> None:
        """Test bad indexes raise without writing."""
        store = InMemoryRecordStore([make_test_doc(1)])
        with pytest.raises(ResultIndexError):
            await update_result(store, "marquis-test-1", index, NEW_ROW)
        with pytest.raises(ResultIndexError):
            await delete_result(store, "marquis-test-1", index)
        assert len((await store.get("marquis-test-1")).results) == 1

    @pytest.mark.asyncio
    async def test_unknown_test(self) -> None:
        """Test an unknown test id raises."""
        with pytest.raises(RecordNotFoundError, match="Test not found: nope"):
            await add_result(InMemoryRecordStore(), "nope", NEW_ROW)
