"""
Row-level result helpers.

Add, replace or remove a single result row of a stored test. Built on
the store's get() and update(); the whole results list is written back.
An unknown test raises RecordNotFoundError and a bad index raises
ResultIndexError; both fail only the call that triggered them.
"""

from typing import Any, List, Mapping, Union

from spotsync.core.exceptions import RecordNotFoundError, ResultIndexError
from spotsync.core.logging import get_logger
from spotsync.core.models.records import TestRecord, TestResultRow
from spotsync.storage.base import RecordStore

logger = get_logger(__name__)

RowInput = Union[TestResultRow, Mapping[str, Any]]


def _as_row(row: RowInput) -> TestResultRow:
    if isinstance(row, TestResultRow):
        return row
    return TestResultRow.model_validate(dict(row))


async def _load(store: RecordStore, test_id: str) -> TestRecord:
    record = await store.get(test_id)
    if record is None:
        raise RecordNotFoundError(test_id, store.backend_name)
    return record


async def _write_results(
    store: RecordStore, test_id: str, results: List[TestResultRow]
) -> None:
    await store.update(
        test_id, {"results": [result.to_document() for result in results]}
    )


def _check_index(index: int, size: int) -> None:
    if index < 0 or index >= size:
        raise ResultIndexError(index, size)


async def add_result(store: RecordStore, test_id: str, row: RowInput) -> int:
    """
    Append a result row to a test.

    Returns:
        Index of the new row.
    """
    record = await _load(store, test_id)
    results = list(record.results)
    results.append(_as_row(row))
    await _write_results(store, test_id, results)
    logger.info("Result added", test=test_id, index=len(results) - 1)
    return len(results) - 1


async def update_result(
    store: RecordStore, test_id: str, index: int, row: RowInput
) -> None:
    """Replace the result row at a zero-based index."""
    record = await _load(store, test_id)
    results = list(record.results)
    _check_index(index, len(results))
    results[index] = _as_row(row)
    await _write_results(store, test_id, results)
    logger.info("Result updated", test=test_id, index=index)


async def delete_result(store: RecordStore, test_id: str, index: int) -> None:
    """Remove the result row at a zero-based index."""
    record = await _load(store, test_id)
    results = list(record.results)
    _check_index(index, len(results))
    del results[index]
    await _write_results(store, test_id, results)
    logger.info("Result deleted", test=test_id, index=index)
